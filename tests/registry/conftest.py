"""Shared pytest fixtures for the registry test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml


# ---------------------------------------------------------------------------
# Module file template
# ---------------------------------------------------------------------------

_MODULE_TEMPLATE = """\
requires = {requires}
version = "{version}"


def attach(context, config):
    context.namespace("{name}").loaded = True
"""


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def module_file(tmp_path: Path) -> Path:
    """Create a module file requiring 'base.util' and return its path."""
    path = tmp_path / "sample.py"
    path.write_text(_MODULE_TEMPLATE.format(requires='["base.util"]', version="1.2.0", name="sample"))
    return path


@pytest.fixture
def meta_yaml(tmp_path: Path) -> Path:
    """Create a sample_meta.yaml next to the module file and return its path."""
    meta: dict[str, Any] = {
        "description": "Overridden description from YAML",
        "version": "2.0.0",
        "requires": ["yaml.dep", {"module_id": "yaml.other"}],
        "owner": "platform",
    }
    path = tmp_path / "sample_meta.yaml"
    path.write_text(yaml.dump(meta, default_flow_style=False))
    return path
