"""Shared fixtures for integration tests."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml


# --- Module file templates ---

DB_MODULE = """\
\"\"\"Database connection settings.\"\"\"

version = "1.0.0"


def attach(context, config):
    context.data.setdefault("order", []).append("app.db")
    context.namespace("app.db").dsn = (config or {}).get("dsn", "sqlite://")
"""

CACHE_MODULE = """\
requires = ["app.db"]


def attach(context, config):
    context.data.setdefault("order", []).append("lib.cache")
    context.namespace("lib.cache").backend = context.namespace("app.db").dsn
"""

WEB_MODULE = """\
requires = ["app.db", "lib.cache"]


def attach(context, config):
    context.data.setdefault("order", []).append("app.web")
    context.namespace("app.web").port = (config or {}).get("port", 80)
"""

FAILING_MODULE = """\
requires = ["app.db"]


def attach(context, config):
    context.data.setdefault("order", []).append("app.broken")
    raise RuntimeError("cannot start")
"""

CYCLE_A_MODULE = """\
requires = ["cyc.b"]


def attach(context, config):
    return None
"""

CYCLE_B_MODULE = """\
requires = ["cyc.a"]


def attach(context, config):
    return None
"""


# --- Fixtures ---


@pytest.fixture
def module_tree(tmp_path: Path) -> Path:
    """Write a module tree: app/ under base_dir, lib/ mapped to vendor/."""
    files = {
        "modules/app/db.py": DB_MODULE,
        "modules/app/web.py": WEB_MODULE,
        "modules/app/broken.py": FAILING_MODULE,
        "modules/cyc/a.py": CYCLE_A_MODULE,
        "modules/cyc/b.py": CYCLE_B_MODULE,
        "vendor/cache.py": CACHE_MODULE,
    }
    for relative, source in files.items():
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source)
    return tmp_path


@pytest.fixture
def config_file(module_tree: Path) -> Path:
    """Write a YAML configuration pointing the loader at the module tree."""
    data = {
        "loader": {
            "base_dir": str(module_tree / "modules"),
            "paths": {"lib": str(module_tree / "vendor")},
        },
        "modules": {
            "app.db": {"dsn": "postgres://db"},
            "app.web": {"port": 8080},
        },
    }
    path = module_tree / "condotti.yaml"
    path.write_text(yaml.dump(data))
    return path
