"""In-memory user store seeded from module settings."""

version = "1.0.0"


def attach(context, config):
    records = dict((config or {}).get("users", {}))
    context.namespace("app.store").records = records
