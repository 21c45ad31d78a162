"""Allow ``python -m embedstore``."""

from .adapters.inbound.cli.commands import app

app()
