"""Allow running as python -m lokatranslator."""

from lokatranslator.cli import app

app()
