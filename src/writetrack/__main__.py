"""Allow ``python -m writetrack``."""

from writetrack.cli import app

app()
