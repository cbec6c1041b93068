"""Entry point for ``python -m talos_imagegen``."""

from talos_imagegen.cli import app

app()
