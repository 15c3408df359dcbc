"""feereceiver.cli — typer entry points (`feereceiver` console script)."""

from .main import app

__all__ = ["app"]
