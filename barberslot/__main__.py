"""
Entry point for ``python -m barberslot``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
