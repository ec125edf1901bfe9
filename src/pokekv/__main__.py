"""
Main entry point for running pokekv as a module.

Usage:
    python -m pokekv serve
    python -m pokekv list
    python -m pokekv wipe
"""

from .cli import app

if __name__ == "__main__":
    app()
