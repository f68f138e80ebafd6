"""CLI entry point for python -m articlepipe"""
from articlepipe.cli.commands import app

if __name__ == "__main__":
    app()
