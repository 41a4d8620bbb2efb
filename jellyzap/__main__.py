"""
Entry point for running jellyzap as a module: python -m jellyzap
"""

from jellyzap.cli.commands import app

if __name__ == "__main__":
    app()
