"""Allow ``python -m dbmaint``."""

from dbmaint.cli.app import app

if __name__ == "__main__":
    app()
