"""Allow ``python -m statement_import`` to run the CLI."""

from .cli import app

if __name__ == "__main__":  # pragma: no cover
    app(prog_name="statement-import")
