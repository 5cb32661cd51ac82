"""Allow ``python -m addressflow``."""

from addressflow.cli import cli

if __name__ == "__main__":
    cli()
