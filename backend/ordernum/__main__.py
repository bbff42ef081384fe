"""Entry point for running the admin CLI: python -m ordernum"""

from ordernum.cli import cli

if __name__ == "__main__":
    cli()
