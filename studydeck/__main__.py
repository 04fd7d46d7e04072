"""Allow running as ``python -m studydeck``."""

from studydeck.cli.main import cli_main

if __name__ == "__main__":
    cli_main()
