from __future__ import annotations

from eformmaker.cli import cli

if __name__ == "__main__":
    cli()
