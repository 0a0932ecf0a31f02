# File: schemaguard/__main__.py
"""
NexaFlow SchemaGuard — Module entry point.

Allows running the validator / exporter directly via::

    python -m schemaguard --project project.yaml --format sql -o ./out

This module simply delegates to the CLI entry point defined in ``schemaguard.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from schemaguard.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
