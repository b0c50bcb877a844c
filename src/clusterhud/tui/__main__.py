"""Shortcut: ``python -m clusterhud.tui [flags]`` runs ``clusterhud tui [flags]``."""

from __future__ import annotations

import sys
from collections.abc import Sequence

from clusterhud.cli.app import main as cli_main


def main(argv: Sequence[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    return cli_main(["tui", *args])


if __name__ == "__main__":
    raise SystemExit(main())
