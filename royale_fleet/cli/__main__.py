"""Module execution entrypoint for `python -m royale_fleet.cli`."""

from __future__ import annotations

import sys

from royale_fleet.cli import main

if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
