"""Module entrypoint for running nodetocode as ``python -m nodetocode``."""

from __future__ import annotations

from nodetocode.cli import main


if __name__ == "__main__":
    main()
