"""Module entry point: python -m steplife_convert ..."""

from __future__ import annotations

from steplife_convert.cli import main


if __name__ == "__main__":
    raise SystemExit(main())


