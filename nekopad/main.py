from __future__ import annotations

import sys

from nekopad.app import run_app


def main() -> int:
    """Module entrypoint for `python -m nekopad.main`."""
    return run_app(sys.argv)


if __name__ == "__main__":
    raise SystemExit(main())
