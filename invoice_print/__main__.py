"""Module entrypoint for running the print server."""

from __future__ import annotations

import sys

from .errors import DependencyError
from .server import run


def main() -> None:
    try:
        run()
    except DependencyError as exc:
        print(str(exc), file=sys.stderr)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
