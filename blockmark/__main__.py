"""blockmark CLI entry point.

Allows running via `python -m blockmark` and provides the console script
defined in `pyproject.toml`.
"""

from __future__ import annotations

import sys

from .version import get_version_string


def main() -> None:
    # Very small arg parsing: version and an optional filename
    args = sys.argv[1:]
    if args and args[0] in ("--version", "-V"):
        print(get_version_string())
        return

    # Lazy import to avoid importing UI deps for --version
    from .app import TerminalApp
    app = TerminalApp()
    if args:
        app.load_file(args[0])
    app.run()


if __name__ == "__main__":  # pragma: no cover
    main()
