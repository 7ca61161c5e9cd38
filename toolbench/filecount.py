"""Count the regular files below a directory, listing each one."""

from __future__ import annotations

import os
import sys
from typing import Iterator


def iter_regular_files(root: str) -> Iterator[str]:
    """Yield ``root + name`` for every regular file, descending into subdirectories.

    Paths are built by plain concatenation, subdirectories adding a trailing
    ``/``; pass ``root`` with a trailing separator. Symbolic links are not
    followed or counted. A directory that cannot be read raises ``OSError``.
    """
    root = os.fspath(root)
    with os.scandir(root) as entries:
        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                yield from iter_regular_files(f"{root}{entry.name}/")
            elif entry.is_file(follow_symlinks=False):
                yield f"{root}{entry.name}"


def count_files(root: str) -> int:
    """Number of regular files below ``root``."""
    return sum(1 for _ in iter_regular_files(root))


def main(argv: list[str] | None = None) -> int:
    """Print every regular file below the given directory and the total."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print("wrong usage")
        return 1
    root = args[0]
    total = 0
    try:
        for path in iter_regular_files(root):
            print(path)
            total += 1
    except OSError as exc:
        print(f"fail to open dir: {exc}", file=sys.stderr)
        return 1
    print(f"{root} ha {total} files")
    return 0


if __name__ == "__main__":
    sys.exit(main())