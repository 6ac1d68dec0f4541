"""Find the Python source files to scan."""

import os
from collections.abc import Iterable, Iterator
from pathlib import Path


def is_test_module(name: str) -> bool:
    return name == "conftest.py" or name.startswith("test_") or name.endswith("_test.py")


def iter_source_files(root: Path, exclude_dirs: Iterable[str] = ()) -> Iterator[Path]:
    """Yield ``.py`` files under ``root`` in a stable, sorted order.

    Hidden directories, ``exclude_dirs`` and test modules are skipped. The
    root itself is always scanned, even when its name would be excluded.
    """
    if root.is_file():
        if root.suffix == ".py":
            yield root
        return

    excluded = set(exclude_dirs)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in excluded)
        for filename in sorted(filenames):
            if filename.endswith(".py") and not is_test_module(filename):
                yield Path(dirpath) / filename
