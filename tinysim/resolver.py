"""Look up relative file paths against an ordered list of search directories."""

from __future__ import annotations

import functools
import logging
import os
from pathlib import Path
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)

_PROJECT_DIR = Path(__file__).resolve().parent.parent


class Resolver:
    """An ordered, editable list of search directories."""

    def __init__(self, paths: Iterable[os.PathLike | str] | None = None) -> None:
        if paths is None:
            paths = (Path.cwd(), _PROJECT_DIR)
        self._paths: list[Path] = [Path(p) for p in paths]

    def __len__(self) -> int:
        return len(self._paths)

    def __iter__(self) -> Iterator[Path]:
        return iter(self._paths)

    def __getitem__(self, index: int) -> Path:
        return self._paths[index]

    def __setitem__(self, index: int, path: os.PathLike | str) -> None:
        self._paths[index] = Path(path)

    def erase(self, index: int) -> None:
        del self._paths[index]

    def prepend(self, path: os.PathLike | str) -> None:
        self._paths.insert(0, Path(path))

    def append(self, path: os.PathLike | str) -> None:
        self._paths.append(Path(path))

    def resolve(self, value: os.PathLike | str) -> tuple[Path | None, bool]:
        """Return ``(path, exists)``.

        Absolute paths are returned as they are. Relative paths are joined to
        each search directory; the last existing match wins, and a warning is
        logged when more than one matches. With no match the path is None.
        """
        value = Path(value)
        if value.is_absolute():
            return value, value.exists()

        found: Path | None = None
        for directory in self._paths:
            combined = directory / value
            if combined.exists():
                if found is not None:
                    logger.warning("Resolver.resolve(): more than one path is valid.")
                found = combined
        return found, found is not None

    def __str__(self) -> str:
        body = ",\n".join(f'  "{p}"' for p in self._paths)
        return f"Resolver[\n{body}\n]" if body else "Resolver[\n]"


@functools.lru_cache(maxsize=None)
def get_file_resolver() -> Resolver:
    """The process-wide resolver."""
    return Resolver()