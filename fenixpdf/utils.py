"""Small helpers shared across :mod:`fenixpdf`."""

from __future__ import annotations

import random
import string
import time
from pathlib import Path
from typing import Iterable, Union

PathLike = Union[str, Path]

_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_id(prefix: str) -> str:
    """Return an identifier of the form ``<prefix>-<epoch ms>-<9 base36 chars>``."""

    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def timestamp_slug() -> str:
    """Return the current local time as ``YYYY-MM-DDTHH-MM-SS``."""

    return time.strftime("%Y-%m-%dT%H-%M-%S")


def ensure_path(path: PathLike) -> Path:
    """Return a :class:`~pathlib.Path` instance for *path*.

    User-home references are expanded and relative paths are resolved against
    the current working directory.
    """

    return Path(path).expanduser().resolve(strict=False)


def ensure_iterable(paths: Iterable[PathLike]) -> list[Path]:
    """Validate and convert an iterable of paths to :class:`Path` objects."""

    return [ensure_path(path) for path in paths]


def sizeof_fmt(num_bytes: float) -> str:
    """Format *num_bytes* into a human-friendly string."""

    step_unit = 1024.0
    for unit in ("bytes", "KiB", "MiB", "GiB"):
        if abs(num_bytes) < step_unit:
            return f"{num_bytes:3.1f} {unit}"
        num_bytes /= step_unit
    return f"{num_bytes:.1f} TiB"


def truncate(text: str, limit: int = 500) -> str:
    """Return the first *limit* characters of *text* followed by ``...``."""

    return text[:limit] + "..."


__all__ = [
    "PathLike",
    "ensure_iterable",
    "ensure_path",
    "new_id",
    "sizeof_fmt",
    "timestamp_slug",
    "truncate",
]
