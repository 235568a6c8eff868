"""Path utilities for canonicalizing files handed to the signing service."""

from __future__ import annotations

from pathlib import Path


def canonicalize(path: Path | str) -> Path:
    """Expand ``~`` and resolve ``path`` to an absolute path."""

    return Path(path).expanduser().resolve()


def resolve_existing_file(path: Path | str) -> Path:
    """Canonicalize ``path`` and ensure it names an existing regular file.

    Raises:
        FileNotFoundError: If nothing exists at the path, or it is not a file
    """

    resolved = canonicalize(path)
    if not resolved.is_file():
        raise FileNotFoundError(str(resolved))
    return resolved
