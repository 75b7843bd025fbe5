"""Soft-fail filesystem probes used by every detection strategy.

These are expectation checks, not mandatory reads: a missing file, a
permission error or a path that is not a directory all fold into a negative
result (``False``, ``[]`` or ``None``) instead of raising.  Blocking calls run
in a worker thread so probes can be fanned out with ``asyncio.gather``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

# Generated output, VCS metadata, dependency caches and virtual environments.
SKIPPED_DIRECTORIES: frozenset[str] = frozenset(
    {
        "node_modules",
        ".git",
        "dist",
        "build",
        ".next",
        "coverage",
        "__pycache__",
        "venv",
        ".venv",
        "target",
    }
)

DEFAULT_MAX_DEPTH = 3
DEFAULT_MAX_BYTES = 10_000


# ─── Public API ──────────────────────────────────────────────


async def path_exists(path: Path) -> bool:
    """Return True if *path* exists (file or directory)."""
    return await asyncio.to_thread(_exists, path)


async def is_directory(path: Path) -> bool:
    """Return True if *path* is an existing directory."""
    return await asyncio.to_thread(_is_dir, path)


async def list_direct_children(path: Path) -> list[str]:
    """Return the sorted names of every entry directly inside *path*."""
    return await asyncio.to_thread(_children, path, False)


async def list_subdirectories(path: Path) -> list[str]:
    """Return the sorted names of the directories directly inside *path*."""
    return await asyncio.to_thread(_children, path, True)


async def list_all_files(
    root: Path,
    max_depth: int = DEFAULT_MAX_DEPTH,
    pattern: re.Pattern[str] | None = None,
) -> list[Path]:
    """Recursively list files under *root*, bounded by *max_depth*.

    Files directly inside *root* sit at depth 0; directories at depth
    ``max_depth`` are never entered.  Directories in SKIPPED_DIRECTORIES are
    pruned.  When *pattern* is given only file names it matches are returned.

    Args:
        root: Directory to walk.
        max_depth: Number of directory levels to descend into.
        pattern: Optional regex searched against each file name.

    Returns:
        File paths in deterministic (sorted, depth-first) order.
    """
    return await asyncio.to_thread(_walk, root, max_depth, pattern)


async def read_text_prefix(path: Path, max_bytes: int = DEFAULT_MAX_BYTES) -> str | None:
    """Read at most *max_bytes* of a file as UTF-8 text.

    Returns None if the file cannot be read.
    """
    return await asyncio.to_thread(_read_prefix, path, max_bytes)


async def read_json(path: Path) -> dict[str, object] | None:
    """Read and parse a JSON object.

    Returns None if the file is missing, unreadable, malformed or not an object.
    """
    text = await asyncio.to_thread(_read_text, path)
    if text is None:
        return None
    try:
        data = json.loads(text)
    except (ValueError, RecursionError):
        logger.warning("Malformed JSON at %s", path)
        return None
    return data if isinstance(data, dict) else None


# ─── Blocking helpers ────────────────────────────────────────


def _exists(path: Path) -> bool:
    try:
        path.stat()
    except OSError:
        return False
    return True


def _is_dir(path: Path) -> bool:
    try:
        return path.is_dir()
    except OSError:
        return False


def _children(path: Path, directories_only: bool) -> list[str]:
    try:
        entries = list(path.iterdir())
    except OSError as exc:
        logger.debug("Cannot list %s: %s", path, exc)
        return []
    if directories_only:
        entries = [e for e in entries if _is_dir(e)]
    return sorted(e.name for e in entries)


def _walk(root: Path, max_depth: int, pattern: re.Pattern[str] | None) -> list[Path]:
    results: list[Path] = []
    _walk_into(root, max_depth, 0, pattern, results)
    return results


def _walk_into(
    directory: Path,
    max_depth: int,
    depth: int,
    pattern: re.Pattern[str] | None,
    results: list[Path],
) -> None:
    if depth >= max_depth:
        return
    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        logger.debug("Cannot list %s: %s", directory, exc)
        return

    for entry in entries:
        try:
            if entry.is_dir():
                if entry.name not in SKIPPED_DIRECTORIES:
                    _walk_into(entry, max_depth, depth + 1, pattern, results)
            elif entry.is_file() and (pattern is None or pattern.search(entry.name)):
                results.append(entry)
        except OSError:
            continue


def _read_prefix(path: Path, max_bytes: int) -> str | None:
    try:
        with path.open("rb") as fh:
            data = fh.read(max_bytes)
    except OSError as exc:
        logger.debug("Could not read %s: %s", path, exc)
        return None
    return data.decode("utf-8", errors="replace")


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Could not read %s: %s", path, exc)
        return None
