#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""File operations bound to one working directory."""

import pathlib
from typing import List

from crewflow.debug_logger import get_logger
from crewflow.errors import PathAccessError

# Directories never worth walking when searching a project
EXCLUDE_DIRS = {".git", ".crewflow", "node_modules", "__pycache__", ".venv", "venv", "vendor", "dist", "build"}
MAX_FILE_BYTES = 2 * 1024 * 1024

logger = get_logger()


class FileOps:
    """Read, write and search files inside ``root``."""

    def __init__(self, root: pathlib.Path):
        self.root = pathlib.Path(root).resolve()

    def _safe_path(self, rel: str) -> pathlib.Path:
        candidate = pathlib.Path(rel or ".")
        if not candidate.is_absolute():
            candidate = self.root / candidate
        resolved = candidate.resolve()
        if resolved != self.root and self.root not in resolved.parents:
            raise PathAccessError(f"access denied: path outside working directory: {rel}")
        return resolved

    def relative(self, path: pathlib.Path) -> str:
        return path.resolve().relative_to(self.root).as_posix()

    def read_file(self, path: str) -> str:
        """Return the file text.

        Raises:
            FileNotFoundError: the file does not exist.
            PathAccessError: the path escapes the working directory.
        """
        target = self._safe_path(path)
        if not target.is_file():
            raise FileNotFoundError(f"file not found: {path}")
        if target.stat().st_size > MAX_FILE_BYTES:
            raise PathAccessError(f"file too large to read: {path}")
        return target.read_text(encoding="utf-8", errors="replace")

    def write_file(self, path: str, content: str) -> str:
        """Write ``content``, creating parent directories. Returns the relative path."""
        if not path:
            raise PathAccessError("write_file requires a path")
        target = self._safe_path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        return self.relative(target)

    def exists(self, path: str) -> bool:
        try:
            return self._safe_path(path).exists()
        except PathAccessError:
            return False

    def list_files(self, directory: str = ".") -> List[str]:
        """Entry names of ``directory``; sub-directories carry a trailing '/'."""
        target = self._safe_path(directory)
        if not target.is_dir():
            raise FileNotFoundError(f"directory not found: {directory}")
        entries = []
        for entry in sorted(target.iterdir(), key=lambda item: item.name):
            entries.append(entry.name + "/" if entry.is_dir() else entry.name)
        return entries

    def find_files(self, pattern: str, directory: str = ".") -> List[str]:
        """Recursive case-insensitive substring match on file names."""
        base = self._safe_path(directory)
        if not base.is_dir():
            raise FileNotFoundError(f"directory not found: {directory}")
        needle = (pattern or "").lower()
        matches = []
        for path in sorted(base.rglob("*")):
            if any(part in EXCLUDE_DIRS for part in path.relative_to(base).parts):
                continue
            if path.is_file() and needle in path.name.lower():
                matches.append(self.relative(path))
        return matches
