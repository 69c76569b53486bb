"""Working-tree boundary.

The engine never touches files directly; it reads and writes the working
snapshot through a WorkingTree. FileSystemWorkingTree maps it onto a
directory, MemoryWorkingTree keeps it in a dict for embedding and tests.
"""

import os
import stat
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .objects import EXECUTABLE_MODE, FILE_MODE

METADATA_DIR = '.graft'


class WorkingTree(ABC):
    """Per-path access to the working snapshot."""

    @abstractmethod
    def read(self, path: str) -> Optional[bytes]:
        """Content of a file, or None if it does not exist."""

    @abstractmethod
    def write(self, path: str, data: bytes, mode: str = FILE_MODE) -> None:
        """Create or overwrite a file."""

    @abstractmethod
    def delete(self, path: str) -> None:
        """Remove a file if present."""

    @abstractmethod
    def paths(self) -> List[str]:
        """All file paths, sorted."""

    def mode(self, path: str) -> str:
        return FILE_MODE

    def snapshot(self, paths: Optional[Iterable[str]] = None) -> Dict[str, bytes]:
        """Contents of the given (or all) existing paths."""
        result = {}
        for path in (self.paths() if paths is None else paths):
            data = self.read(path)
            if data is not None:
                result[path] = data
        return result


class FileSystemWorkingTree(WorkingTree):
    """Working snapshot backed by a directory, ignoring the metadata dir."""

    def __init__(self, root):
        self.root = Path(root)

    def _full(self, path: str) -> Path:
        return self.root / path

    def read(self, path: str) -> Optional[bytes]:
        full = self._full(path)
        if not full.is_file():
            return None
        return full.read_bytes()

    def write(self, path: str, data: bytes, mode: str = FILE_MODE) -> None:
        full = self._full(path)
        if full.is_dir():
            raise IsADirectoryError(f"Cannot write file over directory: {path}")
        full.parent.mkdir(parents=True, exist_ok=True)
        full.write_bytes(data)

        current = full.stat().st_mode
        if mode == EXECUTABLE_MODE:
            full.chmod(current | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        else:
            full.chmod(current & ~(stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))

    def delete(self, path: str) -> None:
        full = self._full(path)
        if full.is_file():
            full.unlink()

        # Prune directories left empty
        parent = full.parent
        while parent != self.root and parent.is_dir() and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent

    def paths(self) -> List[str]:
        result = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            if Path(dirpath) == self.root and METADATA_DIR in dirnames:
                dirnames.remove(METADATA_DIR)
            for name in filenames:
                rel = (Path(dirpath) / name).relative_to(self.root)
                result.append(rel.as_posix())
        return sorted(result)

    def mode(self, path: str) -> str:
        full = self._full(path)
        if full.is_file() and full.stat().st_mode & stat.S_IXUSR:
            return EXECUTABLE_MODE
        return FILE_MODE

    def __repr__(self) -> str:
        return f"FileSystemWorkingTree({self.root})"


class MemoryWorkingTree(WorkingTree):
    """Working snapshot held in memory."""

    def __init__(self, files: Optional[Dict[str, bytes]] = None):
        self.files: Dict[str, bytes] = dict(files or {})
        self.modes: Dict[str, str] = {}

    def read(self, path: str) -> Optional[bytes]:
        return self.files.get(path)

    def write(self, path: str, data: bytes, mode: str = FILE_MODE) -> None:
        self.files[path] = data
        self.modes[path] = mode

    def delete(self, path: str) -> None:
        self.files.pop(path, None)
        self.modes.pop(path, None)

    def paths(self) -> List[str]:
        return sorted(self.files)

    def mode(self, path: str) -> str:
        return self.modes.get(path, FILE_MODE)

    def __repr__(self) -> str:
        return f"MemoryWorkingTree(files={len(self.files)})"
