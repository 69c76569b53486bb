"""Index (staging area) data structure and on-disk format."""

import hashlib
import os
import struct
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional

from .errors import CorruptObject
from .objects import FileEntry

SIGNATURE = b'DIRC'
VERSION = 2

STAGE_RESOLVED = 0
STAGE_BASE = 1
STAGE_OURS = 2
STAGE_THEIRS = 3

_ENTRY_FORMAT = '>I20sH'
_ENTRY_SIZE = struct.calcsize(_ENTRY_FORMAT)


def normalize_path(path: str) -> str:
    """
    Normalize a repository-relative path to slash-separated form.

    Raises:
        ValueError: If the path is empty, absolute or escapes the repository
    """
    path = str(path).replace('\\', '/')
    while path.startswith('./'):
        path = path[2:]
    pure = PurePosixPath(path)
    if not path or pure.is_absolute() or any(p in ('', '.', '..') for p in path.split('/')):
        raise ValueError(f"Invalid repository path: {path!r}")
    if pure.parts[0] == '.graft':
        raise ValueError(f"Path inside repository metadata: {path!r}")
    return pure.as_posix()


def mode_to_int(mode: str) -> int:
    return int(mode, 8)


def mode_to_str(mode: int) -> str:
    return f"{mode:06o}"


@dataclass
class IndexEntry:
    """
    A staged file.

    Stage 0 holds the content the next commit will capture. Stages 1-3
    record the base, ours and theirs versions of a conflicted path.
    """
    path: str
    sha1: str
    mode: int = 0o100644
    stage: int = STAGE_RESOLVED

    def to_file_entry(self) -> FileEntry:
        return FileEntry(self.sha1, mode_to_str(self.mode))

    def __repr__(self) -> str:
        stage = f" [{self.stage}]" if self.stage else ""
        return f"IndexEntry({self.mode:o} {self.sha1[:7]} {self.path}{stage})"


class Index:
    """
    Staging index.

    ``entries`` maps each path to its stage-0 entry and always describes a
    complete tree. While a merge-like operation is paused, ``conflicts``
    maps each conflicted path to its stage 1-3 entries; the stage-0 entry
    for such a path holds the conflict-marked (or surviving) content.
    """

    def __init__(self):
        self.entries: Dict[str, IndexEntry] = {}
        self.conflicts: Dict[str, Dict[int, IndexEntry]] = {}

    @classmethod
    def from_files(cls, files: Dict[str, FileEntry]) -> 'Index':
        """Create an index holding exactly the given snapshot."""
        index = cls()
        for path, entry in files.items():
            index.add_entry(path, entry.hash, mode_to_int(entry.mode))
        return index

    def add_entry(self, path: str, sha1: str, mode: int = 0o100644) -> None:
        """
        Add or update a stage-0 entry.

        Args:
            path: Repository-relative path
            sha1: Blob hash
            mode: File mode
        """
        self.entries[path] = IndexEntry(path=path, sha1=sha1, mode=mode)

    def remove_entry(self, path: str) -> bool:
        """Remove a path, returning whether it was present."""
        self.conflicts.pop(path, None)
        return self.entries.pop(path, None) is not None

    def get_entry(self, path: str) -> Optional[IndexEntry]:
        return self.entries.get(path)

    def set_conflict(
        self,
        path: str,
        base: Optional[FileEntry],
        ours: Optional[FileEntry],
        theirs: Optional[FileEntry]
    ) -> None:
        """Record the three competing versions of a path."""
        stages = {}
        for stage, version in ((STAGE_BASE, base), (STAGE_OURS, ours), (STAGE_THEIRS, theirs)):
            if version is not None:
                stages[stage] = IndexEntry(path, version.hash, mode_to_int(version.mode), stage)
        self.conflicts[path] = stages

    def resolve(self, path: str) -> None:
        """Mark a conflicted path as resolved."""
        self.conflicts.pop(path, None)

    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def conflicted_paths(self) -> List[str]:
        return sorted(self.conflicts)

    def to_files(self) -> Dict[str, FileEntry]:
        """Snapshot of stage-0 entries."""
        return {path: entry.to_file_entry() for path, entry in self.entries.items()}

    def clear(self) -> None:
        self.entries.clear()
        self.conflicts.clear()

    def _all_entries(self) -> List[IndexEntry]:
        entries = list(self.entries.values())
        for stages in self.conflicts.values():
            entries.extend(stages.values())
        return sorted(entries, key=lambda e: (e.path, e.stage))

    def write(self, index_path) -> None:
        """
        Write index to disk.

        Format:
        - Header: 'DIRC' + version (4 bytes) + entry count (4 bytes)
        - Entries sorted by (path, stage): mode, 20-byte hash, flags
          (stage in bits 12-13, name length in bits 0-11), NUL-terminated
          path, padded to 8 bytes
        - Trailer: SHA-1 of everything before it
        """
        entries = self._all_entries()
        content = bytearray()
        content.extend(SIGNATURE)
        content.extend(struct.pack('>II', VERSION, len(entries)))

        for entry in entries:
            name = entry.path.encode()
            flags = (entry.stage << 12) | min(len(name), 0xFFF)
            content.extend(struct.pack(_ENTRY_FORMAT, entry.mode, bytes.fromhex(entry.sha1), flags))
            content.extend(name)
            content.extend(b'\x00')
            entry_len = _ENTRY_SIZE + len(name) + 1
            content.extend(b'\x00' * ((8 - entry_len % 8) % 8))

        content.extend(hashlib.sha1(content).digest())

        index_path = Path(index_path)
        tmp = index_path.with_name(index_path.name + '.tmp')
        tmp.write_bytes(bytes(content))
        os.replace(tmp, index_path)

    @classmethod
    def read(cls, index_path) -> 'Index':
        """
        Read index from disk; a missing file yields an empty index.

        Raises:
            CorruptObject: On checksum or signature mismatch
        """
        index = cls()
        index_path = Path(index_path)
        if not index_path.exists():
            return index

        data = index_path.read_bytes()
        content, checksum = data[:-20], data[-20:]
        if hashlib.sha1(content).digest() != checksum:
            raise CorruptObject("Index checksum mismatch")
        if content[:4] != SIGNATURE:
            raise CorruptObject(f"Invalid index signature: {content[:4]!r}")

        _, count = struct.unpack('>II', content[4:12])
        offset = 12

        for _ in range(count):
            mode, raw_hash, flags = struct.unpack(_ENTRY_FORMAT, content[offset:offset + _ENTRY_SIZE])
            offset += _ENTRY_SIZE

            path_end = content.index(b'\x00', offset)
            path = content[offset:path_end].decode()
            entry_len = _ENTRY_SIZE + (path_end - offset) + 1
            offset = path_end + 1 + (8 - entry_len % 8) % 8

            entry = IndexEntry(path=path, sha1=raw_hash.hex(), mode=mode, stage=(flags >> 12) & 0x3)
            if entry.stage == STAGE_RESOLVED:
                index.entries[path] = entry
            else:
                index.conflicts.setdefault(path, {})[entry.stage] = entry

        return index

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, path: str) -> bool:
        return path in self.entries

    def __repr__(self) -> str:
        return f"Index(entries={len(self.entries)}, conflicts={len(self.conflicts)})"
