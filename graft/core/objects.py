"""Immutable objects stored in the Graft object store."""

import time
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, NamedTuple

from .hash import hash_object

FILE_MODE = '100644'
EXECUTABLE_MODE = '100755'
TREE_MODE = '040000'


class FileEntry(NamedTuple):
    """A file in a flattened snapshot: blob hash plus mode."""
    hash: str
    mode: str = FILE_MODE


class GraftObject(ABC):
    """Base class for all stored objects."""

    kind = ''

    def __init__(self):
        self._hash: Optional[str] = None

    @abstractmethod
    def serialize(self) -> bytes:
        """
        Serialize object to bytes.

        Returns:
            bytes: Serialized object payload (without header)
        """

    @abstractmethod
    def deserialize(self, data: bytes) -> None:
        """
        Populate object from serialized payload.

        Args:
            data: Serialized object payload
        """

    @property
    def type(self) -> str:
        """Object kind name (blob, tree, commit)."""
        return self.kind

    @property
    def hash(self) -> str:
        """
        Content address of this object.

        The hash is cached; objects must not be changed once hashed.
        """
        if self._hash is None:
            self._hash = hash_object(self.kind, self.serialize())
        return self._hash

    @classmethod
    def from_payload(cls, data: bytes) -> 'GraftObject':
        """Build an object of this kind from its payload."""
        obj = cls()
        obj.deserialize(data)
        return obj


class Blob(GraftObject):
    """
    Represents file content.

    A blob stores raw bytes without any metadata like filename or mode.
    """

    kind = 'blob'

    def __init__(self, data: Optional[bytes] = None):
        super().__init__()
        self.data = data or b''

    def serialize(self) -> bytes:
        return self.data

    def deserialize(self, data: bytes) -> None:
        self.data = data
        self._hash = None

    def __repr__(self) -> str:
        return f"Blob(hash={self.hash[:7]}, size={len(self.data)})"


class TreeEntry:
    """
    Represents a single entry in a tree.

    Each entry contains:
    - mode: '100644' for files, '100755' for executables, '040000' for directories
    - type: 'blob' or 'tree'
    - hash: hash of the referenced object
    - name: single path component
    """

    def __init__(self, mode: str, obj_type: str, obj_hash: str, name: str):
        self.mode = mode
        self.type = obj_type
        self.hash = obj_hash
        self.name = name

    def __eq__(self, other) -> bool:
        if not isinstance(other, TreeEntry):
            return NotImplemented
        return (self.mode, self.type, self.hash, self.name) == \
            (other.mode, other.type, other.hash, other.name)

    def __lt__(self, other: 'TreeEntry') -> bool:
        return self.name < other.name

    def __repr__(self) -> str:
        return f"TreeEntry({self.mode} {self.type} {self.hash[:7]} {self.name})"


class Tree(GraftObject):
    """
    Represents a directory snapshot.

    Entries are keyed by name and listed sorted, so two trees describing
    the same directory state serialize (and hash) identically no matter in
    which order their entries were added.
    """

    kind = 'tree'

    def __init__(self):
        super().__init__()
        self._entries: Dict[str, TreeEntry] = {}

    @property
    def entries(self) -> List[TreeEntry]:
        """Entries sorted by name."""
        return sorted(self._entries.values())

    def add_entry(self, mode: str, obj_type: str, obj_hash: str, name: str) -> None:
        """
        Add entry to tree.

        Args:
            mode: File mode
            obj_type: Object type ('blob' or 'tree')
            obj_hash: Object hash
            name: Entry name

        Raises:
            ValueError: If the name is not a single path component or is taken
        """
        if not name or '/' in name or '\0' in name or name in ('.', '..'):
            raise ValueError(f"Invalid tree entry name: {name!r}")
        if obj_type not in ('blob', 'tree'):
            raise ValueError(f"Invalid tree entry type: {obj_type}")
        if name in self._entries:
            raise ValueError(f"Duplicate tree entry: {name}")

        self._entries[name] = TreeEntry(mode, obj_type, obj_hash, name)
        self._hash = None

    def get(self, name: str) -> Optional[TreeEntry]:
        """Look up an entry by name."""
        return self._entries.get(name)

    def serialize(self) -> bytes:
        """
        Serialize tree in canonical order.

        Format: <mode> <name>\\0<20-byte hash> for each entry, sorted by name.
        """
        parts = []
        for entry in self.entries:
            parts.append(f"{entry.mode} {entry.name}".encode())
            parts.append(b'\0')
            parts.append(bytes.fromhex(entry.hash))
        return b''.join(parts)

    def deserialize(self, data: bytes) -> None:
        self._entries = {}
        pos = 0

        while pos < len(data):
            space_pos = data.index(b' ', pos)
            mode = data[pos:space_pos].decode()

            null_pos = data.index(b'\0', space_pos)
            name = data[space_pos + 1:null_pos].decode()

            obj_hash = data[null_pos + 1:null_pos + 21].hex()
            obj_type = 'tree' if mode == TREE_MODE else 'blob'
            self.add_entry(mode, obj_type, obj_hash, name)

            pos = null_pos + 21

        self._hash = None

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Tree(entries={len(self._entries)})"


class Commit(GraftObject):
    """
    Represents a snapshot with history.

    A commit captures:
    - Snapshot of project (tree hash)
    - Ordered parent commit hashes (zero for a root commit, two for a merge)
    - Author and committer identity with timestamps
    - Commit message

    The parent list is part of the hashed content, so two commits with the
    same tree and message but different parents are different objects.
    """

    kind = 'commit'

    def __init__(self):
        super().__init__()
        self.tree: str = ''
        self.parents: List[str] = []
        self.author: str = ''
        self.author_time: int = 0
        self.committer: str = ''
        self.committer_time: int = 0
        self.timezone: str = '+0000'
        self.message: str = ''

    def serialize(self) -> bytes:
        """
        Serialize commit.

        Format:
        tree <tree-hash>
        parent <parent-hash>  (zero or more)
        author Name <email> <timestamp> <timezone>
        committer Name <email> <timestamp> <timezone>

        <commit message>
        """
        lines = [f'tree {self.tree}']
        lines.extend(f'parent {parent}' for parent in self.parents)
        lines.append(f'author {self.author} {self.author_time} {self.timezone}')
        lines.append(f'committer {self.committer} {self.committer_time} {self.timezone}')
        lines.append('')
        lines.append(self.message)
        return '\n'.join(lines).encode()

    def deserialize(self, data: bytes) -> None:
        lines = data.decode().split('\n')
        self.parents = []

        message_start = len(lines)
        for i, line in enumerate(lines):
            if not line:
                message_start = i + 1
                break

            if line.startswith('tree '):
                self.tree = line[5:]
            elif line.startswith('parent '):
                self.parents.append(line[7:])
            elif line.startswith('author '):
                self.author, when, self.timezone = line[7:].rsplit(' ', 2)
                self.author_time = int(when)
            elif line.startswith('committer '):
                self.committer, when, self.timezone = line[10:].rsplit(' ', 2)
                self.committer_time = int(when)

        self.message = '\n'.join(lines[message_start:])
        self._hash = None

    @property
    def summary(self) -> str:
        """First line of the message."""
        return self.message.split('\n', 1)[0]

    @classmethod
    def create(
        cls,
        tree_hash: str,
        parent_hashes: List[str],
        author: str,
        message: str,
        committer: Optional[str] = None,
        timestamp: Optional[int] = None,
        author_time: Optional[int] = None,
        timezone: str = '+0000'
    ) -> 'Commit':
        """
        Create a new commit.

        Args:
            tree_hash: Hash of tree object
            parent_hashes: Ordered parent commit hashes
            author: Author name and email (e.g., "Name <email>")
            message: Commit message
            committer: Committer identity (defaults to author)
            timestamp: Commit time (defaults to now)
            author_time: Authoring time (defaults to timestamp), kept when replaying
            timezone: Timezone offset (e.g., "+0000", "-0500")

        Returns:
            Commit: New commit object
        """
        if timestamp is None:
            timestamp = int(time.time())

        commit = cls()
        commit.tree = tree_hash
        commit.parents = list(parent_hashes)
        commit.author = author
        commit.committer = committer or author
        commit.author_time = timestamp if author_time is None else author_time
        commit.committer_time = timestamp
        commit.timezone = timezone
        commit.message = message
        return commit

    def __repr__(self) -> str:
        parent_info = f", parents={len(self.parents)}" if self.parents else ""
        return f"Commit(hash={self.hash[:7]}{parent_info}, msg='{self.summary[:50]}')"


OBJECT_TYPES = {cls.kind: cls for cls in (Blob, Tree, Commit)}
