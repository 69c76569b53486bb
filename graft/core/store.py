"""Content-addressed object store."""

import logging
import os
import tempfile
import zlib
from pathlib import Path
from typing import Dict, Iterator, Optional

from .errors import CorruptObject, ObjectNotFound
from .objects import (
    OBJECT_TYPES, TREE_MODE, Blob, Commit, FileEntry, GraftObject, Tree,
)

logger = logging.getLogger(__name__)


class ObjectStore:
    """
    Append-only storage of blobs, trees and commits keyed by content hash.

    Objects live under ``objects/<2 hex>/<38 hex>`` compressed with zlib,
    in the format ``<kind> <size>\\0<payload>``. Writes are idempotent and
    atomic: an object file only ever appears fully written, and storing
    the same content twice keeps a single copy.

    An object may only be stored once everything it references is already
    present, so the graph on disk is never observably broken.
    """

    def __init__(self, objects_dir: Path):
        self.objects_dir = Path(objects_dir)

    def object_path(self, obj_hash: str) -> Path:
        """
        Get filesystem path for an object.

        Args:
            obj_hash: 40-character hash

        Returns:
            Path: Full path to object file
        """
        return self.objects_dir / obj_hash[:2] / obj_hash[2:]

    def exists(self, obj_hash: str) -> bool:
        """Check if object is stored."""
        if len(obj_hash) != 40:
            return False
        return self.object_path(obj_hash).exists()

    def put(self, obj: GraftObject) -> str:
        """
        Store an object.

        Args:
            obj: Object to store

        Returns:
            str: Hash of the object

        Raises:
            ObjectNotFound: If the object references content not yet stored
        """
        obj_hash = obj.hash
        path = self.object_path(obj_hash)

        if path.exists():
            return obj_hash

        self._check_references(obj)

        payload = obj.serialize()
        content = f"{obj.kind} {len(payload)}\0".encode() + payload
        path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix='.tmp-')
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(zlib.compress(content))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.debug("stored %s %s", obj.kind, obj_hash)
        return obj_hash

    def put_content(self, content: bytes, kind: str = 'blob') -> str:
        """
        Store raw payload of the given kind.

        Args:
            content: Serialized payload
            kind: 'blob', 'tree' or 'commit'

        Returns:
            str: Hash of the stored object
        """
        if kind not in OBJECT_TYPES:
            raise ValueError(f"Unknown object kind: {kind}")
        return self.put(OBJECT_TYPES[kind].from_payload(content))

    def _check_references(self, obj: GraftObject) -> None:
        if isinstance(obj, Tree):
            for entry in obj.entries:
                if not self.exists(entry.hash):
                    raise ObjectNotFound(entry.hash, entry.type)
        elif isinstance(obj, Commit):
            if not self.exists(obj.tree):
                raise ObjectNotFound(obj.tree, 'tree')
            for parent in obj.parents:
                if not self.exists(parent):
                    raise ObjectNotFound(parent, 'commit')

    def get(self, obj_hash: str) -> GraftObject:
        """
        Read object from the store.

        Args:
            obj_hash: 40-character hash

        Returns:
            GraftObject: Deserialized Blob, Tree, or Commit

        Raises:
            ObjectNotFound: If no such object
            CorruptObject: If the stored data is malformed
        """
        if not self.exists(obj_hash):
            raise ObjectNotFound(obj_hash)

        try:
            content = zlib.decompress(self.object_path(obj_hash).read_bytes())
        except zlib.error as e:
            raise CorruptObject(f"Object {obj_hash} is not valid zlib data") from e

        null_idx = content.find(b'\0')
        if null_idx < 0:
            raise CorruptObject(f"Object {obj_hash} has no header")

        header = content[:null_idx].decode()
        payload = content[null_idx + 1:]

        try:
            kind, size_str = header.split(' ', 1)
            size = int(size_str)
        except ValueError:
            raise CorruptObject(f"Invalid object header: {header}")

        if len(payload) != size:
            raise CorruptObject(f"Object size mismatch: expected {size}, got {len(payload)}")
        if kind not in OBJECT_TYPES:
            raise CorruptObject(f"Unknown object type: {kind}")

        return OBJECT_TYPES[kind].from_payload(payload)

    def _get_typed(self, obj_hash: str, cls):
        obj = self.get(obj_hash)
        if not isinstance(obj, cls):
            raise CorruptObject(f"Object {obj_hash} is a {obj.kind}, not a {cls.kind}")
        return obj

    def get_blob(self, obj_hash: str) -> Blob:
        return self._get_typed(obj_hash, Blob)

    def get_tree(self, obj_hash: str) -> Tree:
        return self._get_typed(obj_hash, Tree)

    def get_commit(self, obj_hash: str) -> Commit:
        return self._get_typed(obj_hash, Commit)

    def iter_hashes(self) -> Iterator[str]:
        """Iterate over every stored object hash."""
        if not self.objects_dir.exists():
            return
        for subdir in sorted(self.objects_dir.iterdir()):
            if not subdir.is_dir() or len(subdir.name) != 2:
                continue
            for obj_file in sorted(subdir.iterdir()):
                if not obj_file.name.startswith('.tmp-'):
                    yield subdir.name + obj_file.name

    def count(self) -> int:
        return sum(1 for _ in self.iter_hashes())

    def find_by_prefix(self, prefix: str) -> Optional[str]:
        """
        Expand an abbreviated hash.

        Returns:
            The full hash if exactly one stored object matches, else None
        """
        prefix = prefix.lower()
        if len(prefix) == 40:
            return prefix if self.exists(prefix) else None

        subdir = self.objects_dir / prefix[:2]
        if len(prefix) < 2 or not subdir.is_dir():
            return None

        matches = [prefix[:2] + f.name for f in subdir.iterdir()
                   if (prefix[:2] + f.name).startswith(prefix)]
        return matches[0] if len(matches) == 1 else None

    def flatten_tree(self, tree_hash: str, prefix: str = '') -> Dict[str, FileEntry]:
        """
        Get all files in a tree as a flat path mapping.

        Args:
            tree_hash: Root tree hash
            prefix: Path prefix for nested calls

        Returns:
            Dict mapping slash-separated file paths to FileEntry
        """
        files: Dict[str, FileEntry] = {}
        for entry in self.get_tree(tree_hash).entries:
            path = f"{prefix}/{entry.name}" if prefix else entry.name
            if entry.type == 'tree':
                files.update(self.flatten_tree(entry.hash, path))
            else:
                files[path] = FileEntry(entry.hash, entry.mode)
        return files

    def commit_files(self, commit_hash: Optional[str]) -> Dict[str, FileEntry]:
        """Flattened snapshot of a commit; empty for None (unborn branch)."""
        if commit_hash is None:
            return {}
        return self.flatten_tree(self.get_commit(commit_hash).tree)

    def build_tree(self, files: Dict[str, FileEntry]) -> str:
        """
        Fold a flat path mapping into nested trees and store them.

        Subtrees are written before the trees that reference them.

        Args:
            files: Mapping of slash-separated paths to FileEntry

        Returns:
            str: Hash of the root tree
        """
        root: dict = {}
        for path, entry in files.items():
            parts = path.split('/')
            node = root
            for part in parts[:-1]:
                child = node.setdefault(part, {})
                if not isinstance(child, dict):
                    raise ValueError(f"Path conflicts with a file: {path}")
                node = child
            if isinstance(node.get(parts[-1]), dict):
                raise ValueError(f"Path conflicts with a directory: {path}")
            node[parts[-1]] = entry

        return self._write_tree_recursive(root)

    def _write_tree_recursive(self, node: dict) -> str:
        tree = Tree()
        for name, value in sorted(node.items()):
            if isinstance(value, dict):
                tree.add_entry(TREE_MODE, 'tree', self._write_tree_recursive(value), name)
            else:
                tree.add_entry(value.mode, 'blob', value.hash, name)
        return self.put(tree)
