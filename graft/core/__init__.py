"""Core functionality for Graft.

This module contains the core data structures:
- Graft objects (Blob, Tree, Commit) and the content-addressed object store
- Repository management
- Index/staging area format
- Reference management with compare-and-swap updates
- Persisted operation state
- Configuration management

For engines like merge, rebase, reset and stash, see graft.operations
"""

from graft.core.objects import GraftObject, Blob, Tree, TreeEntry, Commit, FileEntry
from graft.core.store import ObjectStore
from graft.core.repository import Repository
from graft.core.hash import hash_bytes, hash_object
from graft.core.index import Index, IndexEntry
from graft.core.refs import RefManager, HeadState
from graft.core.config import Config, get_config
from graft.core.worktree import WorkingTree, FileSystemWorkingTree, MemoryWorkingTree

__all__ = [
    'GraftObject',
    'Blob',
    'Tree',
    'TreeEntry',
    'Commit',
    'FileEntry',
    'ObjectStore',
    'Repository',
    'Index',
    'IndexEntry',
    'RefManager',
    'HeadState',
    'Config',
    'get_config',
    'WorkingTree',
    'FileSystemWorkingTree',
    'MemoryWorkingTree',
    'hash_bytes',
    'hash_object',
]
