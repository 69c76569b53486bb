"""Repository management for Graft."""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from .errors import InvalidState, NotARepository, RepositoryExists
from .index import Index
from .objects import Commit, FileEntry
from .state import MERGING, OperationStore
from .store import ObjectStore
from .worktree import FileSystemWorkingTree, WorkingTree

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = 'main'


class Repository:
    """
    Represents a Graft repository.

    A repository owns the .graft directory and wires together the object
    store, refs, staging index, operation state and the engines that work
    on them. Engines are created lazily on first access.
    """

    def __init__(self, path: str = '.', worktree: Optional[WorkingTree] = None):
        """
        Initialize repository.

        Args:
            path: Path to repository root (defaults to current directory)
            worktree: Working-tree implementation (defaults to the directory at path)
        """
        self.root = Path(path).resolve()
        self.graft_dir = self.root / '.graft'
        self.objects_dir = self.graft_dir / 'objects'
        self.refs_dir = self.graft_dir / 'refs'
        self.heads_dir = self.refs_dir / 'heads'
        self.head_file = self.graft_dir / 'HEAD'
        self.index_file = self.graft_dir / 'index'
        self.config_file = self.graft_dir / 'config'
        self.stash_file = self.graft_dir / 'stash.json'
        self.operation_file = self.graft_dir / 'operation.json'

        self.store = ObjectStore(self.objects_dir)
        self.operations = OperationStore(self.operation_file)
        self.worktree = worktree if worktree is not None else FileSystemWorkingTree(self.root)

        self._refs = None
        self._config = None
        self._graph = None
        self._diff = None
        self._staging = None
        self._merge = None
        self._rebase = None
        self._reset = None
        self._stash = None

    @property
    def refs(self):
        """Get RefManager instance."""
        if self._refs is None:
            from .refs import RefManager
            self._refs = RefManager(self)
        return self._refs

    @property
    def config(self):
        """Get Config instance."""
        if self._config is None:
            from .config import Config
            self._config = Config(self.config_file)
        return self._config

    @property
    def graph(self):
        """Get CommitGraph instance."""
        if self._graph is None:
            from graft.operations.graph import CommitGraph
            self._graph = CommitGraph(self.store)
        return self._graph

    @property
    def diff(self):
        """Get DiffEngine instance."""
        if self._diff is None:
            from graft.operations.diff import DiffEngine
            self._diff = DiffEngine(self)
        return self._diff

    @property
    def staging(self):
        """Get StagingArea instance."""
        if self._staging is None:
            from graft.operations.staging import StagingArea
            self._staging = StagingArea(self)
        return self._staging

    @property
    def merge(self):
        """Get MergeEngine instance."""
        if self._merge is None:
            from graft.operations.merge import MergeEngine
            self._merge = MergeEngine(self)
        return self._merge

    @property
    def rebase(self):
        """Get RebaseEngine instance."""
        if self._rebase is None:
            from graft.operations.rebase import RebaseEngine
            self._rebase = RebaseEngine(self)
        return self._rebase

    @property
    def reset(self):
        """Get ResetEngine instance."""
        if self._reset is None:
            from graft.operations.reset import ResetEngine
            self._reset = ResetEngine(self)
        return self._reset

    @property
    def stash(self):
        """Get StashStack instance."""
        if self._stash is None:
            from graft.operations.stash import StashStack
            self._stash = StashStack(self)
        return self._stash

    def init(self, initial_branch: str = DEFAULT_BRANCH) -> 'Repository':
        """
        Initialize a new repository.

        Creates the .graft directory structure:
        .graft/
        ├── objects/       # Object database
        ├── refs/heads/    # Branch references
        ├── HEAD           # Current branch/commit
        └── config         # Repository configuration

        Returns:
            Repository: self for method chaining

        Raises:
            RepositoryExists: If repository already exists
        """
        if self.graft_dir.exists():
            raise RepositoryExists(self.graft_dir)

        self.objects_dir.mkdir(parents=True)
        self.heads_dir.mkdir(parents=True)
        self.refs.set_head_unborn(initial_branch)
        self.config_file.write_text('[core]\nrepositoryformatversion = 0\n\n')

        logger.info("initialized empty repository in %s", self.graft_dir)
        return self

    @classmethod
    def find_repository(cls, path: str = '.', worktree: Optional[WorkingTree] = None) -> Optional['Repository']:
        """
        Find repository by searching up the directory tree.

        Returns:
            Repository if found, None otherwise
        """
        current = Path(path).resolve()

        while True:
            if (current / '.graft').is_dir():
                return cls(str(current), worktree=worktree)
            if current == current.parent:
                return None
            current = current.parent

    @classmethod
    def open(cls, path: str = '.', worktree: Optional[WorkingTree] = None) -> 'Repository':
        """
        Like find_repository, but raises when there is none.

        Raises:
            NotARepository: If no repository contains path
        """
        repo = cls.find_repository(path, worktree=worktree)
        if repo is None:
            raise NotARepository(Path(path).resolve())
        return repo

    def read_index(self) -> Index:
        return Index.read(self.index_file)

    def write_index(self, index: Index) -> None:
        index.write(self.index_file)

    def head_files(self) -> Dict[str, FileEntry]:
        """Flattened snapshot of HEAD (empty on an unborn branch)."""
        return self.store.commit_files(self.refs.head_commit())

    def tree_of(self, commit_hash: str) -> str:
        return self.store.get_commit(commit_hash).tree

    def commit_tree(
        self,
        tree_hash: str,
        parents: List[str],
        message: str,
        author: Optional[str] = None,
        author_time: Optional[int] = None,
        timestamp: Optional[int] = None
    ) -> str:
        """
        Create and store a commit object without moving any ref.

        Args:
            tree_hash: Root tree of the snapshot
            parents: Ordered parent commit hashes
            message: Commit message
            author: Author identity (defaults to configured user)
            author_time: Original authoring time (kept when replaying commits)
            timestamp: Commit time (defaults to now)

        Returns:
            str: Hash of the new commit
        """
        committer = self.config.get_author()
        commit = Commit.create(
            tree_hash=tree_hash,
            parent_hashes=parents,
            author=author or committer,
            committer=committer,
            message=message,
            timestamp=timestamp,
            author_time=author_time,
        )
        return self.store.put(commit)

    @property
    def state(self) -> str:
        """CLEAN, MERGING or REBASING."""
        return self.operations.status()

    def require_clean_state(self, action: str) -> None:
        """
        Refuse to start an operation while another one is paused.

        Raises:
            InvalidState: If a merge or rebase is in progress
        """
        state = self.operations.load()
        if state is not None:
            operation = 'merge' if state.kind == MERGING else 'rebase'
            raise InvalidState(f"Cannot {action}: a {operation} is in progress")

    def __repr__(self) -> str:
        return f"Repository(path={self.root})"
