"""Stash implementation for Graft."""

import json
import logging
import os
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from graft.core.errors import CorruptObject, InvalidState, NotFound, UnresolvedConflicts
from graft.core.index import Index, mode_to_int
from graft.core.objects import Blob, FileEntry
from graft.operations.diff import TreeChange, diff_files
from graft.operations.merge import MergeConflict, TreeMergeResult

logger = logging.getLogger(__name__)


@dataclass
class StashEntry:
    """
    Represents a single stash entry.

    Stores the index state, working tree changes, and metadata
    about when and where the stash was created.
    """
    message: str                    # User-provided or auto-generated message
    branch: str                     # Branch stash was created on
    commit: str                     # HEAD commit at time of stash
    timestamp: int                  # Unix timestamp
    index_tree: str                 # Tree hash of the index
    work_tree: str                  # Tree hash of tracked working-tree files

    def __repr__(self) -> str:
        return f"StashEntry({self.message[:40]})"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StashEntry':
        """Create from dictionary."""
        return cls(**data)


@dataclass
class StashApplyResult:
    """Outcome of applying a stash entry."""
    success: bool
    entry: StashEntry
    conflicts: List[MergeConflict] = field(default_factory=list)


class StashStack:
    """
    Manages the stash stack for a repository.

    The stash stores:
    - The index snapshot
    - Tracked working-tree files (files in the index or in HEAD)

    Entries are kept newest first in .graft/stash.json. Applying an entry
    is a three-way combine of (stash base, current HEAD, stashed snapshot),
    so it also works after HEAD has moved on.
    """

    def __init__(self, repo):
        """
        Initialize stash stack.

        Args:
            repo: Repository instance
        """
        self.repo = repo
        self.stash_file = repo.stash_file

    def _load_stashes(self) -> List[StashEntry]:
        """Load stash stack from disk."""
        if not self.stash_file.exists():
            return []

        try:
            data = json.loads(self.stash_file.read_text())
            return [StashEntry.from_dict(entry) for entry in data]
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise CorruptObject(f"Unreadable stash file: {self.stash_file}") from e

    def _save_stashes(self, stashes: List[StashEntry]) -> None:
        """Save stash stack to disk."""
        data = [entry.to_dict() for entry in stashes]
        tmp = self.stash_file.with_name(self.stash_file.name + '.tmp')
        tmp.write_text(json.dumps(data, indent=2))
        os.replace(tmp, self.stash_file)

    def _get(self, stashes: List[StashEntry], n: int) -> StashEntry:
        if n < 0 or n >= len(stashes):
            raise NotFound(f"stash@{{{n}}} does not exist")
        return stashes[n]

    def _work_tree_files(self, index: Index, head_files: Dict[str, FileEntry]) -> Dict[str, FileEntry]:
        """Store tracked working-tree files as blobs and return the snapshot."""
        worktree = self.repo.worktree
        files = {}
        for path in sorted(set(index.entries) | set(head_files)):
            data = worktree.read(path)
            if data is None:
                continue
            files[path] = FileEntry(self.repo.store.put(Blob(data)), worktree.mode(path))
        return files

    def push(self, message: Optional[str] = None, keep_index: bool = False) -> Optional[StashEntry]:
        """
        Save current changes to the stash.

        Args:
            message: Optional stash message
            keep_index: Keep staged changes in the index (and working tree)

        Returns:
            StashEntry if successful, None if nothing to stash

        Raises:
            InvalidState: If HEAD has no commits or an operation is in progress
            UnresolvedConflicts: If the index has conflicts
        """
        repo = self.repo
        repo.require_clean_state('stash')

        head = repo.refs.head()
        if head.commit is None:
            raise InvalidState("Cannot stash on a branch with no commits")

        index = repo.read_index()
        if index.has_conflicts():
            raise UnresolvedConflicts(index.conflicted_paths())

        head_files = repo.head_files()
        index_files = index.to_files()
        work_files = self._work_tree_files(index, head_files)

        if index_files == head_files and work_files == head_files:
            return None

        branch = head.branch or '(detached)'
        if not message:
            summary = repo.store.get_commit(head.commit).summary
            message = f"WIP on {branch}: {head.commit[:7]} {summary}"

        entry = StashEntry(
            message=message,
            branch=branch,
            commit=head.commit,
            timestamp=int(time.time()),
            index_tree=repo.store.build_tree(index_files),
            work_tree=repo.store.build_tree(work_files),
        )

        stashes = self._load_stashes()
        stashes.insert(0, entry)
        self._save_stashes(stashes)

        if keep_index:
            repo.staging.update_worktree(index_files, work_files)
        else:
            repo.write_index(Index.from_files(head_files))
            repo.staging.update_worktree(head_files, work_files)

        logger.info("saved stash: %s", message)
        return entry

    def list(self) -> List[StashEntry]:
        """
        List all stash entries.

        Returns:
            List of stash entries (most recent first)
        """
        return self._load_stashes()

    def apply(self, n: int = 0) -> StashApplyResult:
        """
        Apply a stash entry onto the current HEAD, keeping it on the stack.

        Args:
            n: Stash index (0 = most recent)

        Returns:
            StashApplyResult; on conflict the conflicted paths are staged
            the same way a conflicted merge stages them

        Raises:
            NotFound: If n is out of range
            InvalidState: If an operation is in progress, HEAD has no commits
                or local changes would be overwritten
        """
        repo = self.repo
        repo.require_clean_state('apply a stash')

        entry = self._get(self._load_stashes(), n)
        ours_hash = repo.refs.head_commit()
        if ours_hash is None:
            raise InvalidState("Cannot apply a stash on a branch with no commits")

        store = repo.store
        base_files = store.commit_files(entry.commit)
        ours_files = repo.head_files()
        labels = {'ours_label': 'Updated upstream', 'theirs_label': 'Stashed changes'}

        work_result = repo.merge.combine_files(base_files, ours_files, store.flatten_tree(entry.work_tree), **labels)
        index_result = repo.merge.combine_files(base_files, ours_files, store.flatten_tree(entry.index_tree), **labels)

        touched = {change.path for change in diff_files(ours_files, work_result.files)}
        touched.update(change.path for change in diff_files(ours_files, index_result.files))
        touched.update(work_result.conflicted_paths + index_result.conflicted_paths)
        repo.staging.ensure_no_local_changes(touched, 'apply stash')

        if not (work_result.clean and index_result.clean):
            conflicts = list(work_result.conflicts)
            conflicts.extend(c for c in index_result.conflicts if c.path not in work_result.conflicted_paths)
            repo.staging.apply_merge_result(TreeMergeResult(work_result.files, conflicts), ours_files)
            logger.warning("stash@{%d} applied with %d conflict(s)", n, len(conflicts))
            return StashApplyResult(success=False, entry=entry, conflicts=conflicts)

        index = repo.read_index()
        for change in diff_files(ours_files, index_result.files):
            if change.new is None:
                index.remove_entry(change.path)
            else:
                index.add_entry(change.path, change.new.hash, mode_to_int(change.new.mode))
        repo.write_index(index)
        repo.staging.update_worktree(work_result.files, ours_files)

        logger.info("applied stash@{%d}", n)
        return StashApplyResult(success=True, entry=entry)

    def pop(self, n: int = 0) -> StashApplyResult:
        """
        Apply a stash entry and remove it; a conflicted apply keeps it.

        Args:
            n: Stash index (0 = most recent)
        """
        result = self.apply(n)
        if result.success:
            self.drop(n)
        return result

    def drop(self, n: int = 0) -> StashEntry:
        """
        Remove a stash entry without applying it.

        Raises:
            NotFound: If n is out of range
        """
        stashes = self._load_stashes()
        entry = self._get(stashes, n)
        stashes.pop(n)
        self._save_stashes(stashes)
        logger.info("dropped stash@{%d}", n)
        return entry

    def clear(self) -> int:
        """
        Remove all stash entries.

        Returns:
            Number of entries cleared
        """
        count = len(self._load_stashes())
        if self.stash_file.exists():
            self.stash_file.unlink()
        return count

    def show(self, n: int = 0) -> List[TreeChange]:
        """Changes a stash entry's working tree makes relative to its base."""
        entry = self._get(self._load_stashes(), n)
        store = self.repo.store
        return diff_files(store.commit_files(entry.commit), store.flatten_tree(entry.work_tree))

    def __len__(self) -> int:
        return len(self._load_stashes())
