"""Staging operations: add, remove, restore, commit, status and switch."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from graft.core.errors import InvalidState, NotFound, UnresolvedConflicts
from graft.core.index import Index, mode_to_int, normalize_path
from graft.core.objects import Blob, FileEntry, FILE_MODE
from graft.core.state import CLEAN, MergeState, RebaseState
from graft.operations.diff import DELETED, MODIFIED, TreeChange, diff_files

logger = logging.getLogger(__name__)


@dataclass
class Status:
    """Snapshot of what is staged, modified, untracked and conflicted."""
    branch: Optional[str]
    head: Optional[str]
    state: str = CLEAN
    staged: List[TreeChange] = field(default_factory=list)
    unstaged: List[TreeChange] = field(default_factory=list)
    untracked: List[str] = field(default_factory=list)
    conflicts: List[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not (self.staged or self.unstaged or self.conflicts)


def _check_path_clash(index: Index, path: str) -> None:
    """A path cannot be staged as a file and as a directory at once."""
    staged = index.entries
    parts = path.split('/')
    for i in range(1, len(parts)):
        parent = '/'.join(parts[:i])
        if parent in staged:
            raise InvalidState(f"Cannot add '{path}': '{parent}' is a staged file")
    prefix = path + '/'
    for other in staged:
        if other.startswith(prefix):
            raise InvalidState(f"Cannot add '{path}': '{other}' is staged beneath it")


class StagingArea:
    """
    Operations on the staging index.

    The index on disk is the pending snapshot; every method loads it,
    changes it and writes it back, so state survives between processes.
    """

    def __init__(self, repo):
        """
        Initialize staging area.

        Args:
            repo: Repository instance
        """
        self.repo = repo

    def add(self, path: str, content: Optional[bytes] = None, mode: Optional[str] = None) -> str:
        """
        Stage a file.

        Without content the file is read from the working tree. With
        content, that content is staged and written to the working tree
        so both snapshots agree. Staging a conflicted path marks it
        resolved.

        Args:
            path: Repository-relative path
            content: New file content
            mode: File mode (defaults to the working tree's, else 100644)

        Returns:
            str: Blob hash of the staged content

        Raises:
            NotFound: If no content is given and the file does not exist
            InvalidState: If the path clashes with a staged file or directory
        """
        path = normalize_path(path)
        worktree = self.repo.worktree
        index = self.repo.read_index()
        _check_path_clash(index, path)

        if content is None:
            content = worktree.read(path)
            if content is None:
                raise NotFound(f"pathspec '{path}' did not match any file")
            mode = mode or worktree.mode(path)
        else:
            mode = mode or FILE_MODE
            worktree.write(path, content, mode)

        blob_hash = self.repo.store.put(Blob(content))

        index.add_entry(path, blob_hash, mode_to_int(mode))
        index.resolve(path)
        self.repo.write_index(index)

        logger.debug("staged %s as %s", path, blob_hash[:7])
        return blob_hash

    def remove(self, path: str, cached: bool = False) -> None:
        """
        Unstage a path and, unless cached, delete it from the working tree.

        Removing a conflicted path resolves it as deleted.

        Raises:
            NotFound: If the path is not staged
        """
        path = normalize_path(path)
        index = self.repo.read_index()
        conflicted = path in index.conflicts
        if not index.remove_entry(path) and not conflicted:
            raise NotFound(f"pathspec '{path}' did not match any staged file")
        self.repo.write_index(index)

        if not cached:
            self.repo.worktree.delete(path)

    def restore(self, path: str, source: str = 'HEAD', worktree: bool = False) -> Optional[FileEntry]:
        """
        Reset one index entry to match a commit's tree.

        A path absent from the source commit is removed from the index.

        Args:
            path: Repository-relative path
            source: Revision to take the entry from
            worktree: Also overwrite the working-tree file

        Returns:
            The restored entry, or None if the path was unstaged
        """
        path = normalize_path(path)
        refs = self.repo.refs

        if source == 'HEAD' and refs.head_commit() is None:
            files: Dict[str, FileEntry] = {}
        else:
            files = self.repo.store.commit_files(refs.resolve_revision(source))
        entry = files.get(path)

        index = self.repo.read_index()
        if entry is None:
            index.remove_entry(path)
        else:
            index.add_entry(path, entry.hash, mode_to_int(entry.mode))
            index.resolve(path)
        self.repo.write_index(index)

        if worktree:
            if entry is None:
                self.repo.worktree.delete(path)
            else:
                data = self.repo.store.get_blob(entry.hash).data
                self.repo.worktree.write(path, data, entry.mode)

        return entry

    def write_tree(self) -> str:
        """
        Store the index as nested trees.

        Raises:
            UnresolvedConflicts: If conflicted paths remain
        """
        index = self.repo.read_index()
        if index.has_conflicts():
            raise UnresolvedConflicts(index.conflicted_paths())
        return self.repo.store.build_tree(index.to_files())

    def commit(
        self,
        message: Optional[str] = None,
        author: Optional[str] = None,
        allow_empty: bool = False,
        timestamp: Optional[int] = None
    ) -> str:
        """
        Record the index as a new commit on the current ref.

        The parent is the commit HEAD resolves to; while a merge is paused
        the commit being merged is added as second parent and the merge
        record is cleared. The index is left as is, since it now equals
        the new commit's tree.

        Returns:
            str: Hash of the new commit

        Raises:
            UnresolvedConflicts: If conflicted paths remain
            InvalidState: During a rebase, or when there is nothing to commit
            RefConflict: If the current ref moved concurrently
        """
        repo = self.repo
        state = repo.operations.load()
        if isinstance(state, RebaseState):
            raise InvalidState("A rebase is in progress; resolve conflicts and continue the rebase")

        index = repo.read_index()
        if index.has_conflicts():
            raise UnresolvedConflicts(index.conflicted_paths())

        head = repo.refs.head_commit()
        tree_hash = repo.store.build_tree(index.to_files())
        parents = [head] if head else []

        if isinstance(state, MergeState):
            parents.append(state.merge_head)
            message = message or state.message
        elif not allow_empty:
            if head and tree_hash == repo.tree_of(head):
                raise InvalidState("Nothing to commit")
            if not head and not index.entries:
                raise InvalidState("Nothing to commit")

        if not message:
            raise ValueError("Commit message is required")

        commit_hash = repo.commit_tree(tree_hash, parents, message, author=author, timestamp=timestamp)
        repo.refs.update('HEAD', commit_hash, head)

        if isinstance(state, MergeState):
            repo.operations.clear()

        logger.info("committed %s on %s", commit_hash[:7], repo.refs.current_ref())
        return commit_hash

    def unstaged_changes(self, index: Optional[Index] = None) -> List[TreeChange]:
        """Differences between tracked index entries and the working tree."""
        index = index if index is not None else self.repo.read_index()
        worktree = self.repo.worktree
        changes = []

        for path in sorted(index.entries):
            staged = index.entries[path].to_file_entry()
            data = worktree.read(path)
            if data is None:
                changes.append(TreeChange(path, DELETED, staged, None))
                continue
            current = FileEntry(Blob(data).hash, worktree.mode(path))
            if current != staged:
                changes.append(TreeChange(path, MODIFIED, staged, current))

        return changes

    def status(self) -> Status:
        """Compare HEAD, index and working tree."""
        repo = self.repo
        head = repo.refs.head()
        index = repo.read_index()

        return Status(
            branch=head.branch,
            head=head.commit,
            state=repo.state,
            staged=diff_files(repo.head_files(), index.to_files()),
            unstaged=self.unstaged_changes(index),
            untracked=[p for p in repo.worktree.paths() if p not in index.entries],
            conflicts=index.conflicted_paths(),
        )

    def local_changes(self, paths: Optional[Iterable[str]] = None) -> List[str]:
        """
        Paths whose index or working-tree state differs from HEAD.

        An untracked working-tree file counts when it is listed in paths,
        since writing that path would clobber it.
        """
        repo = self.repo
        index = repo.read_index()
        index_files = index.to_files()
        head_files = repo.head_files()

        if paths is None:
            paths = set(index_files) | set(head_files)

        changed = []
        for path in sorted(set(paths)):
            staged = index_files.get(path)
            if staged != head_files.get(path) or path in index.conflicts:
                changed.append(path)
                continue

            data = repo.worktree.read(path)
            if staged is None:
                if data is not None:
                    changed.append(path)
            elif data is None or Blob(data).hash != staged.hash:
                changed.append(path)

        return changed

    def ensure_no_local_changes(self, paths: Optional[Iterable[str]] = None, action: str = 'proceed') -> None:
        """
        Raises:
            InvalidState: If any of the paths has uncommitted changes
        """
        changed = self.local_changes(paths)
        if changed:
            raise InvalidState(
                f"Cannot {action}: local changes would be overwritten: {', '.join(changed)}"
            )

    def ensure_index_matches_head(self, action: str) -> None:
        """
        Raises:
            InvalidState: If anything is staged or conflicted
        """
        index = self.repo.read_index()
        if index.has_conflicts() or index.to_files() != self.repo.head_files():
            raise InvalidState(f"Cannot {action}: the index contains uncommitted changes")

    def update_worktree(
        self,
        files: Dict[str, FileEntry],
        previous: Dict[str, FileEntry],
        force: bool = False
    ) -> None:
        """
        Bring the working tree from the previous snapshot to files.

        Only paths that differ are touched unless force is set, in which
        case every path in files is rewritten.
        """
        worktree = self.repo.worktree
        for path in sorted(set(files) | set(previous)):
            new = files.get(path)
            if new == previous.get(path) and not force:
                continue
            if new is None:
                worktree.delete(path)
            else:
                worktree.write(path, self.repo.store.get_blob(new.hash).data, new.mode)

    def checkout(
        self,
        files: Dict[str, FileEntry],
        previous: Dict[str, FileEntry],
        force: bool = False
    ) -> None:
        """
        Move index entries and working tree from previous to files.

        Index entries for paths that are the same in both snapshots are
        left alone, so unrelated staged changes survive.
        """
        index = self.repo.read_index()
        for change in diff_files(previous, files):
            if change.new is None:
                index.remove_entry(change.path)
            else:
                index.add_entry(change.path, change.new.hash, mode_to_int(change.new.mode))
                index.resolve(change.path)
        self.repo.write_index(index)
        self.update_worktree(files, previous, force=force)

    def apply_merge_result(self, result, ours_files: Dict[str, FileEntry]) -> None:
        """
        Write a tree-merge result into the index and working tree.

        Conflicted paths get their stage 1-3 entries recorded next to the
        conflict-marked content.
        """
        conflicted = {conflict.path: conflict for conflict in result.conflicts}
        touched = {c.path for c in diff_files(ours_files, result.files)} | set(conflicted)

        index = self.repo.read_index()
        worktree = self.repo.worktree
        for path in sorted(touched):
            entry = result.files.get(path)
            if entry is None:
                index.remove_entry(path)
                worktree.delete(path)
            else:
                index.add_entry(path, entry.hash, mode_to_int(entry.mode))
                index.resolve(path)
                worktree.write(path, self.repo.store.get_blob(entry.hash).data, entry.mode)

        for path, conflict in conflicted.items():
            index.set_conflict(path, conflict.base, conflict.ours, conflict.theirs)

        self.repo.write_index(index)

    def switch(self, branch: str) -> str:
        """
        Check out another branch.

        Local changes to paths that do not differ between the two branches
        are carried over.

        Returns:
            str: Commit the branch points to

        Raises:
            RefNotFound: If the branch does not exist
            InvalidState: If an operation is paused or local changes would be lost
        """
        repo = self.repo
        repo.require_clean_state('switch branches')
        target = repo.refs.resolve(branch)

        old_files = repo.head_files()
        new_files = repo.store.commit_files(target)
        changed = [change.path for change in diff_files(old_files, new_files)]

        self.ensure_no_local_changes(changed, 'switch branches')
        self.checkout(new_files, old_files)
        repo.refs.set_head_branch(branch)

        logger.info("switched to branch %s", branch)
        return target
