"""Merge operations for Graft."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from graft.core.errors import InvalidState
from graft.core.index import Index
from graft.core.objects import Blob, FileEntry
from graft.core.state import MergeState
from graft.operations.diff import diff_files
from graft.operations.textmerge import TextMergeResult, merge3

logger = logging.getLogger(__name__)

CONTENT = 'content'
DELETE_MODIFY = 'delete/modify'
ADD_ADD = 'add/add'
FILE_DIRECTORY = 'file/directory'


@dataclass
class MergeConflict:
    """A path whose two sides could not be combined automatically."""
    path: str
    kind: str
    base: Optional[FileEntry]
    ours: Optional[FileEntry]
    theirs: Optional[FileEntry]

    def __repr__(self) -> str:
        return f"MergeConflict({self.kind} {self.path})"


@dataclass
class TreeMergeResult:
    """Merged snapshot plus the conflicts found while producing it."""
    files: Dict[str, FileEntry]
    conflicts: List[MergeConflict] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.conflicts

    @property
    def conflicted_paths(self) -> List[str]:
        return [conflict.path for conflict in self.conflicts]


@dataclass
class MergeResult:
    """Result of a merge operation."""
    success: bool
    conflicts: List[MergeConflict]
    commit_hash: Optional[str] = None
    merged_tree_hash: Optional[str] = None
    is_fast_forward: bool = False
    up_to_date: bool = False
    message: str = ""

    def __repr__(self) -> str:
        if self.success:
            if self.is_fast_forward:
                return "MergeResult(fast-forward, conflicts=0)"
            return f"MergeResult(success, conflicts={len(self.conflicts)})"
        return f"MergeResult(failed, conflicts={len(self.conflicts)})"


TextMerger = Callable[..., Optional[TextMergeResult]]


class MergeEngine:
    """
    Handles merge operations for Graft.

    Supports:
    - Fast-forward merges
    - Three-way merges against the merge base
    - Content, delete/modify, add/add and file/directory conflict detection
    - Pausing on conflicts and resuming via commit or abort

    The path-level combine (``combine_files``) is shared with the rebase
    engine and the stash stack.
    """

    def __init__(self, repo, text_merger: TextMerger = merge3):
        """
        Initialize merge engine.

        Args:
            repo: Repository instance
            text_merger: Line-level merge function
                (base, ours, theirs, ours_label, theirs_label) -> TextMergeResult,
                returning None for content it cannot merge
        """
        self.repo = repo
        self.text_merger = text_merger

    def combine_files(
        self,
        base_files: Dict[str, FileEntry],
        ours_files: Dict[str, FileEntry],
        theirs_files: Dict[str, FileEntry],
        ours_label: str = 'ours',
        theirs_label: str = 'theirs'
    ) -> TreeMergeResult:
        """
        Three-way merge of flattened snapshots.

        Blobs for merged and conflict-marked content are stored as a side
        effect; nothing else is touched.

        Args:
            base_files: Files in base (common ancestor)
            ours_files: Files in our side
            theirs_files: Files in their side
            ours_label: Label for our side in conflict markers
            theirs_label: Label for their side in conflict markers

        Returns:
            TreeMergeResult with merged files and conflicts
        """
        merged: Dict[str, FileEntry] = {}
        conflicts: List[MergeConflict] = []

        for path in sorted(set(base_files) | set(ours_files) | set(theirs_files)):
            base = base_files.get(path)
            ours = ours_files.get(path)
            theirs = theirs_files.get(path)

            # Same on both sides (including both deleted)
            if ours == theirs:
                if ours is not None:
                    merged[path] = ours
                continue

            # Only we changed it
            if base == theirs:
                if ours is not None:
                    merged[path] = ours
                continue

            # Only they changed it
            if base == ours:
                if theirs is not None:
                    merged[path] = theirs
                continue

            if ours is None or theirs is None:
                merged[path] = ours or theirs
                conflicts.append(MergeConflict(path, DELETE_MODIFY, base, ours, theirs))
                continue

            kind = CONTENT if base is not None else ADD_ADD
            mode = _merge_mode(base, ours, theirs)

            if ours.hash == theirs.hash:
                merged[path] = FileEntry(ours.hash, mode)
                continue

            result = self.text_merger(
                self._content(base), self._content(ours), self._content(theirs),
                ours_label=ours_label, theirs_label=theirs_label,
            )
            if result is None:
                # Binary content is never line-merged
                merged[path] = ours
                conflicts.append(MergeConflict(path, kind, base, ours, theirs))
                continue

            merged[path] = FileEntry(self.repo.store.put(Blob(result.content)), mode)
            if result.conflicted:
                conflicts.append(MergeConflict(path, kind, base, ours, theirs))

        conflicts = _resolve_path_clashes(merged, conflicts, base_files, ours_files, theirs_files)

        if conflicts:
            logger.debug("combine produced %d conflict(s): %s",
                         len(conflicts), ', '.join(c.path for c in conflicts))
        return TreeMergeResult(merged, conflicts)

    def combine_trees(
        self,
        base_tree: Optional[str],
        ours_tree: Optional[str],
        theirs_tree: Optional[str],
        ours_label: str = 'ours',
        theirs_label: str = 'theirs'
    ) -> TreeMergeResult:
        """Three-way merge of trees (None stands for an empty tree)."""
        store = self.repo.store

        def flatten(tree_hash):
            return store.flatten_tree(tree_hash) if tree_hash else {}

        return self.combine_files(
            flatten(base_tree), flatten(ours_tree), flatten(theirs_tree),
            ours_label=ours_label, theirs_label=theirs_label,
        )

    def _content(self, entry: Optional[FileEntry]) -> Optional[bytes]:
        if entry is None:
            return None
        return self.repo.store.get_blob(entry.hash).data

    def merge(self, theirs: str, message: Optional[str] = None, allow_fast_forward: bool = True) -> MergeResult:
        """
        Merge a revision into the current branch.

        Args:
            theirs: Branch name, hash or other revision to merge
            message: Merge commit message (defaults to a generated one)
            allow_fast_forward: Whether to allow fast-forward merges

        Returns:
            MergeResult with status and any conflicts

        Raises:
            RefNotFound: If theirs cannot be resolved
            InvalidState: If an operation is in progress, HEAD has no commits,
                the index is dirty, local changes would be overwritten or the
                histories are unrelated
            RefConflict: If the current ref moved concurrently
        """
        repo = self.repo
        repo.require_clean_state('merge')

        theirs_hash = repo.refs.resolve_revision(theirs)
        head = repo.refs.head()
        ours_hash = head.commit
        if ours_hash is None:
            raise InvalidState("Cannot merge into a branch with no commits")

        repo.staging.ensure_index_matches_head('merge')

        if repo.graph.is_ancestor(theirs_hash, ours_hash):
            return MergeResult(success=True, conflicts=[], commit_hash=ours_hash,
                               up_to_date=True, message="Already up to date")

        base_hash = repo.graph.merge_base(ours_hash, theirs_hash)
        if base_hash is None:
            raise InvalidState(f"Cannot merge '{theirs}': no common ancestor")

        ours_files = repo.head_files()

        if base_hash == ours_hash and allow_fast_forward:
            return self._fast_forward(ours_hash, theirs_hash, ours_files)

        result = self.combine_files(
            repo.store.commit_files(base_hash), ours_files, repo.store.commit_files(theirs_hash),
            ours_label='HEAD', theirs_label=theirs,
        )
        touched = [change.path for change in diff_files(ours_files, result.files)]
        repo.staging.ensure_no_local_changes(touched + result.conflicted_paths, 'merge')

        message = message or f"Merge '{theirs}' into {head.branch or 'HEAD'}"

        if not result.clean:
            repo.refs.write_orig_head(ours_hash)
            repo.staging.apply_merge_result(result, ours_files)
            repo.operations.save(MergeState(
                orig_head=ours_hash,
                merge_head=theirs_hash,
                message=message,
                conflicts=result.conflicted_paths,
            ))
            logger.warning("merge of %s stopped with %d conflict(s)", theirs_hash[:7], len(result.conflicts))
            return MergeResult(
                success=False,
                conflicts=result.conflicts,
                message=f"Merge conflicts in {len(result.conflicts)} file(s)"
            )

        tree_hash = repo.store.build_tree(result.files)
        commit_hash = repo.commit_tree(tree_hash, [ours_hash, theirs_hash], message)
        repo.refs.update('HEAD', commit_hash, ours_hash)
        repo.refs.write_orig_head(ours_hash)
        repo.staging.apply_merge_result(result, ours_files)

        logger.info("merged %s into %s as %s", theirs_hash[:7], ours_hash[:7], commit_hash[:7])
        return MergeResult(
            success=True,
            conflicts=[],
            commit_hash=commit_hash,
            merged_tree_hash=tree_hash,
            message=f"Merged {theirs_hash[:7]} into {ours_hash[:7]}"
        )

    def _fast_forward(self, ours_hash: str, theirs_hash: str, ours_files: Dict[str, FileEntry]) -> MergeResult:
        """Move the current ref to theirs and check out its tree."""
        repo = self.repo
        theirs_files = repo.store.commit_files(theirs_hash)
        changed = [change.path for change in diff_files(ours_files, theirs_files)]
        repo.staging.ensure_no_local_changes(changed, 'fast-forward')

        repo.refs.update('HEAD', theirs_hash, ours_hash)
        repo.refs.write_orig_head(ours_hash)
        repo.staging.checkout(theirs_files, ours_files)

        logger.info("fast-forward %s..%s", ours_hash[:7], theirs_hash[:7])
        return MergeResult(
            success=True,
            conflicts=[],
            commit_hash=theirs_hash,
            merged_tree_hash=repo.tree_of(theirs_hash),
            is_fast_forward=True,
            message=f"Fast-forward to {theirs_hash[:7]}"
        )

    def in_progress(self) -> bool:
        """Check if a merge is in progress."""
        return isinstance(self.repo.operations.load(), MergeState)

    def state(self) -> Optional[MergeState]:
        state = self.repo.operations.load()
        return state if isinstance(state, MergeState) else None

    def _require_state(self) -> MergeState:
        state = self.state()
        if state is None:
            raise InvalidState("No merge in progress")
        return state

    def commit(self, message: Optional[str] = None) -> str:
        """
        Conclude a paused merge once every conflict has been staged.

        Returns:
            str: Hash of the merge commit
        """
        state = self._require_state()
        return self.repo.staging.commit(message=message or state.message)

    def abort(self) -> str:
        """
        Abort an in-progress merge.

        Resets the current ref, index and working tree to the commit HEAD
        pointed to when the merge started, then clears the merge record.

        Returns:
            str: The restored commit hash

        Raises:
            InvalidState: If no merge is in progress
        """
        repo = self.repo
        state = self._require_state()

        current = repo.refs.head_commit()
        if current != state.orig_head:
            repo.refs.update('HEAD', state.orig_head, current)

        files = repo.store.commit_files(state.orig_head)
        previous = repo.read_index().to_files()
        repo.write_index(Index.from_files(files))
        repo.staging.update_worktree(files, previous)
        repo.operations.clear()

        logger.info("merge of %s aborted", state.merge_head[:7])
        return state.orig_head


def _resolve_path_clashes(
    merged: Dict[str, FileEntry],
    conflicts: List[MergeConflict],
    base_files: Dict[str, FileEntry],
    ours_files: Dict[str, FileEntry],
    theirs_files: Dict[str, FileEntry]
) -> List[MergeConflict]:
    """
    Settle paths that ended up as both a file and a directory.

    Our side of each clash is kept in ``merged``; theirs is dropped and a
    file/directory conflict is reported at the clashing file path.
    """
    directories = set()
    for path in merged:
        parts = path.split('/')
        for i in range(1, len(parts)):
            directories.add('/'.join(parts[:i]))

    clashes = sorted(path for path in merged if path in directories)
    if not clashes:
        return conflicts

    dropped = set()
    for path in clashes:
        if path not in merged:
            continue
        prefix = path + '/'
        if path in ours_files:
            lost = [p for p in merged if p.startswith(prefix)]
        else:
            lost = [path]
        for p in lost:
            del merged[p]
        dropped.update(lost)
        dropped.add(path)
        logger.debug("file/directory clash at %s, keeping ours", path)

    kept = [c for c in conflicts if c.path not in dropped]
    for path in clashes:
        kept.append(MergeConflict(
            path, FILE_DIRECTORY,
            base_files.get(path), ours_files.get(path), theirs_files.get(path),
        ))
    return sorted(kept, key=lambda c: c.path)


def _merge_mode(base: Optional[FileEntry], ours: FileEntry, theirs: FileEntry) -> str:
    """Take whichever side changed the mode, preferring ours."""
    if base is not None and ours.mode == base.mode:
        return theirs.mode
    return ours.mode
