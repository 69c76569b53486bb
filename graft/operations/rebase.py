"""Rebase operations for Graft.

A rebase replays the commits unique to a branch, oldest first, on top of
another commit. Each step is a three-way combine of (original parent,
replay tip, replayed commit). Progress is saved after every step so a
conflicted rebase can be continued, skipped or aborted by a later process.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from graft.core.errors import InvalidState, UnresolvedConflicts
from graft.core.index import Index
from graft.core.objects import Commit, FileEntry
from graft.core.state import RebaseState
from graft.operations.merge import MergeConflict

logger = logging.getLogger(__name__)


@dataclass
class RebaseResult:
    """Result of starting or resuming a rebase."""
    success: bool
    conflicts: List[MergeConflict] = field(default_factory=list)
    new_tip: Optional[str] = None
    current: Optional[str] = None          # Commit being replayed when paused
    replayed: Dict[str, str] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    up_to_date: bool = False
    is_fast_forward: bool = False
    message: str = ""

    def __repr__(self) -> str:
        if self.success:
            return f"RebaseResult(success, replayed={len(self.replayed)})"
        return f"RebaseResult(stopped at {self.current[:7]}, conflicts={len(self.conflicts)})"


class RebaseEngine:
    """
    Replays commits onto a new base.

    Replay happens on a detached HEAD; the branch ref only moves, by
    compare-and-swap against its original tip, once every step is done.
    Merge commits in the range are dropped and steps that turn out to be
    already applied are skipped.
    """

    def __init__(self, repo):
        """
        Initialize rebase engine.

        Args:
            repo: Repository instance
        """
        self.repo = repo

    def rebase(self, onto: str, branch: Optional[str] = None) -> RebaseResult:
        """
        Rebase the current branch (or branch) onto another revision.

        Args:
            onto: Revision to replay onto
            branch: Branch to switch to before rebasing

        Returns:
            RebaseResult; success is False when paused on a conflict

        Raises:
            InvalidState: If an operation is in progress, HEAD has no commits,
                there are local changes or the histories are unrelated
        """
        repo = self.repo
        repo.require_clean_state('rebase')

        if branch is not None and branch != repo.refs.current_branch():
            repo.staging.switch(branch)

        onto_hash = repo.refs.resolve_revision(onto)
        head = repo.refs.head()
        orig_head = head.commit
        if orig_head is None:
            raise InvalidState("Cannot rebase a branch with no commits")

        repo.staging.ensure_index_matches_head('rebase')

        graph = repo.graph
        if graph.is_ancestor(onto_hash, orig_head):
            return RebaseResult(success=True, new_tip=orig_head, up_to_date=True,
                                message="Current branch is up to date")

        base_hash = graph.merge_base(orig_head, onto_hash)
        if base_hash is None:
            raise InvalidState(f"Cannot rebase onto '{onto}': no common ancestor")

        head_files = repo.head_files()
        onto_files = repo.store.commit_files(onto_hash)
        repo.staging.ensure_no_local_changes(set(head_files) | set(onto_files), 'rebase')

        if base_hash == orig_head:
            return self._fast_forward(orig_head, onto_hash, head_files, onto_files)

        commits = [
            commit_hash for commit_hash in graph.commit_range(onto_hash, orig_head)
            if len(graph.parents(commit_hash)) <= 1
        ]

        repo.refs.write_orig_head(orig_head)
        repo.refs.detach_head(onto_hash)
        repo.staging.checkout(onto_files, head_files)

        state = RebaseState(
            onto=onto_hash,
            head_name=head.branch,
            orig_head=orig_head,
            commits=commits,
            tip=onto_hash,
        )
        repo.operations.save(state)

        logger.info("rebasing %d commit(s) onto %s", len(commits), onto_hash[:7])
        return self._run(state)

    def _fast_forward(self, orig_head: str, onto_hash: str,
                      head_files: Dict[str, FileEntry], onto_files: Dict[str, FileEntry]) -> RebaseResult:
        repo = self.repo
        repo.refs.update('HEAD', onto_hash, orig_head)
        repo.refs.write_orig_head(orig_head)
        repo.staging.checkout(onto_files, head_files)
        return RebaseResult(success=True, new_tip=onto_hash, is_fast_forward=True,
                            message=f"Fast-forwarded to {onto_hash[:7]}")

    def _run(self, state: RebaseState) -> RebaseResult:
        """Replay remaining commits until done or a conflict stops us."""
        while state.current_commit is not None:
            conflicts = self._pick(state)
            if conflicts:
                self.repo.operations.save(state)
                current = state.current_commit
                logger.warning("rebase stopped at %s with %d conflict(s)", current[:7], len(conflicts))
                return RebaseResult(
                    success=False,
                    conflicts=conflicts,
                    new_tip=state.tip,
                    current=current,
                    replayed=dict(state.done),
                    skipped=list(state.skipped),
                    message=f"Could not apply {current[:7]}"
                )
            state.current_index += 1
            self.repo.operations.save(state)

        return self._finish(state)

    def _pick(self, state: RebaseState) -> List[MergeConflict]:
        """Replay the current commit onto the replay tip."""
        repo = self.repo
        commit = repo.store.get_commit(state.current_commit)
        parent = commit.parents[0] if commit.parents else None
        tip_files = repo.store.commit_files(state.tip)

        result = repo.merge.combine_files(
            repo.store.commit_files(parent),
            tip_files,
            repo.store.commit_files(commit.hash),
            ours_label=state.tip[:7],
            theirs_label=f"{commit.hash[:7]} ({commit.summary})",
        )
        repo.staging.apply_merge_result(result, tip_files)

        if not result.clean:
            return result.conflicts

        self._record(state, commit, result.files)
        return []

    def _record(self, state: RebaseState, commit: Commit, files: Dict[str, FileEntry]) -> None:
        """Commit the replayed snapshot and advance the replay tip."""
        repo = self.repo
        tree_hash = repo.store.build_tree(files)

        if tree_hash == repo.tree_of(state.tip):
            logger.info("dropping %s: changes already applied", commit.hash[:7])
            state.skipped.append(commit.hash)
            return

        new_hash = repo.commit_tree(
            tree_hash,
            [state.tip],
            commit.message,
            author=commit.author,
            author_time=commit.author_time,
        )
        repo.refs.update('HEAD', new_hash, state.tip)
        logger.debug("replayed %s as %s", commit.hash[:7], new_hash[:7])

        state.done[commit.hash] = new_hash
        state.tip = new_hash

    def _finish(self, state: RebaseState) -> RebaseResult:
        """Move the branch to the replay tip and re-attach HEAD."""
        repo = self.repo
        if state.head_name:
            repo.refs.update(state.head_name, state.tip, state.orig_head)
            repo.refs.set_head_branch(state.head_name)
        repo.operations.clear()

        logger.info("rebase finished at %s", state.tip[:7])
        return RebaseResult(
            success=True,
            new_tip=state.tip,
            replayed=dict(state.done),
            skipped=list(state.skipped),
            message=f"Successfully rebased onto {state.onto[:7]}"
        )

    def state(self) -> Optional[RebaseState]:
        """The persisted record of a paused rebase, if any."""
        state = self.repo.operations.load()
        return state if isinstance(state, RebaseState) else None

    def in_progress(self) -> bool:
        return self.state() is not None

    def _require_state(self) -> RebaseState:
        state = self.state()
        if state is None:
            raise InvalidState("No rebase in progress")
        return state

    def continue_(self) -> RebaseResult:
        """
        Commit the resolved index for the stopped step and keep replaying.

        Raises:
            InvalidState: If no rebase is in progress
            UnresolvedConflicts: If conflicted paths remain
        """
        repo = self.repo
        state = self._require_state()

        index = repo.read_index()
        if index.has_conflicts():
            raise UnresolvedConflicts(index.conflicted_paths())

        if state.current_commit is not None:
            commit = repo.store.get_commit(state.current_commit)
            self._record(state, commit, index.to_files())
            state.current_index += 1
            repo.operations.save(state)

        return self._run(state)

    def skip(self) -> RebaseResult:
        """
        Drop the stopped step and keep replaying.

        Raises:
            InvalidState: If no rebase is in progress
        """
        repo = self.repo
        state = self._require_state()

        self._reset_to(state.tip)
        if state.current_commit is not None:
            logger.info("skipping %s", state.current_commit[:7])
            state.skipped.append(state.current_commit)
            state.current_index += 1
            repo.operations.save(state)

        return self._run(state)

    def abort(self) -> str:
        """
        Abandon the rebase and restore the original branch.

        Commits already replayed stay in the object store but nothing
        references them.

        Returns:
            str: The restored branch tip

        Raises:
            InvalidState: If no rebase is in progress
        """
        repo = self.repo
        state = self._require_state()

        self._reset_to(state.orig_head)
        if state.head_name:
            repo.refs.set_head_branch(state.head_name)
        else:
            repo.refs.detach_head(state.orig_head)
        repo.operations.clear()

        logger.info("rebase aborted, back at %s", state.orig_head[:7])
        return state.orig_head

    def _reset_to(self, commit_hash: str) -> None:
        """Force index and tracked working-tree files to a commit's tree."""
        repo = self.repo
        files = repo.store.commit_files(commit_hash)
        previous = repo.read_index().to_files()
        repo.write_index(Index.from_files(files))
        repo.staging.update_worktree(files, previous)

    def todo(self) -> List[str]:
        """Commits still waiting to be replayed, the stopped one first."""
        state = self._require_state()
        return list(state.remaining)

