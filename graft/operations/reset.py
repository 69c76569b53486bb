"""Reset operations for Graft."""

import logging

from graft.core.errors import DestructiveConfirmationRequired, InvalidState
from graft.core.index import Index
from graft.core.state import MergeState, RebaseState

logger = logging.getLogger(__name__)

SOFT = 'soft'
MIXED = 'mixed'
HARD = 'hard'
RESET_MODES = (SOFT, MIXED, HARD)


class ResetEngine:
    """
    Moves the current ref and, depending on mode, the index and working tree.

    - soft: only the ref moves; the index now shows as staged changes
    - mixed: the index is reset to the target's tree
    - hard: index and tracked working-tree files are forced to the target
    """

    def __init__(self, repo):
        self.repo = repo

    def reset(self, target: str = 'HEAD', mode: str = MIXED, force: bool = False) -> str:
        """
        Reset the current ref to a revision.

        Args:
            target: Revision to reset to
            mode: 'soft', 'mixed' or 'hard'
            force: Confirms a hard reset

        Returns:
            str: The commit the current ref now points to

        Raises:
            ValueError: For an unknown mode
            DestructiveConfirmationRequired: For a hard reset without force
            InvalidState: While a rebase is in progress
            RefConflict: If the current ref moved concurrently
        """
        if mode not in RESET_MODES:
            raise ValueError(f"Unknown reset mode: {mode}")

        repo = self.repo
        state = repo.operations.load()
        if isinstance(state, RebaseState):
            raise InvalidState("Cannot reset: a rebase is in progress")

        if mode == HARD and not force:
            raise DestructiveConfirmationRequired(
                "Hard reset discards uncommitted changes; use force to confirm"
            )

        target_hash = repo.refs.resolve_revision(target)
        current = repo.refs.head_commit()

        repo.refs.update('HEAD', target_hash, current)
        repo.refs.write_orig_head(current)

        if mode == SOFT:
            logger.info("soft reset to %s", target_hash[:7])
            return target_hash

        files = repo.store.commit_files(target_hash)
        index = repo.read_index()
        previous = dict(repo.store.commit_files(current))
        previous.update(index.to_files())

        repo.write_index(Index.from_files(files))

        if mode == HARD:
            repo.staging.update_worktree(files, previous, force=True)

        if isinstance(state, MergeState):
            repo.operations.clear()

        logger.info("%s reset to %s", mode, target_hash[:7])
        return target_hash
