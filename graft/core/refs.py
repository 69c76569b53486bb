"""Reference management for Graft."""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from .errors import (
    DestructiveConfirmationRequired, InvalidState, ObjectNotFound,
    RefConflict, RefNotFound,
)
from .hash import is_hex_hash

logger = logging.getLogger(__name__)

HEADS_PREFIX = 'refs/heads/'
SYMREF_PREFIX = 'ref: '

_INVALID_BRANCH = re.compile(r'(^[-/.])|(\.\.)|([\s~^:?*\[\\])|(/$)|(\.lock$)|(@\{)|(//)')


@dataclass
class HeadState:
    """Where HEAD points: a branch (symbolic) or a bare commit (detached)."""
    branch: Optional[str]
    commit: Optional[str]

    @property
    def detached(self) -> bool:
        return self.branch is None

    @property
    def ref_name(self) -> str:
        """The ref a new commit on HEAD would move."""
        return HEADS_PREFIX + self.branch if self.branch else 'HEAD'


def validate_branch_name(name: str) -> None:
    """Raise ValueError for names that cannot be used as branches."""
    if not name or name == 'HEAD' or _INVALID_BRANCH.search(name):
        raise ValueError(f"Invalid branch name: {name!r}")


class RefManager:
    """
    Manages refs (branches) and HEAD.

    Handles:
    - Symbolic HEAD (pointing to a branch) and detached HEAD
    - Branch refs under refs/heads/
    - Compare-and-swap updates guarded by lock files
    - Revision resolution (names, hash prefixes, ~N suffixes)
    """

    def __init__(self, repo):
        """
        Initialize reference manager.

        Args:
            repo: Repository instance
        """
        self.repo = repo
        self.graft_dir = repo.graft_dir
        self.heads_dir = self.graft_dir / 'refs' / 'heads'
        self.head_file = self.graft_dir / 'HEAD'
        self.orig_head_file = self.graft_dir / 'ORIG_HEAD'

    def _ref_path(self, name: str) -> Path:
        if name == 'HEAD':
            return self.head_file
        if name.startswith('refs/'):
            return self.graft_dir / name
        return self.heads_dir / name

    def full_name(self, name: str) -> str:
        """Expand a short branch name to refs/heads/<name>."""
        if name == 'HEAD' or name.startswith('refs/'):
            return name
        return HEADS_PREFIX + name

    def _read_raw(self, name: str) -> Optional[str]:
        path = self._ref_path(name)
        if not path.is_file():
            return None
        return path.read_text().strip() or None

    def head(self) -> HeadState:
        """Read HEAD, following one level of symbolic indirection."""
        content = self._read_raw('HEAD')
        if content is None:
            raise InvalidState("HEAD is missing")

        if content.startswith(SYMREF_PREFIX):
            target = content[len(SYMREF_PREFIX):]
            branch = target[len(HEADS_PREFIX):] if target.startswith(HEADS_PREFIX) else target
            return HeadState(branch=branch, commit=self._read_raw(target))

        return HeadState(branch=None, commit=content)

    def head_commit(self) -> Optional[str]:
        """Commit HEAD resolves to, or None on an unborn branch."""
        return self.head().commit

    def current_branch(self) -> Optional[str]:
        """Current branch name, or None when detached."""
        return self.head().branch

    def is_detached(self) -> bool:
        return self.head().detached

    def current_ref(self) -> str:
        """Ref name that commits on HEAD advance."""
        return self.head().ref_name

    def read_ref(self, name: str) -> Optional[str]:
        """
        Read a ref without raising.

        Returns:
            Commit hash, or None if the ref does not exist
        """
        if name == 'HEAD':
            return self.head_commit()
        return self._read_raw(self.full_name(name))

    def resolve(self, name: str) -> str:
        """
        Resolve a ref name to a commit hash.

        Args:
            name: 'HEAD', a branch name or a full ref name

        Returns:
            Commit hash

        Raises:
            RefNotFound: If the ref does not exist or HEAD is unborn
        """
        value = self.read_ref(name)
        if value is None:
            raise RefNotFound(name)
        return value

    def branch_exists(self, name: str) -> bool:
        return self._ref_path(self.full_name(name)).is_file()

    def _check_commit(self, commit_hash: str) -> None:
        if not self.repo.store.exists(commit_hash):
            raise ObjectNotFound(commit_hash, 'commit')
        self.repo.store.get_commit(commit_hash)

    def _lock(self, name: str, expected: Optional[str]) -> Tuple[int, Path, Path]:
        """Take <ref>.lock exclusively; a held lock is reported as a conflict."""
        path = self._ref_path(name)
        lock_path = path.with_name(path.name + '.lock')
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(str(lock_path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            raise RefConflict(name, expected, self._read_raw(name))
        return fd, path, lock_path

    def update(self, name: str, new_hash: str, expected_old: Optional[str]) -> None:
        """
        Atomically move a ref if it still holds the expected value.

        Updating 'HEAD' moves the branch HEAD points to, or HEAD itself when
        detached. A missing ref is matched by expected_old=None.

        Args:
            name: Ref to move
            new_hash: Commit to point at
            expected_old: Value the caller last observed

        Raises:
            RefConflict: If the ref changed underneath the caller or is locked
            ObjectNotFound: If new_hash is not a stored commit
        """
        self._check_commit(new_hash)

        if name == 'HEAD':
            name = self.current_ref()
        else:
            name = self.full_name(name)

        fd, path, lock_path = self._lock(name, expected_old)
        replaced = False
        try:
            with os.fdopen(fd, 'w') as f:
                current = self._read_raw(name)
                if current != expected_old:
                    raise RefConflict(name, expected_old, current)
                f.write(new_hash + '\n')
            os.replace(lock_path, path)
            replaced = True
        finally:
            # After the rename the lock name may belong to another writer.
            if not replaced and lock_path.exists():
                lock_path.unlink()

        logger.debug("moved %s: %s -> %s", name, expected_old, new_hash)

    def create_branch(self, name: str, start_hash: str) -> None:
        """
        Create a new branch.

        Raises:
            ValueError: If the name is invalid
            RefConflict: If the branch already exists
        """
        validate_branch_name(name)
        self.update(HEADS_PREFIX + name, start_hash, None)

    def delete_branch(self, name: str, force: bool = False) -> str:
        """
        Delete a branch.

        The current branch is refused unless forced; a forced delete of the
        current branch detaches HEAD at the same commit. A branch whose
        commits are not contained in HEAD or another branch needs force.

        Returns:
            The commit the branch pointed to

        Raises:
            RefNotFound: If there is no such branch
            InvalidState: If it is the current branch and force is not set
            DestructiveConfirmationRequired: If it has unmerged commits
            RefConflict: If the branch moved while it was being deleted
        """
        tip = self.read_ref(name)
        if tip is None:
            raise RefNotFound(name)

        head = self.head()
        if head.branch == name and not force:
            raise InvalidState(f"Cannot delete branch '{name}' checked out at HEAD")

        if not force and not self._is_merged_elsewhere(name, tip):
            raise DestructiveConfirmationRequired(
                f"Branch '{name}' is not fully merged; use force to delete it"
            )

        full = self.full_name(name)
        fd, path, lock_path = self._lock(full, tip)
        os.close(fd)
        try:
            current = self._read_raw(full)
            if current != tip:
                raise RefConflict(full, tip, current)
            if head.branch == name:
                self.detach_head(tip)
            path.unlink()
        finally:
            lock_path.unlink()
        logger.info("deleted branch %s (was %s)", name, tip[:7])
        return tip

    def _is_merged_elsewhere(self, name: str, tip: str) -> bool:
        graph = self.repo.graph
        holders = [h for b, h in self.list_branches() if b != name]
        head_commit = self.head_commit()
        if head_commit and self.current_branch() != name:
            holders.append(head_commit)
        return any(graph.is_ancestor(tip, holder) for holder in holders)

    def set_head_branch(self, name: str) -> None:
        """Point HEAD at a branch (symbolic)."""
        if not self.branch_exists(name):
            raise RefNotFound(name)
        self._write_head(f"{SYMREF_PREFIX}{self.full_name(name)}")

    def set_head_unborn(self, name: str) -> None:
        """Point HEAD at a branch that has no commits yet."""
        validate_branch_name(name)
        self._write_head(f"{SYMREF_PREFIX}{HEADS_PREFIX}{name}")

    def detach_head(self, commit_hash: str) -> None:
        """Point HEAD directly at a commit."""
        self._check_commit(commit_hash)
        self._write_head(commit_hash)

    def _write_head(self, content: str) -> None:
        tmp = self.head_file.with_name('HEAD.tmp')
        tmp.write_text(content + '\n')
        os.replace(tmp, self.head_file)
        logger.debug("HEAD -> %s", content)

    def list_branches(self) -> List[Tuple[str, str]]:
        """
        List all branches.

        Returns:
            Sorted list of (branch_name, commit_hash) tuples
        """
        if not self.heads_dir.exists():
            return []

        branches = []
        for branch_file in self.heads_dir.rglob('*'):
            if branch_file.is_file() and not branch_file.name.endswith('.lock'):
                branch_name = branch_file.relative_to(self.heads_dir).as_posix()
                branches.append((branch_name, branch_file.read_text().strip()))

        return sorted(branches)

    def write_orig_head(self, commit_hash: Optional[str]) -> None:
        """Remember where HEAD was before a history-moving operation."""
        if commit_hash:
            self.orig_head_file.write_text(commit_hash + '\n')

    def read_orig_head(self) -> Optional[str]:
        if not self.orig_head_file.exists():
            return None
        return self.orig_head_file.read_text().strip() or None

    def resolve_revision(self, spec: str) -> str:
        """
        Resolve any revision string to a commit hash.

        Supports:
        - HEAD, ORIG_HEAD
        - Branch names and full ref names
        - Full or unique abbreviated commit hashes
        - <rev>~N (N-th first-parent ancestor)

        Raises:
            RefNotFound: If the revision cannot be resolved
        """
        match = re.match(r'^(.+)~(\d*)$', spec)
        if match:
            commit_hash = self.resolve_revision(match.group(1))
            steps = int(match.group(2) or 1)
            for _ in range(steps):
                parents = self.repo.store.get_commit(commit_hash).parents
                if not parents:
                    raise RefNotFound(spec)
                commit_hash = parents[0]
            return commit_hash

        if spec == 'ORIG_HEAD':
            orig = self.read_orig_head()
            if orig is None:
                raise RefNotFound(spec)
            return orig

        value = self.read_ref(spec)
        if value is not None:
            return value

        if is_hex_hash(spec.lower()):
            full = self.repo.store.find_by_prefix(spec)
            if full is not None:
                obj = self.repo.store.get(full)
                if obj.kind == 'commit':
                    return full

        raise RefNotFound(spec)
