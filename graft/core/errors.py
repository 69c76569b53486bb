"""Exceptions raised by the Graft engine.

Conflicted merges, rebases and stash applications are not errors: they
return a result describing the conflicts and leave the repository in a
paused state. The exceptions below cover everything the caller has to
act on before an operation can proceed.
"""

from typing import Iterable, Optional


class GraftError(Exception):
    """Base class for all Graft errors."""


class NotARepository(GraftError):
    """No .graft directory was found."""

    def __init__(self, path):
        super().__init__(f"Not a graft repository: {path}")
        self.path = path


class RepositoryExists(GraftError):
    """Tried to initialize a repository on top of an existing one."""

    def __init__(self, path):
        super().__init__(f"Repository already exists at {path}")
        self.path = path


class NotFound(GraftError):
    """A requested object or ref does not exist."""


class ObjectNotFound(NotFound):
    """Object is absent from the object store."""

    def __init__(self, obj_hash: str, kind: Optional[str] = None):
        what = kind or 'object'
        super().__init__(f"{what} {obj_hash} not found")
        self.hash = obj_hash
        self.kind = kind


class RefNotFound(NotFound):
    """Ref or revision could not be resolved."""

    def __init__(self, name: str):
        super().__init__(f"ref '{name}' not found")
        self.name = name


class CorruptObject(GraftError):
    """Stored data does not match its declared format."""


class InvalidState(GraftError):
    """Operation is not allowed in the repository's current state."""


class Conflict(GraftError):
    """Concurrent versions could not be reconciled automatically."""


class RefConflict(Conflict):
    """Compare-and-swap on a ref saw a different value than expected.

    The caller must re-resolve the ref and decide whether to retry; the
    engine never retries on its own.
    """

    def __init__(self, name: str, expected: Optional[str], actual: Optional[str]):
        super().__init__(
            f"ref '{name}' is at {actual or '(none)'}, expected {expected or '(none)'}"
        )
        self.name = name
        self.expected = expected
        self.actual = actual


class UnresolvedConflicts(Conflict, InvalidState):
    """Conflicted paths remain in the staging index.

    Also an InvalidState: nothing can be committed or continued until the
    paths are resolved.
    """

    def __init__(self, paths: Iterable[str]):
        self.paths = sorted(paths)
        super().__init__(f"unresolved conflicts in: {', '.join(self.paths)}")


class DestructiveConfirmationRequired(GraftError):
    """Operation would discard data and needs an explicit force flag."""
