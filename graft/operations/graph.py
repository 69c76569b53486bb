"""Commit graph navigation: ancestry, merge bases and history walks."""

import heapq
import logging
from collections import deque
from typing import Dict, Iterator, List, Optional, Set

from graft.core.objects import Commit

logger = logging.getLogger(__name__)


class History:
    """
    Lazy, restartable walk over a commit's ancestry.

    Every iteration starts a fresh walk from the tip, yielding Commit
    objects newest first.
    """

    def __init__(self, graph: 'CommitGraph', tip: str, exclude: Optional[str] = None,
                 limit: Optional[int] = None):
        self.graph = graph
        self.tip = tip
        self.exclude = exclude
        self.limit = limit

    def __iter__(self) -> Iterator[Commit]:
        stop = self.graph.ancestors(self.exclude) if self.exclude else set()
        walk = self.graph.walk(self.tip, stop)
        for count, commit in enumerate(walk):
            if self.limit is not None and count >= self.limit:
                return
            yield commit

    def hashes(self) -> List[str]:
        return [commit.hash for commit in self]


class CommitGraph:
    """
    Read-only queries over the commit graph held in an object store.

    Supports:
    - Ancestry tests
    - Merge-base (lowest common ancestor) computation
    - Reverse-chronological, topologically consistent history walks
    - Commit ranges for replaying
    """

    def __init__(self, store):
        """
        Initialize commit graph.

        Args:
            store: ObjectStore holding the commits
        """
        self.store = store
        self._commits: Dict[str, Commit] = {}

    def commit(self, commit_hash: str) -> Commit:
        # Commits are immutable, so caching by hash is always safe
        if commit_hash not in self._commits:
            self._commits[commit_hash] = self.store.get_commit(commit_hash)
        return self._commits[commit_hash]

    def parents(self, commit_hash: str) -> List[str]:
        return self.commit(commit_hash).parents

    def ancestors(self, commit_hash: str) -> Set[str]:
        """
        Get all ancestors of a commit.

        Returns:
            Set of ancestor commit hashes (including the commit itself)
        """
        seen = {commit_hash}
        queue = deque([commit_hash])
        while queue:
            for parent in self.parents(queue.popleft()):
                if parent not in seen:
                    seen.add(parent)
                    queue.append(parent)
        return seen

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """
        True iff ancestor is reachable from descendant by parent edges.

        A commit counts as its own ancestor.
        """
        if ancestor == descendant:
            return True

        seen = {descendant}
        queue = deque([descendant])
        while queue:
            for parent in self.parents(queue.popleft()):
                if parent == ancestor:
                    return True
                if parent not in seen:
                    seen.add(parent)
                    queue.append(parent)
        return False

    def merge_bases(self, a: str, b: str) -> List[str]:
        """
        Find all lowest common ancestors of two commits.

        A common ancestor is lowest when no other common ancestor descends
        from it. Criss-cross histories have more than one.

        Returns:
            Sorted list of commit hashes (empty for unrelated histories)
        """
        if a == b:
            return [a]

        common = self.ancestors(a) & self.ancestors(b)
        if not common:
            return []

        # Anything strictly below a common ancestor is not lowest
        redundant: Set[str] = set()
        queue = deque(p for c in common for p in self.parents(c))
        while queue:
            current = queue.popleft()
            if current in redundant:
                continue
            redundant.add(current)
            queue.extend(self.parents(current))

        return sorted(common - redundant)

    def merge_base(self, a: str, b: str) -> Optional[str]:
        """
        Find the merge base of two commits.

        When several lowest common ancestors exist, the one with the
        smallest hash is chosen so the result is deterministic and
        independent of argument order.

        Returns:
            Commit hash, or None if the histories are unrelated
        """
        bases = self.merge_bases(a, b)
        if len(bases) > 1:
            logger.debug("criss-cross: %d merge bases for %s and %s, picking %s",
                         len(bases), a[:7], b[:7], bases[0][:7])
        return bases[0] if bases else None

    def walk(self, tip: str, stop: Optional[Set[str]] = None) -> Iterator[Commit]:
        """
        Yield commits reachable from tip, newest first.

        A commit is only yielded once all of its descendants in the walked
        set have been yielded; among ready commits the latest commit time
        goes first, ties broken by hash.

        Args:
            tip: Starting commit
            stop: Commits (and implicitly their ancestry) to leave out
        """
        stop = stop or set()
        if tip in stop:
            return

        children: Dict[str, int] = {tip: 0}
        queue = deque([tip])
        while queue:
            current = queue.popleft()
            for parent in self.parents(current):
                if parent in stop:
                    continue
                if parent not in children:
                    children[parent] = 0
                    queue.append(parent)
                children[parent] += 1

        ready = [(-self.commit(tip).committer_time, tip)]
        while ready:
            _, current = heapq.heappop(ready)
            commit = self.commit(current)
            yield commit
            for parent in commit.parents:
                if parent not in children:
                    continue
                children[parent] -= 1
                if children[parent] == 0:
                    heapq.heappush(ready, (-self.commit(parent).committer_time, parent))

    def history(self, tip: str, limit: Optional[int] = None) -> History:
        """Restartable newest-first history of tip."""
        return History(self, tip, limit=limit)

    def commit_range(self, exclude: Optional[str], tip: str) -> List[str]:
        """
        Commits reachable from tip but not from exclude.

        Returns:
            Commit hashes, oldest first (parents before children)
        """
        history = History(self, tip, exclude=exclude)
        return list(reversed(history.hashes()))
