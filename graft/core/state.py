"""Persisted record of a paused merge or rebase.

A conflicted operation may be resumed by a later process, so its progress
lives on disk in ``.graft/operation.json`` rather than in memory.
"""

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from .errors import CorruptObject

CLEAN = 'clean'
MERGING = 'merging'
REBASING = 'rebasing'


@dataclass
class MergeState:
    """State of an in-progress merge."""
    orig_head: str               # Our commit when the merge started
    merge_head: str              # Commit being merged in
    message: str                 # Default message for the merge commit
    conflicts: List[str] = field(default_factory=list)

    kind = MERGING

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'MergeState':
        return cls(**data)


@dataclass
class RebaseState:
    """State of an in-progress rebase."""
    onto: str                    # Commit the range is replayed onto
    head_name: Optional[str]     # Branch being rebased (None if detached)
    orig_head: str               # Branch tip before the rebase
    commits: List[str]           # Commits to replay (oldest first)
    current_index: int = 0       # Position of the commit being replayed
    tip: str = ''                # Current replay tip
    done: Dict[str, str] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)

    kind = REBASING

    @property
    def current_commit(self) -> Optional[str]:
        if self.current_index < len(self.commits):
            return self.commits[self.current_index]
        return None

    @property
    def remaining(self) -> List[str]:
        return self.commits[self.current_index:]

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'RebaseState':
        return cls(**data)


OperationState = Union[MergeState, RebaseState]

_STATE_TYPES = {MERGING: MergeState, REBASING: RebaseState}


class OperationStore:
    """Loads and saves the single in-progress operation record."""

    def __init__(self, state_file: Path):
        self.state_file = Path(state_file)

    def load(self) -> Optional[OperationState]:
        if not self.state_file.exists():
            return None

        try:
            data = json.loads(self.state_file.read_text())
            return _STATE_TYPES[data.pop('kind')].from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise CorruptObject(f"Unreadable operation state: {self.state_file}") from e

    def save(self, state: OperationState) -> None:
        data = {'kind': state.kind, **state.to_dict()}
        tmp = self.state_file.with_name(self.state_file.name + '.tmp')
        tmp.write_text(json.dumps(data, indent=2))
        os.replace(tmp, self.state_file)

    def clear(self) -> None:
        if self.state_file.exists():
            self.state_file.unlink()

    def status(self) -> str:
        """One of CLEAN, MERGING, REBASING."""
        state = self.load()
        return state.kind if state else CLEAN
