"""Operations module for high-level Graft operations.

This module contains the business logic for Graft operations like:
- Commit graph navigation and merge bases
- Diff computation
- Staging, committing and switching branches
- Merge, rebase and reset
- Stash management
"""

from graft.operations.graph import CommitGraph, History
from graft.operations.diff import DiffEngine, FileDiff, DiffHunk, TreeChange, diff_files
from graft.operations.staging import StagingArea, Status
from graft.operations.merge import MergeEngine, MergeResult, MergeConflict, TreeMergeResult
from graft.operations.rebase import RebaseEngine, RebaseResult
from graft.operations.reset import ResetEngine
from graft.operations.stash import StashStack, StashEntry, StashApplyResult
from graft.operations.textmerge import merge3, TextMergeResult

__all__ = [
    'CommitGraph', 'History',
    'DiffEngine', 'FileDiff', 'DiffHunk', 'TreeChange', 'diff_files',
    'StagingArea', 'Status',
    'MergeEngine', 'MergeResult', 'MergeConflict', 'TreeMergeResult',
    'RebaseEngine', 'RebaseResult',
    'ResetEngine',
    'StashStack', 'StashEntry', 'StashApplyResult',
    'merge3', 'TextMergeResult',
]
