"""Diff engine: path-level change classification and text diffs."""

from dataclasses import dataclass
from difflib import unified_diff
from typing import Dict, List, Optional

from graft.core.objects import FileEntry

ADDED = 'added'
DELETED = 'deleted'
MODIFIED = 'modified'


@dataclass
class TreeChange:
    """How one path differs between two snapshots."""
    path: str
    kind: str
    old: Optional[FileEntry]
    new: Optional[FileEntry]

    @property
    def mode_only(self) -> bool:
        return (self.kind == MODIFIED and self.old.hash == self.new.hash)

    def __repr__(self) -> str:
        return f"TreeChange({self.kind} {self.path})"


def diff_files(old_files: Dict[str, FileEntry], new_files: Dict[str, FileEntry]) -> List[TreeChange]:
    """
    Classify every path that differs between two flattened snapshots.

    Args:
        old_files: {path: FileEntry} before
        new_files: {path: FileEntry} after

    Returns:
        Changes sorted by path
    """
    changes = []
    for path in sorted(set(old_files) | set(new_files)):
        old = old_files.get(path)
        new = new_files.get(path)
        if old == new:
            continue
        if old is None:
            kind = ADDED
        elif new is None:
            kind = DELETED
        else:
            kind = MODIFIED
        changes.append(TreeChange(path, kind, old, new))
    return changes


class DiffHunk:
    """Represents a single hunk (continuous block of changes) in a diff."""

    def __init__(self, old_start: int, old_count: int, new_start: int, new_count: int):
        self.old_start = old_start
        self.old_count = old_count
        self.new_start = new_start
        self.new_count = new_count
        self.lines: List[str] = []

    def __str__(self):
        return f"@@ -{self.old_start},{self.old_count} +{self.new_start},{self.new_count} @@"


class FileDiff:
    """Line-level diff of one file."""

    def __init__(self, path: str, old_content: Optional[bytes], new_content: Optional[bytes]):
        self.path = path
        self.old_content = old_content
        self.new_content = new_content
        self.is_new = old_content is None
        self.is_deleted = new_content is None
        self.hunks: List[DiffHunk] = []
        self.is_binary = any(
            content is not None and b'\0' in content
            for content in (old_content, new_content)
        )

    def compute_diff(self) -> 'FileDiff':
        """Compute diff hunks for this file."""
        if self.is_binary:
            return self

        old_lines = _lines(self.old_content)
        new_lines = _lines(self.new_content)
        diff_lines = list(unified_diff(old_lines, new_lines, lineterm=''))

        current = None
        for line in diff_lines[2:]:
            if line.startswith('@@'):
                old_part, new_part = line.split('@@')[1].split()
                current = DiffHunk(*_range(old_part[1:]), *_range(new_part[1:]))
                self.hunks.append(current)
            elif current is not None:
                current.lines.append(line.rstrip('\n'))
        return self


def _lines(content: Optional[bytes]) -> List[str]:
    if content is None:
        return []
    return content.decode('utf-8', errors='replace').splitlines(keepends=True)


def _range(part: str):
    if ',' in part:
        start, count = part.split(',')
        return int(start), int(count)
    return int(part), 1


class DiffEngine:
    """
    Engine for computing diffs between trees, commits, the index and the
    working tree.
    """

    def __init__(self, repo):
        """
        Initialize diff engine.

        Args:
            repo: Repository instance
        """
        self.repo = repo

    def diff_trees(self, old_tree: Optional[str], new_tree: Optional[str]) -> List[TreeChange]:
        """
        Path-level changes between two trees (None means empty).
        """
        store = self.repo.store
        old_files = store.flatten_tree(old_tree) if old_tree else {}
        new_files = store.flatten_tree(new_tree) if new_tree else {}
        return diff_files(old_files, new_files)

    def diff_commits(self, old_commit: Optional[str], new_commit: str) -> List[TreeChange]:
        """Changes introduced going from old_commit (None for root) to new_commit."""
        store = self.repo.store
        return diff_files(store.commit_files(old_commit), store.commit_files(new_commit))

    def diff_index_to_head(self) -> List[TreeChange]:
        """Staged changes."""
        return diff_files(self.repo.head_files(), self.repo.read_index().to_files())

    def diff_worktree_to_index(self) -> List[TreeChange]:
        """Unstaged changes to tracked files."""
        return self.repo.staging.unstaged_changes()

    def blob_content(self, entry: Optional[FileEntry]) -> Optional[bytes]:
        if entry is None:
            return None
        return self.repo.store.get_blob(entry.hash).data

    def file_diffs(self, changes: List[TreeChange], worktree: bool = False) -> List[FileDiff]:
        """
        Line-level diffs for a list of changes.

        Args:
            changes: Output of one of the diff_* methods
            worktree: Read the new side from the working tree instead of the store
        """
        diffs = []
        for change in changes:
            old_content = self.blob_content(change.old)
            if worktree:
                new_content = self.repo.worktree.read(change.path)
            else:
                new_content = self.blob_content(change.new)
            diffs.append(FileDiff(change.path, old_content, new_content).compute_diff())
        return diffs

    def format_diff(self, diffs: List[FileDiff], color: bool = True) -> str:
        """
        Format diffs as unified diff output.

        Args:
            diffs: List of FileDiff objects
            color: Whether to use color output
        """
        from colorama import Fore, Style

        def paint(text, colour):
            return f"{colour}{text}{Style.RESET_ALL}" if color else text

        output = []
        for diff in diffs:
            output.append(paint(f"diff --graft a/{diff.path} b/{diff.path}", Style.BRIGHT))
            if diff.is_new:
                output.append("new file")
            elif diff.is_deleted:
                output.append("deleted file")
            if diff.is_binary:
                output.append(f"Binary files differ: {diff.path}")
                continue
            output.append("--- /dev/null" if diff.is_new else f"--- a/{diff.path}")
            output.append("+++ /dev/null" if diff.is_deleted else f"+++ b/{diff.path}")

            for hunk in diff.hunks:
                output.append(paint(str(hunk), Fore.CYAN))
                for line in hunk.lines:
                    if line.startswith('+'):
                        output.append(paint(line, Fore.GREEN))
                    elif line.startswith('-'):
                        output.append(paint(line, Fore.RED))
                    else:
                        output.append(line)

        return '\n'.join(output)
