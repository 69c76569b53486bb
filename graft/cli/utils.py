"""Helpers shared by CLI commands."""

from pathlib import Path
from typing import Iterable, List

import click

from graft.cli.output import error
from graft.core.errors import NotFound
from graft.core.repository import Repository


def open_repo() -> Repository:
    """Find the repository containing the current directory or abort."""
    repo = Repository.find_repository()
    if not repo:
        click.echo(error("Not a graft repository (or any of the parent directories)"))
        raise click.Abort()
    return repo


def to_repo_path(repo: Repository, path: str) -> str:
    """
    Convert a path given on the command line to a repository path.

    Returns:
        Slash-separated path relative to the repository root ('' for the root)
    """
    full = (Path.cwd() / path).resolve()
    try:
        rel = full.relative_to(repo.root)
    except ValueError:
        raise click.BadParameter(f"'{path}' is outside repository at {repo.root}")
    return '' if rel == Path('.') else rel.as_posix()


def expand_paths(repo: Repository, paths: Iterable[str]) -> List[str]:
    """
    Expand files and directories to the repository paths below them.

    Both working-tree files and tracked paths match, so a deleted tracked
    file can still be named.

    Raises:
        NotFound: If a path matches nothing
    """
    candidates = set(repo.worktree.paths()) | set(repo.read_index().entries)
    result = set()
    for path in paths:
        rel = to_repo_path(repo, path)
        matches = [c for c in candidates if not rel or c == rel or c.startswith(rel + '/')]
        if not matches:
            raise NotFound(f"pathspec '{path}' did not match any files")
        result.update(matches)
    return sorted(result)


def parse_stash_ref(ref: str) -> int:
    """
    Parse stash reference to index.

    Accepts:
        - "stash@{0}", "stash@{1}", etc.
        - "0", "1", etc.

    Raises:
        click.BadParameter: If invalid format
    """
    value = ref[7:-1] if ref.startswith('stash@{') and ref.endswith('}') else ref
    try:
        return int(value)
    except ValueError:
        raise click.BadParameter(f"Invalid stash reference: {ref}")
