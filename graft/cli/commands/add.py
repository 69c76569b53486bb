"""Add and rm commands - stage and unstage files."""

import click

from graft.cli.output import info, success, warning
from graft.cli.utils import expand_paths, open_repo, to_repo_path
from graft.operations.textmerge import MARKER_OURS


@click.command('add')
@click.argument('paths', nargs=-1, required=True)
def add_cmd(paths):
    """
    Add file contents to the staging area.

    Stage files for the next commit. Modified files must be added
    again to stage the new changes; a tracked file that no longer
    exists is unstaged.

    During a merge or rebase with conflicts, adding a file marks it
    as resolved.

    Examples:
        graft add file.txt
        graft add src
        graft add .
    """
    repo = open_repo()
    conflicted = set(repo.read_index().conflicted_paths())

    added, removed, still_marked = [], [], []
    for path in expand_paths(repo, paths):
        content = repo.worktree.read(path)
        if content is None:
            repo.staging.remove(path, cached=True)
            removed.append(path)
            continue
        repo.staging.add(path)
        added.append(path)
        if path in conflicted and MARKER_OURS.encode() in content:
            still_marked.append(path)

    if added:
        click.echo(success(f"Added {len(added)} file(s) to staging area"))
        for path in added:
            click.echo(info(f"  {path}"))
    if removed:
        click.echo(success(f"Staged removal of {len(removed)} file(s)"))
        for path in removed:
            click.echo(info(f"  {path}"))

    if still_marked:
        click.echo(warning(f"{len(still_marked)} file(s) still contain conflict markers:"))
        for path in still_marked:
            click.echo(warning(f"  {path}"))

    resolved = conflicted & set(added + removed)
    if resolved:
        click.echo(info(f"{len(resolved)} conflicted file(s) marked as resolved"))


@click.command('rm')
@click.argument('paths', nargs=-1, required=True)
@click.option('--cached', is_flag=True, help='Only remove from the index')
def rm_cmd(paths, cached):
    """
    Remove files from the working tree and the staging area.

    Examples:
        graft rm old.txt
        graft rm --cached secrets.env
    """
    repo = open_repo()
    for path in paths:
        rel = to_repo_path(repo, path)
        repo.staging.remove(rel, cached=cached)
        click.echo(success(f"rm '{rel}'"))
