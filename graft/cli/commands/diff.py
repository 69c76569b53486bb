"""Diff command - show changes between index, working tree and commits."""

import click

from graft.cli.output import error
from graft.cli.utils import open_repo


@click.command('diff')
@click.argument('commits', nargs=-1)
@click.option('--staged', '--cached', 'staged', is_flag=True, help='Show staged changes (index vs HEAD)')
@click.option('--name-only', is_flag=True, help='Show only names of changed files')
@click.option('--no-color', is_flag=True, help='Disable colored output')
def diff_cmd(commits, staged, name_only, no_color):
    """
    Show changes.

    Examples:
        graft diff                    # Working tree vs index
        graft diff --staged           # Index vs HEAD
        graft diff main feature       # Between two commits
    """
    repo = open_repo()
    engine = repo.diff

    if len(commits) == 2:
        old = repo.refs.resolve_revision(commits[0])
        new = repo.refs.resolve_revision(commits[1])
        changes = engine.diff_commits(old, new)
        worktree = False
    elif commits:
        click.echo(error("Give either no commits or exactly two"))
        raise click.Abort()
    elif staged:
        changes = engine.diff_index_to_head()
        worktree = False
    else:
        changes = engine.diff_worktree_to_index()
        worktree = True

    if name_only:
        for change in changes:
            click.echo(change.path)
        return

    diffs = engine.file_diffs(changes, worktree=worktree)
    if diffs:
        click.echo(engine.format_diff(diffs, color=not no_color))
