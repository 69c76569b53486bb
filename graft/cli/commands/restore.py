"""Restore command - reset index entries from a commit."""

import click

from graft.cli.output import info, success
from graft.cli.utils import open_repo, to_repo_path


@click.command('restore')
@click.argument('paths', nargs=-1, required=True)
@click.option('-s', '--source', default='HEAD', show_default=True, help='Revision to restore from')
@click.option('-W', '--worktree', is_flag=True, help='Also overwrite the working-tree file')
def restore_cmd(paths, source, worktree):
    """
    Restore staged entries to match a commit.

    Without --worktree only the index changes, which unstages local edits.

    Examples:
        graft restore file.txt              # Unstage file.txt
        graft restore -W file.txt           # Discard changes to file.txt
        graft restore -s HEAD~2 file.txt    # Stage file.txt as of HEAD~2
    """
    repo = open_repo()
    for path in paths:
        rel = to_repo_path(repo, path)
        entry = repo.staging.restore(rel, source=source, worktree=worktree)
        if entry is None:
            click.echo(info(f"'{rel}' is not in {source}; removed from the index"))
        else:
            click.echo(success(f"Restored '{rel}' from {source}"))
