"""Branch command - list, create and delete branches."""

import click
from colorama import Fore, Style

from graft.cli.output import error, info, success, warning
from graft.cli.utils import open_repo
from graft.core.errors import DestructiveConfirmationRequired, RefConflict


@click.command('branch')
@click.argument('name', required=False)
@click.argument('start_point', required=False)
@click.option('-d', '--delete', is_flag=True, help='Delete a fully merged branch')
@click.option('-D', 'force_delete', is_flag=True, help='Delete a branch even if unmerged')
@click.option('-v', '--verbose', is_flag=True, help='Show the commit each branch points to')
def branch_cmd(name, start_point, delete, force_delete, verbose):
    """
    List, create, or delete branches.

    Examples:
        graft branch                  # List branches
        graft branch feature          # Create branch at HEAD
        graft branch fix abc1234      # Create branch at a commit
        graft branch -d feature       # Delete merged branch
        graft branch -D feature       # Force delete
    """
    repo = open_repo()

    if delete or force_delete:
        if not name:
            click.echo(error("Branch name required"))
            raise click.Abort()
        try:
            tip = repo.refs.delete_branch(name, force=force_delete)
        except DestructiveConfirmationRequired as e:
            click.echo(error(str(e)))
            click.echo(info(f"Use 'graft branch -D {name}' to delete it anyway"))
            raise click.Abort()
        click.echo(success(f"Deleted branch {name} (was {tip[:7]})"))
        if repo.refs.is_detached():
            click.echo(warning(f"HEAD is now detached at {tip[:7]}"))
        return

    if name:
        start = repo.refs.resolve_revision(start_point or 'HEAD')
        try:
            repo.refs.create_branch(name, start)
        except ValueError as e:
            click.echo(error(str(e)))
            raise click.Abort()
        except RefConflict:
            click.echo(error(f"A branch named '{name}' already exists"))
            raise click.Abort()
        click.echo(success(f"Created branch '{name}' at {start[:7]}"))
        return

    current = repo.refs.current_branch()
    branches = repo.refs.list_branches()
    if not branches:
        click.echo(info("No branches yet"))
        return

    for branch, commit_hash in branches:
        suffix = ""
        if verbose:
            suffix = f" {commit_hash[:7]} {repo.store.get_commit(commit_hash).summary}"
        if branch == current:
            click.echo(f"* {Fore.GREEN}{branch}{Style.RESET_ALL}{suffix}")
        else:
            click.echo(f"  {branch}{suffix}")
