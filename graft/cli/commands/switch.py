"""Switch command - change the current branch."""

import click

from graft.cli.output import error, success
from graft.cli.utils import open_repo


@click.command('switch')
@click.argument('branch')
@click.option('-c', '--create', is_flag=True, help='Create the branch at HEAD first')
def switch_cmd(branch, create):
    """
    Switch to a branch.

    Local changes to files that are the same on both branches are kept;
    the switch is refused if any would be overwritten.

    Examples:
        graft switch main
        graft switch -c feature
    """
    repo = open_repo()

    if create:
        head = repo.refs.head_commit()
        try:
            if head is None:
                repo.refs.set_head_unborn(branch)
                click.echo(success(f"Switched to a new branch '{branch}'"))
                return
            repo.refs.create_branch(branch, head)
        except ValueError as e:
            click.echo(error(str(e)))
            raise click.Abort()

    if branch == repo.refs.current_branch():
        click.echo(success(f"Already on '{branch}'"))
        return

    repo.staging.switch(branch)
    label = "a new branch" if create else "branch"
    click.echo(success(f"Switched to {label} '{branch}'"))
