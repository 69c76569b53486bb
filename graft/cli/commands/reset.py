"""Reset command - move the current branch."""

import click

from graft.cli.output import error, info, success
from graft.cli.utils import open_repo
from graft.core.errors import DestructiveConfirmationRequired
from graft.operations.reset import HARD, MIXED, SOFT


@click.command('reset')
@click.argument('target', default='HEAD')
@click.option('--soft', 'mode', flag_value=SOFT, help='Move the branch only')
@click.option('--mixed', 'mode', flag_value=MIXED, default=True, help='Also reset the index (default)')
@click.option('--hard', 'mode', flag_value=HARD, help='Also reset the working tree')
@click.option('-f', '--force', is_flag=True, help='Confirm a hard reset')
def reset_cmd(target, mode, force):
    """
    Reset current HEAD to the specified state.

    Examples:
        graft reset HEAD~1              # Uncommit, keep changes unstaged
        graft reset --soft HEAD~1       # Uncommit, keep changes staged
        graft reset --hard --force main # Discard everything, match main
    """
    repo = open_repo()

    try:
        commit_hash = repo.reset.reset(target, mode=mode, force=force)
    except DestructiveConfirmationRequired as e:
        click.echo(error(str(e)))
        click.echo(info("Re-run with --force to discard uncommitted changes"))
        raise click.Abort()

    summary = repo.store.get_commit(commit_hash).summary
    click.echo(success(f"HEAD is now at {commit_hash[:7]} {summary}"))
    if mode == MIXED:
        unstaged = repo.staging.unstaged_changes()
        if unstaged:
            click.echo(info("Unstaged changes after reset:"))
            for change in unstaged:
                click.echo(info(f"  {change.kind[0].upper()}\t{change.path}"))
