"""Rebase command - replay commits onto another base."""

import click

from graft.cli.output import error, info, success, warning
from graft.cli.utils import open_repo


def _report(ctx, result):
    if result.up_to_date:
        click.echo(info("Current branch is up to date"))
        return
    if result.success:
        click.echo(success(result.message))
        if result.replayed:
            click.echo(info(f"Replayed {len(result.replayed)} commit(s)"))
        if result.skipped:
            click.echo(info(f"Dropped {len(result.skipped)} commit(s) already applied or skipped"))
        return

    for conflict in result.conflicts:
        click.echo(error(f"CONFLICT ({conflict.kind}): Merge conflict in {conflict.path}"))
    click.echo(warning(f"{result.message}"))
    click.echo(info("Resolve the conflicts, stage them with 'graft add', then run 'graft rebase --continue'"))
    click.echo(info("Or use 'graft rebase --skip' to drop this commit, 'graft rebase --abort' to give up"))
    ctx.exit(1)


@click.command('rebase')
@click.argument('upstream', required=False)
@click.argument('branch', required=False)
@click.option('--continue', 'continue_', is_flag=True, help='Continue after resolving conflicts')
@click.option('--skip', is_flag=True, help='Skip the commit that stopped the rebase')
@click.option('--abort', is_flag=True, help='Abort and restore the original branch')
@click.pass_context
def rebase_cmd(ctx, upstream, branch, continue_, skip, abort):
    """
    Reapply commits on top of another base tip.

    Commits on the current branch (or BRANCH) that are not in UPSTREAM are
    replayed one by one on top of UPSTREAM. Merge commits are dropped.

    Examples:
        graft rebase main             # Rebase current branch onto main
        graft rebase main feature     # Switch to feature, then rebase onto main
        graft rebase --continue
        graft rebase --skip
        graft rebase --abort
    """
    repo = open_repo()

    if sum([continue_, skip, abort]) > 1:
        click.echo(error("Use only one of --continue, --skip and --abort"))
        raise click.Abort()

    if abort:
        restored = repo.rebase.abort()
        click.echo(success(f"Rebase aborted, back at {restored[:7]}"))
        return
    if continue_:
        _report(ctx, repo.rebase.continue_())
        return
    if skip:
        _report(ctx, repo.rebase.skip())
        return

    if not upstream:
        click.echo(error("Missing upstream"))
        click.echo(info("Usage: graft rebase <upstream> [<branch>]"))
        raise click.Abort()

    _report(ctx, repo.rebase.rebase(upstream, branch=branch))
