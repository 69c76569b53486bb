"""Merge and merge-base commands."""

import click

from graft.cli.output import error, info, success, warning
from graft.cli.utils import open_repo


@click.command('merge')
@click.argument('revision', required=False)
@click.option('--no-ff', is_flag=True, help='Create a merge commit even if fast-forward is possible')
@click.option('--abort', is_flag=True, help='Abort the current merge operation')
@click.option('-m', '--message', help='Merge commit message')
@click.pass_context
def merge_cmd(ctx, revision, no_ff, abort, message):
    """
    Merge a branch (or any revision) into the current branch.

    Exits with status 1 when the merge stops on conflicts.

    Examples:
        graft merge feature           # Merge feature branch into current branch
        graft merge feature --no-ff   # Force merge commit (no fast-forward)
        graft merge --abort           # Abort current merge (if conflicts exist)
    """
    repo = open_repo()

    if abort:
        restored = repo.merge.abort()
        click.echo(success(f"Merge aborted, HEAD is back at {restored[:7]}"))
        return

    if not revision:
        click.echo(error("Missing branch name"))
        click.echo(info("Usage: graft merge <branch>"))
        click.echo(info("       graft merge --abort"))
        raise click.Abort()

    result = repo.merge.merge(revision, message=message, allow_fast_forward=not no_ff)

    if result.up_to_date:
        click.echo(info("Already up to date"))
        return

    if result.is_fast_forward:
        click.echo(success(f"Fast-forward to {result.commit_hash[:7]}"))
        return

    if result.success:
        click.echo(success(f"Merge commit created: {result.commit_hash[:7]}"))
        click.echo(success(f"Merged '{revision}' into '{repo.refs.current_branch() or 'HEAD'}'"))
        return

    for conflict in result.conflicts:
        click.echo(error(f"CONFLICT ({conflict.kind}): Merge conflict in {conflict.path}"))
    click.echo(warning("Automatic merge failed; fix conflicts and then commit the result."))
    click.echo(info("  1. Edit the conflicted files"))
    click.echo(info("  2. Stage the resolved files: graft add <file>"))
    click.echo(info("  3. Complete the merge: graft commit"))
    click.echo(info("Or abort with: graft merge --abort"))
    ctx.exit(1)


@click.command('merge-base')
@click.argument('first')
@click.argument('second')
@click.option('--all', 'show_all', is_flag=True, help='Print every lowest common ancestor')
@click.pass_context
def merge_base_cmd(ctx, first, second, show_all):
    """
    Find the best common ancestor of two commits.

    Exits with status 1 when the histories are unrelated.

    Examples:
        graft merge-base main feature
        graft merge-base --all main feature
    """
    repo = open_repo()
    a = repo.refs.resolve_revision(first)
    b = repo.refs.resolve_revision(second)

    bases = repo.graph.merge_bases(a, b) if show_all else [repo.graph.merge_base(a, b)]
    bases = [base for base in bases if base]
    if not bases:
        ctx.exit(1)
    for base in bases:
        click.echo(base)
