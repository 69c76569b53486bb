"""Stash command for Graft."""

from datetime import datetime

import click
from colorama import Fore, Style

from graft.cli.output import error, info, success, warning
from graft.cli.utils import open_repo, parse_stash_ref


@click.group('stash', invoke_without_command=True)
@click.pass_context
def stash_cmd(ctx):
    """Stash changes in working directory.

    Use 'graft stash' to save changes and clean working directory.
    Use 'graft stash pop' to restore most recent stash.
    Use 'graft stash list' to see all stashes.
    """
    # If no subcommand, default to 'push'
    if ctx.invoked_subcommand is None:
        ctx.invoke(push)


@stash_cmd.command('push')
@click.option('-m', '--message', help='Stash message')
@click.option('-k', '--keep-index', is_flag=True, help='Keep staged changes in index')
def push(message, keep_index):
    """Save changes to stash (default action)."""
    repo = open_repo()
    entry = repo.stash.push(message=message, keep_index=keep_index)

    if entry:
        click.echo(success("Saved working directory and index state"))
        click.echo(info(f"  {entry.message}"))
    else:
        click.echo(info("No local changes to save"))


@stash_cmd.command('list')
def list_stashes():
    """List all stashed changes."""
    repo = open_repo()
    entries = repo.stash.list()

    if not entries:
        click.echo(info("No stashed changes"))
        return

    for i, entry in enumerate(entries):
        date_str = datetime.fromtimestamp(entry.timestamp).strftime("%b %d %H:%M")
        click.echo(f"{Fore.YELLOW}stash@{{{i}}}{Style.RESET_ALL}: On {entry.branch}: "
                   f"{entry.message} ({date_str})")


@stash_cmd.command('show')
@click.argument('stash_ref', default='0')
def show(stash_ref):
    """Show files changed in a stash entry."""
    repo = open_repo()
    n = parse_stash_ref(stash_ref)
    changes = repo.stash.show(n)
    entry = repo.stash.list()[n]

    click.echo(f"{Fore.YELLOW}stash@{{{n}}}{Style.RESET_ALL}: {entry.message}")
    click.echo(f"  Branch: {entry.branch}")
    click.echo(f"  Commit: {entry.commit[:7]}")
    click.echo()
    for change in changes:
        click.echo(f"  {change.kind}: {change.path}")


def _apply(n, pop):
    repo = open_repo()
    result = repo.stash.pop(n) if pop else repo.stash.apply(n)

    if result.success:
        action = "Applied stash@{%d} and removed it" % n if pop else "Applied stash@{%d}" % n
        click.echo(success(action))
        click.echo(info(f"  {result.entry.message}"))
        return True

    for conflict in result.conflicts:
        click.echo(error(f"CONFLICT ({conflict.kind}): {conflict.path}"))
    click.echo(warning("Stash applied with conflicts; resolve them and stage the results"))
    if pop:
        click.echo(info(f"The stash entry is kept; drop it with 'graft stash drop {n}' when done"))
    return False


@stash_cmd.command('pop')
@click.argument('stash_ref', default='0')
@click.pass_context
def pop(ctx, stash_ref):
    """Apply stash and remove it from the list."""
    if not _apply(parse_stash_ref(stash_ref), pop=True):
        ctx.exit(1)


@stash_cmd.command('apply')
@click.argument('stash_ref', default='0')
@click.pass_context
def apply(ctx, stash_ref):
    """Apply stash without removing it."""
    if not _apply(parse_stash_ref(stash_ref), pop=False):
        ctx.exit(1)


@stash_cmd.command('drop')
@click.argument('stash_ref', default='0')
def drop(stash_ref):
    """Remove a stash entry without applying it."""
    repo = open_repo()
    n = parse_stash_ref(stash_ref)
    entry = repo.stash.drop(n)
    click.echo(success(f"Dropped stash@{{{n}}}"))
    click.echo(info(f"  {entry.message}"))


@stash_cmd.command('clear')
@click.confirmation_option(prompt='Are you sure you want to remove all stashes?')
def clear():
    """Remove all stash entries."""
    repo = open_repo()
    count = repo.stash.clear()

    if count > 0:
        click.echo(success(f"Dropped {count} stash{'es' if count > 1 else ''}"))
    else:
        click.echo(info("No stashes to clear"))
