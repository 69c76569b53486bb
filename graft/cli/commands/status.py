"""Status command - show working tree status."""

import click
from colorama import Fore, Style

from graft.cli.output import info, warning
from graft.cli.utils import open_repo
from graft.core.state import MERGING, REBASING
from graft.operations.diff import ADDED, DELETED

_LABELS = {ADDED: 'new file', DELETED: 'deleted', 'modified': 'modified'}


def _print_changes(title, changes, colour):
    click.echo(f"{title}:")
    for change in changes:
        click.echo(f"  {colour}{_LABELS[change.kind]}:   {change.path}{Style.RESET_ALL}")
    click.echo()


@click.command('status')
def status_cmd():
    """
    Show the working tree status.

    Displays:
    - Changes staged for commit (index vs HEAD)
    - Changes not staged for commit (working tree vs index)
    - Untracked files
    - Unmerged paths while a merge or rebase is paused

    Examples:
        graft status
    """
    repo = open_repo()
    status = repo.staging.status()

    if status.branch:
        click.echo(f"On branch {Fore.GREEN}{status.branch}{Style.RESET_ALL}")
    else:
        click.echo(f"{Fore.RED}HEAD detached at {status.head[:7]}{Style.RESET_ALL}")

    if status.head is None:
        click.echo("\nNo commits yet")
    click.echo()

    if status.state == MERGING:
        click.echo(warning("You have unmerged paths; fix conflicts and run 'graft commit'"))
        click.echo(info("  (use 'graft merge --abort' to abort the merge)"))
        click.echo()
    elif status.state == REBASING:
        state = repo.rebase.state()
        click.echo(warning(f"Rebase in progress onto {state.onto[:7]}, "
                           f"{len(state.remaining)} commit(s) left"))
        click.echo(info("  (use 'graft rebase --continue', '--skip' or '--abort')"))
        click.echo()

    if status.conflicts:
        click.echo("Unmerged paths:")
        for path in status.conflicts:
            click.echo(f"  {Fore.RED}both modified:   {path}{Style.RESET_ALL}")
        click.echo()

    conflicted = set(status.conflicts)
    staged = [c for c in status.staged if c.path not in conflicted]
    unstaged = [c for c in status.unstaged if c.path not in conflicted]

    if staged:
        _print_changes("Changes to be committed", staged, Fore.GREEN)
    if unstaged:
        _print_changes("Changes not staged for commit", unstaged, Fore.RED)
    if status.untracked:
        click.echo("Untracked files:")
        for path in status.untracked:
            click.echo(f"  {Fore.RED}{path}{Style.RESET_ALL}")
        click.echo()

    if status.is_clean and not status.untracked:
        click.echo("nothing to commit, working tree clean")
