"""Log command - show commit history."""

from collections import defaultdict
from datetime import datetime

import click
from colorama import Fore, Style

from graft.cli.output import info
from graft.cli.utils import open_repo


def format_timestamp(timestamp: int) -> str:
    """Format Unix timestamp to readable date."""
    return datetime.fromtimestamp(int(timestamp)).strftime("%a %b %d %H:%M:%S %Y")


def get_decorations(repo):
    """Map commit hash -> list of ref labels pointing at it."""
    labels = defaultdict(list)
    head = repo.refs.head()
    if head.detached and head.commit:
        labels[head.commit].append('HEAD')
    for name, commit_hash in repo.refs.list_branches():
        label = f"HEAD -> {name}" if name == head.branch else name
        labels[commit_hash].append(label)
    return labels


@click.command('log')
@click.argument('revision', default='HEAD')
@click.option('-n', '--max-count', type=int, help='Limit the number of commits to show')
@click.option('--oneline', is_flag=True, help='Show each commit on a single line')
def log_cmd(revision, max_count, oneline):
    """
    Show commit history, newest first.

    A commit is never listed before any of its descendants.

    Examples:
        graft log
        graft log --oneline -n 5
        graft log feature
    """
    repo = open_repo()

    if revision == 'HEAD' and repo.refs.head_commit() is None:
        click.echo(info(f"Branch '{repo.refs.current_branch()}' does not have any commits yet"))
        return

    tip = repo.refs.resolve_revision(revision)
    decorations = get_decorations(repo)

    for commit in repo.graph.history(tip, limit=max_count):
        labels = decorations.get(commit.hash)
        deco = f" {Fore.CYAN}({', '.join(labels)}){Style.RESET_ALL}" if labels else ""

        if oneline:
            click.echo(f"{Fore.YELLOW}{commit.hash[:7]}{Style.RESET_ALL}{deco} {commit.summary}")
            continue

        click.echo(f"{Fore.YELLOW}commit {commit.hash}{Style.RESET_ALL}{deco}")
        if len(commit.parents) > 1:
            click.echo(f"Merge: {' '.join(p[:7] for p in commit.parents)}")
        click.echo(f"Author: {commit.author}")
        click.echo(f"Date:   {format_timestamp(commit.author_time)}")
        click.echo()
        for line in commit.message.rstrip('\n').split('\n'):
            click.echo(f"    {line}")
        click.echo()
