"""Commit command - create a commit from staged changes."""

import click

from graft.cli.output import error, info, success
from graft.cli.utils import open_repo


@click.command('commit')
@click.option('-m', '--message', help='Commit message')
@click.option('--author', help='Author name and email (format: "Name <email>")')
@click.option('--allow-empty', is_flag=True, help='Record a commit even if nothing changed')
def commit_cmd(message, author, allow_empty):
    """
    Record changes to the repository.

    Creates a commit from the staged changes in the index.

    During a merge, this command completes the merge by creating a merge
    commit (the merge message is used when -m is omitted).

    Examples:
        graft commit -m "Initial commit"
        graft commit -m "Add feature" --author "Jane <jane@example.com>"
    """
    repo = open_repo()
    merging = repo.merge.in_progress()

    if not message and not merging:
        click.echo(error("Commit message required. Use -m \"message\""))
        raise click.Abort()

    commit_hash = repo.staging.commit(message=message, author=author, allow_empty=allow_empty)
    commit = repo.store.get_commit(commit_hash)
    where = repo.refs.current_branch() or 'detached HEAD'

    if len(commit.parents) > 1:
        click.echo(success(f"Merge completed! Created merge commit {commit_hash[:7]}"))
        click.echo(info(f"Parents: {', '.join(p[:7] for p in commit.parents)}"))
    elif not commit.parents:
        click.echo(success(f"[{where} (root-commit) {commit_hash[:7]}] {commit.summary}"))
    else:
        click.echo(success(f"[{where} {commit_hash[:7]}] {commit.summary}"))
