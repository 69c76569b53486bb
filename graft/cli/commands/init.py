"""Initialize a new Graft repository."""

from pathlib import Path

import click

from graft.cli.output import info, success
from graft.core.repository import DEFAULT_BRANCH, Repository


@click.command('init')
@click.argument('path', default='.')
@click.option('-b', '--initial-branch', default=DEFAULT_BRANCH, show_default=True,
              help='Name of the first branch')
def init_cmd(path, initial_branch):
    """
    Initialize a new Graft repository.

    Creates a .graft directory with the necessary structure for version control.

    Examples:
        graft init                    # Initialize in current directory
        graft init my-project         # Initialize in my-project directory
        graft init -b trunk           # Start on a branch called trunk
    """
    repo_path = Path(path).resolve()

    if not repo_path.exists():
        repo_path.mkdir(parents=True)
        click.echo(info(f"Created directory {repo_path}"))

    repo = Repository(str(repo_path)).init(initial_branch=initial_branch)

    click.echo(success(f"Initialized empty Graft repository in {repo.graft_dir}"))
    click.echo(info(f"On branch {initial_branch}"))
