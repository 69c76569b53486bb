"""Object inspection commands: cat-file and count-objects."""

import click

from graft.cli.utils import open_repo
from graft.core.errors import NotFound, ObjectNotFound
from graft.core.objects import Blob, Tree


def _resolve_object(repo, name):
    """Resolve a revision or (abbreviated) object hash."""
    try:
        return repo.refs.resolve_revision(name)
    except NotFound:
        full = repo.store.find_by_prefix(name)
        if full is None:
            raise ObjectNotFound(name)
        return full


@click.command('cat-file')
@click.argument('name')
@click.option('-t', 'show_type', is_flag=True, help='Show object type')
@click.option('-s', 'show_size', is_flag=True, help='Show payload size')
def cat_file_cmd(name, show_type, show_size):
    """
    Show the content of a stored object.

    Examples:
        graft cat-file HEAD
        graft cat-file -t abc1234
    """
    repo = open_repo()
    obj = repo.store.get(_resolve_object(repo, name))

    if show_type:
        click.echo(obj.kind)
    elif show_size:
        click.echo(len(obj.serialize()))
    elif isinstance(obj, Blob):
        click.echo(obj.data, nl=False)
    elif isinstance(obj, Tree):
        for entry in obj.entries:
            click.echo(f"{entry.mode} {entry.type} {entry.hash}\t{entry.name}")
    else:
        click.echo(obj.serialize().decode())


@click.command('count-objects')
def count_objects_cmd():
    """Count stored objects."""
    repo = open_repo()
    click.echo(f"{repo.store.count()} objects")
