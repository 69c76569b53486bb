"""Main CLI entry point for Graft."""

import click
from colorama import init

from graft import __version__
from graft.cli.output import BANNER, error
from graft.cli.commands import (
    init_cmd, add_cmd, rm_cmd, restore_cmd, commit_cmd, status_cmd, log_cmd,
    branch_cmd, switch_cmd, merge_cmd, merge_base_cmd, rebase_cmd, reset_cmd,
    stash_cmd, diff_cmd, config_cmd, cat_file_cmd, count_objects_cmd,
)
from graft.core.errors import GraftError
from graft.log_utils import default_logging_config

# Initialize colorama for cross-platform colored output
init(autoreset=True)


class GraftGroup(click.Group):
    """Command group that shows a banner and reports engine errors."""

    def format_help(self, ctx, formatter):
        """Override to add banner before help text."""
        click.echo(BANNER)
        super().format_help(ctx, formatter)

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except GraftError as e:
            click.echo(error(str(e)))
            ctx.exit(1)


@click.group(cls=GraftGroup)
@click.version_option(version=__version__)
@click.option('-v', '--verbose', is_flag=True, help='Log engine activity to stderr')
def cli(verbose):
    default_logging_config(verbose)


cli.add_command(init_cmd)
cli.add_command(add_cmd)
cli.add_command(rm_cmd)
cli.add_command(restore_cmd)
cli.add_command(commit_cmd)
cli.add_command(status_cmd)
cli.add_command(log_cmd)
cli.add_command(branch_cmd)
cli.add_command(switch_cmd)
cli.add_command(merge_cmd)
cli.add_command(merge_base_cmd)
cli.add_command(rebase_cmd)
cli.add_command(reset_cmd)
cli.add_command(stash_cmd)
cli.add_command(diff_cmd)
cli.add_command(config_cmd)
cli.add_command(cat_file_cmd)
cli.add_command(count_objects_cmd)


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
