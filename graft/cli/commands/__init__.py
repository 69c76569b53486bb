"""CLI commands for Graft."""

from graft.cli.commands.init import init_cmd
from graft.cli.commands.add import add_cmd, rm_cmd
from graft.cli.commands.restore import restore_cmd
from graft.cli.commands.commit import commit_cmd
from graft.cli.commands.status import status_cmd
from graft.cli.commands.log import log_cmd
from graft.cli.commands.branch import branch_cmd
from graft.cli.commands.switch import switch_cmd
from graft.cli.commands.merge import merge_cmd, merge_base_cmd
from graft.cli.commands.rebase import rebase_cmd
from graft.cli.commands.reset import reset_cmd
from graft.cli.commands.stash import stash_cmd
from graft.cli.commands.diff import diff_cmd
from graft.cli.commands.config import config_cmd
from graft.cli.commands.objects import cat_file_cmd, count_objects_cmd

__all__ = ['init_cmd', 'add_cmd', 'rm_cmd', 'restore_cmd', 'commit_cmd', 'status_cmd',
           'log_cmd', 'branch_cmd', 'switch_cmd', 'merge_cmd', 'merge_base_cmd',
           'rebase_cmd', 'reset_cmd', 'stash_cmd', 'diff_cmd', 'config_cmd',
           'cat_file_cmd', 'count_objects_cmd']
