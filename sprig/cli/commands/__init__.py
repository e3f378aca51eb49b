"""CLI commands for sprig."""

from sprig.cli.commands.init import init_cmd
from sprig.cli.commands.hash_object import hash_object_cmd
from sprig.cli.commands.cat_file import cat_file_cmd
from sprig.cli.commands.update_index import update_index_cmd
from sprig.cli.commands.ls_files import ls_files_cmd
from sprig.cli.commands.write_tree import write_tree_cmd
from sprig.cli.commands.commit_tree import commit_tree_cmd
from sprig.cli.commands.diff import diff_cmd
from sprig.cli.commands.status import status_cmd

__all__ = ['init_cmd', 'hash_object_cmd', 'cat_file_cmd', 'update_index_cmd', 'ls_files_cmd',
           'write_tree_cmd', 'commit_tree_cmd', 'diff_cmd', 'status_cmd']
