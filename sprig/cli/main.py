"""Main CLI entry point for sprig."""

import logging

import click
from colorama import init

from sprig import __version__
from sprig.cli.output import BANNER
from sprig.cli.commands import (init_cmd, hash_object_cmd, cat_file_cmd, update_index_cmd,
                                ls_files_cmd, write_tree_cmd, commit_tree_cmd, diff_cmd,
                                status_cmd)

# Initialize colorama for cross-platform colored output
init(autoreset=True)


class SprigGroup(click.Group):
    """Custom Group class to display banner before help."""
    
    def format_help(self, ctx, formatter):
        """Override to add banner before help text."""
        click.echo(BANNER)
        super().format_help(ctx, formatter)


@click.group(cls=SprigGroup)
@click.version_option(version=__version__)
@click.option('-v', '--verbose', is_flag=True, help='Log debug messages to stderr')
def cli(verbose):
    if verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s %(name)s %(levelname)s %(message)s')


# Register commands
cli.add_command(init_cmd)
cli.add_command(hash_object_cmd)
cli.add_command(cat_file_cmd)
cli.add_command(update_index_cmd)
cli.add_command(ls_files_cmd)
cli.add_command(write_tree_cmd)
cli.add_command(commit_tree_cmd)
cli.add_command(diff_cmd)
cli.add_command(status_cmd)


def main():
    """Main entry point."""
    cli()


if __name__ == '__main__':
    main()
