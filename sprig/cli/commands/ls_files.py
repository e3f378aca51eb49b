"""Ls-files command - show staged paths."""

import click
from sprig.core.errors import SprigError
from sprig.core.repository import Repository
from sprig.cli.output import error


@click.command('ls-files')
@click.option('-s', '--stage', is_flag=True, help='Show mode, hash and stage of each entry')
def ls_files_cmd(stage):
    """
    Show information about files in the index.
    
    Paths are listed in byte-wise order, one per line.
    
    Examples:
        sprig ls-files
        sprig ls-files --stage
    """
    repo = Repository.find_repository()
    if not repo:
        click.echo(error("Not a sprig repository"))
        raise click.Abort()
    
    try:
        index = repo.load_index()
    except SprigError as e:
        click.echo(error(f"Cannot read index: {e}"))
        raise click.Abort()
    
    for entry in index:
        click.echo(entry.format_stage() if stage else entry.path)
