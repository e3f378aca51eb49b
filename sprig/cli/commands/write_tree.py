"""Write-tree command - create tree objects from the index."""

import click
from sprig.core.errors import SprigError
from sprig.core.repository import Repository
from sprig.cli.output import error


@click.command('write-tree')
def write_tree_cmd():
    """
    Create a tree object from the current index.
    
    Prints the hash of the root tree. Directories unchanged since the
    last write-tree are taken from the index's tree cache, and the
    refreshed cache is saved back to the index.
    
    Examples:
        sprig write-tree
    """
    repo = Repository.find_repository()
    if not repo:
        click.echo(error("Not a sprig repository"))
        raise click.Abort()
    
    try:
        with repo.locked_index() as index:
            sha1 = repo.write_tree(index)
    except (SprigError, OSError) as e:
        click.echo(error(f"Write-tree failed: {e}"))
        raise click.Abort()
    
    click.echo(sha1)
