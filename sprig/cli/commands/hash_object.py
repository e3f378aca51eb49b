"""Hash-object command - compute blob hashes for files."""

import click
from sprig.core.errors import SprigError
from sprig.core.objects import Blob
from sprig.core.repository import Repository
from sprig.cli.output import error


@click.command('hash-object')
@click.option('-w', '--write', is_flag=True, help='Write the blob into the object store')
@click.argument('files', nargs=-1, required=True)
def hash_object_cmd(write, files):
    """
    Compute the blob hash of each file.
    
    Prints one hash per file. With -w the blobs are also stored.
    
    Examples:
        sprig hash-object README.md
        sprig hash-object -w src/main.py
    """
    repo = None
    if write:
        repo = Repository.find_repository()
        if not repo:
            click.echo(error("Not a sprig repository"))
            raise click.Abort()
    
    try:
        for filename in files:
            blob = Blob.from_file(filename)
            sha1 = repo.write_object(blob) if write else blob.hash
            click.echo(sha1)
    except (SprigError, OSError) as e:
        click.echo(error(f"Cannot hash {filename}: {e}"))
        raise click.Abort()
