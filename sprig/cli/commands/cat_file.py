"""Cat-file command - inspect stored objects."""

import click
from sprig.core.errors import SprigError
from sprig.core.objects import Blob, Commit, Tree
from sprig.core.repository import Repository
from sprig.cli.output import error


@click.command('cat-file')
@click.option('-t', 'show_type', is_flag=True, help='Show object type')
@click.option('-s', 'show_size', is_flag=True, help='Show object size')
@click.option('-p', 'pretty', is_flag=True, help='Pretty-print object content')
@click.argument('object_hash')
def cat_file_cmd(show_type, show_size, pretty, object_hash):
    """
    Provide content or type information for repository objects.
    
    OBJECT_HASH may be abbreviated to four or more hex digits.
    
    Examples:
        sprig cat-file -t abc1234       # Show object type
        sprig cat-file -s abc1234       # Show object size
        sprig cat-file -p abc1234       # Pretty-print object
    """
    repo = Repository.find_repository()
    if not repo:
        click.echo(error("Not a sprig repository"))
        raise click.Abort()
    
    if [show_type, show_size, pretty].count(True) != 1:
        click.echo(error("Specify exactly one of -t, -s or -p"))
        raise click.Abort()
    
    try:
        sha1 = repo.objects.resolve_prefix(object_hash)
        
        if show_type:
            click.echo(repo.object_type(sha1))
        elif show_size:
            click.echo(repo.objects.read_header(sha1)[1])
        else:
            obj = repo.read_object(sha1)
            if isinstance(obj, Tree):
                click.echo(repo.read_tree(sha1).format(), nl=False)
            elif isinstance(obj, Commit):
                click.echo(obj.serialize().decode('utf-8'), nl=False)
            elif isinstance(obj, Blob):
                click.echo(obj.text, nl=False)
    
    except SprigError as e:
        click.echo(error(str(e)))
        raise click.Abort()
