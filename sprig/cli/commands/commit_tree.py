"""Commit-tree command - create a commit object."""

import click
from sprig.core.errors import SprigError
from sprig.core.repository import Repository
from sprig.cli.output import error


@click.command('commit-tree')
@click.argument('tree')
@click.option('-p', '--parent', default=None, help='Parent commit hash')
@click.option('-m', '--message', required=True, help='Commit message')
def commit_tree_cmd(tree, parent, message):
    """
    Create a commit object for TREE and print its hash.
    
    Author and committer come from user.name and user.email.
    
    Examples:
        sprig commit-tree 3b18e51 -m "Initial commit"
        sprig commit-tree 9a2c4f0 -p 1f7e2d3 -m "Second commit"
    """
    repo = Repository.find_repository()
    if not repo:
        click.echo(error("Not a sprig repository"))
        raise click.Abort()
    
    try:
        tree_hash = repo.objects.resolve_prefix(tree)
        
        parent_hash = None
        if parent:
            parent_hash = repo.objects.resolve_prefix(parent)
            if repo.object_type(parent_hash) != 'commit':
                click.echo(error(f"Not a valid commit: {parent}"))
                raise click.Abort()
        
        sha1 = repo.commit_tree(tree_hash, message, parent_hash)
    except (SprigError, ValueError) as e:
        click.echo(error(str(e)))
        raise click.Abort()
    
    click.echo(sha1)
