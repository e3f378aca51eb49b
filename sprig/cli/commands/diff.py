"""Diff command - show changes between the index and the working tree."""

import click
from sprig.core.errors import SprigError
from sprig.core.repository import Repository
from sprig.operations.diff import format_diff
from sprig.cli.output import error, info


@click.command('diff')
@click.option('--no-color', is_flag=True, help='Disable colored output')
@click.option('--context', is_flag=True, help='Show unchanged lines too')
def diff_cmd(no_color, context):
    """
    Show unstaged changes (working tree vs index).
    
    Examples:
        sprig diff
        sprig diff --no-color
        sprig diff --context
    """
    repo = Repository.find_repository()
    if not repo:
        click.echo(error("Not a sprig repository"))
        raise click.Abort()
    
    try:
        diffs = repo.load_index().diff(repo)
    except (SprigError, OSError) as e:
        click.echo(error(f"Diff failed: {e}"))
        raise click.Abort()
    
    if not diffs:
        click.echo(info("No changes to display"))
        return
    
    click.echo(format_diff(diffs, color=not no_color, context=context))
