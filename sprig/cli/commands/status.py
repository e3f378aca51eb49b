"""Status command - show working tree status."""

import click
from sprig.core.errors import SprigError
from sprig.core.repository import Repository
from sprig.cli.output import success, error
from colorama import Fore, Style


@click.command('status')
def status_cmd():
    """
    Show the working tree status.
    
    Lists staged files whose working copy was modified or deleted.
    
    Examples:
        sprig status
    """
    repo = Repository.find_repository()
    if not repo:
        click.echo(error("Not a sprig repository"))
        raise click.Abort()
    
    try:
        index = repo.load_index()
        diffs = index.diff(repo)
    except (SprigError, OSError) as e:
        click.echo(error(f"Status failed: {e}"))
        raise click.Abort()
    
    if not diffs:
        click.echo(success(f"Nothing to commit, {len(index)} file(s) staged and unchanged"))
        return
    
    click.echo(Fore.YELLOW + "Changes not staged for commit:" + Style.RESET_ALL)
    click.echo()
    for entry in diffs:
        label = 'deleted:' if entry.is_deleted else 'modified:'
        click.echo(f"  {Fore.YELLOW}{label:<11}{entry.path}{Style.RESET_ALL}")
