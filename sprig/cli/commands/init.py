"""Initialize a new sprig repository."""

import click
from pathlib import Path
from sprig.core.repository import Repository
from sprig.cli.output import success, error, info


@click.command('init')
@click.argument('path', default='.')
def init_cmd(path):
    """
    Initialize a new sprig repository.
    
    Creates a .sprig directory holding the object database, HEAD and
    the repository config.
    
    Examples:
        sprig init                  # Initialize in current directory
        sprig init my-project       # Initialize in my-project directory
    """
    try:
        repo_path = Path(path).resolve()
        
        if (repo_path / '.sprig').exists():
            click.echo(error(f"Repository already exists at {repo_path}"))
            raise click.Abort()
        
        if not repo_path.exists():
            repo_path.mkdir(parents=True)
            click.echo(info(f"Created directory {repo_path}"))
        
        repo = Repository(str(repo_path))
        repo.init()
        
        click.echo(success(f"Initialized empty sprig repository in {repo.sprig_dir}"))
    
    except click.Abort:
        raise
    except PermissionError:
        click.echo(error(f"Permission denied: Cannot create repository at {path}"))
        raise click.Abort()
    except (OSError, ValueError) as e:
        click.echo(error(f"Failed to initialize repository: {e}"))
        raise click.Abort()
