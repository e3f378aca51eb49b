"""Update-index command - register file contents in the staging area."""

import click
from pathlib import Path
from sprig.core.errors import SprigError
from sprig.core.index import MODE_EXECUTABLE, MODE_FILE
from sprig.core.repository import Repository
from sprig.cli.output import error


def resolve_path(repo, path):
    """Return (absolute path, index path) for a path given on the command line."""
    absolute = Path(path)
    if not absolute.is_absolute():
        absolute = Path.cwd() / absolute
    absolute = absolute.parent.resolve() / absolute.name
    
    try:
        rel_path = absolute.relative_to(repo.work_tree).as_posix()
    except ValueError:
        raise ValueError(f"{path} is outside repository at {repo.work_tree}") from None
    return absolute, rel_path


def parse_cacheinfo_mode(text):
    try:
        mode = int(text, 8)
    except ValueError:
        raise ValueError(f"Invalid mode: {text}") from None
    if mode not in (MODE_FILE, MODE_EXECUTABLE):
        raise ValueError(f"Unsupported mode: {text}")
    return mode


@click.command('update-index')
@click.option('--add', is_flag=True, help='Allow adding paths not yet in the index')
@click.option('--remove', is_flag=True, help='Remove paths missing from the working tree')
@click.option('--cacheinfo', nargs=2, type=str, default=None, metavar='MODE HASH',
              help='Register an existing blob at PATH')
@click.argument('paths', nargs=-1, required=True)
def update_index_cmd(add, remove, cacheinfo, paths):
    """
    Register file contents in the index.
    
    Each PATH is hashed, stored as a blob and recorded with its stat data.
    With --cacheinfo, PATH is recorded with the given mode and blob hash;
    if the file exists it must hash to HASH.
    
    Examples:
        sprig update-index --add README.md
        sprig update-index --remove old.txt
        sprig update-index --add --cacheinfo 100644 <hash> docs/guide.md
    """
    repo = Repository.find_repository()
    if not repo:
        click.echo(error("Not a sprig repository"))
        raise click.Abort()
    
    if cacheinfo and len(paths) != 1:
        click.echo(error("--cacheinfo takes exactly one path"))
        raise click.Abort()
    
    try:
        with repo.locked_index() as index:
            if cacheinfo:
                mode_text, object_hash = cacheinfo
                mode = parse_cacheinfo_mode(mode_text)
                sha1 = repo.objects.resolve_prefix(object_hash)
                if repo.object_type(sha1) != 'blob':
                    raise ValueError(f"{object_hash} is not a blob")
                
                absolute, rel_path = resolve_path(repo, paths[0])
                if rel_path not in index and not add:
                    raise ValueError(f"{rel_path}: cannot add to the index, missing --add option?")
                
                if absolute.is_file():
                    index.add_file(repo, str(absolute), expected_sha1=sha1)
                    index.get_entry(rel_path).mode = mode
                else:
                    index.add_or_replace(sha1, rel_path, mode)
                return
            
            for path in paths:
                absolute, rel_path = resolve_path(repo, path)
                
                if not absolute.exists():
                    if remove:
                        index.remove_entry(rel_path)
                        continue
                    raise ValueError(f"{rel_path}: does not exist and --remove not passed")
                
                if rel_path not in index and not add:
                    raise ValueError(f"{rel_path}: cannot add to the index, missing --add option?")
                
                index.add_file(repo, str(absolute))
    
    except (SprigError, OSError, ValueError) as e:
        click.echo(error(str(e)))
        raise click.Abort()
