"""Integration tests for repository initialization."""

import pytest
from click.testing import CliRunner
from sprig.cli.main import cli
from sprig.core.repository import Repository


def test_init_creates_sprig_directory(temp_dir, monkeypatch):
    """Test that init creates the .sprig directory structure."""
    monkeypatch.chdir(temp_dir)
    runner = CliRunner()
    
    result = runner.invoke(cli, ['init'])
    
    assert result.exit_code == 0
    assert 'Initialized empty sprig repository' in result.output
    assert (temp_dir / '.sprig' / 'objects').is_dir()
    assert (temp_dir / '.sprig' / 'refs' / 'heads').is_dir()
    assert (temp_dir / '.sprig' / 'HEAD').read_text() == 'ref: refs/heads/main\n'
    assert (temp_dir / '.sprig' / 'config').exists()


def test_init_in_new_directory(temp_dir):
    """Test init creates the target directory."""
    runner = CliRunner()
    target = temp_dir / 'project'
    
    result = runner.invoke(cli, ['init', str(target)])
    
    assert result.exit_code == 0
    assert (target / '.sprig').is_dir()
    assert Repository.find_repository(str(target)) is not None


def test_double_init_fails(temp_dir):
    """Test that initializing twice fails."""
    runner = CliRunner()
    runner.invoke(cli, ['init', str(temp_dir)])
    
    result = runner.invoke(cli, ['init', str(temp_dir)])
    
    assert result.exit_code == 1
    assert 'already exists' in result.output


def test_verbose_flag(temp_dir):
    """Test -v is accepted before a command."""
    runner = CliRunner()
    result = runner.invoke(cli, ['-v', 'init', str(temp_dir)])
    assert result.exit_code == 0


def test_help_shows_commands():
    """Test the command list."""
    runner = CliRunner()
    result = runner.invoke(cli, ['--help'])
    
    assert result.exit_code == 0
    for command in ('init', 'hash-object', 'cat-file', 'update-index', 'ls-files',
                    'write-tree', 'commit-tree', 'diff', 'status'):
        assert command in result.output


def test_commands_outside_repository(temp_dir, monkeypatch):
    """Test commands that need a repository refuse to run without one."""
    monkeypatch.chdir(temp_dir)
    runner = CliRunner()
    
    for args in (['ls-files'], ['write-tree'], ['status'], ['diff'], ['cat-file', '-t', 'abcd']):
        result = runner.invoke(cli, args)
        assert result.exit_code == 1
        assert 'Not a sprig repository' in result.output
