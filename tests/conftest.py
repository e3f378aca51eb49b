"""Shared pytest fixtures for sprig tests."""

import pytest
import tempfile
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path
from sprig.core.repository import Repository
from sprig.core.objects import Blob, Tree, Signature

FIXTURES_DIR = Path(__file__).parent / 'fixtures'


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir).resolve()
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def repo(temp_dir):
    """Create an initialized repository."""
    repo = Repository(str(temp_dir))
    repo.init()
    return repo


@pytest.fixture
def repo_with_config(repo):
    """Create a repository with user identity set."""
    repo.config.set('user', 'name', 'Test User')
    repo.config.set('user', 'email', 'test@example.com')
    return repo


@pytest.fixture
def isolated_config(monkeypatch, temp_dir):
    """Keep ~/.sprigconfig and SPRIG_* variables out of the test."""
    from sprig.core.config import Config
    monkeypatch.setattr(Config, 'GLOBAL_CONFIG_PATH', temp_dir / 'global.sprigconfig')
    for key in ('SPRIG_USER_NAME', 'SPRIG_USER_EMAIL', 'SPRIG_CORE_COMPRESSION'):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def sample_index_bytes():
    """Index file with 12 entries and a TREE extension."""
    return (FIXTURES_DIR / 'sample_index').read_bytes()


@pytest.fixture
def sample_blob():
    """Create a sample blob object."""
    return Blob(b"Hello, World!\n")


@pytest.fixture
def sample_tree(repo, sample_blob):
    """Create a sample tree with one blob."""
    blob_hash = repo.write_object(sample_blob)
    tree = Tree()
    tree.add_entry('100644', 'blob', blob_hash, 'test.txt')
    return tree


@pytest.fixture
def signature():
    """Fixed signature at 2021-03-27 17:45:49 +0900."""
    tz = timezone(timedelta(hours=9))
    return Signature('Test User', 'test@example.com', datetime.fromtimestamp(1616834749, tz))


@pytest.fixture
def working_files(repo):
    """Create sample file structure in repository."""
    file1 = repo.work_tree / "test1.txt"
    file2 = repo.work_tree / "test2.txt"
    
    (repo.work_tree / "subdir").mkdir()
    file3 = repo.work_tree / "subdir" / "test3.txt"
    
    file1.write_text("Content 1\n")
    file2.write_text("Content 2\n")
    file3.write_text("Content 3\n")
    
    return {
        'file1': file1,
        'file2': file2,
        'file3': file3
    }
