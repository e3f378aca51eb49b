"""Repository tests."""

import pytest
import tempfile
import shutil
import zlib
from sprig.core.errors import InvalidObject, NotFound
from sprig.core.index import Index, MODE_EXECUTABLE
from sprig.core.repository import Repository
from sprig.core.objects import Blob, Tree, Commit, Signature


@pytest.fixture
def temp_repo():
    """Create temporary repository for testing."""
    temp_dir = tempfile.mkdtemp()
    repo = Repository(temp_dir)
    yield repo
    shutil.rmtree(temp_dir)


def test_repository_init(temp_repo):
    """Test repository initialization creates structure."""
    temp_repo.init()
    assert temp_repo.sprig_dir.exists()
    assert temp_repo.objects_dir.exists()
    assert temp_repo.refs_dir.exists()
    assert temp_repo.heads_dir.exists()
    assert temp_repo.head_file.exists()
    assert temp_repo.config_file.exists()


def test_repository_head_content(temp_repo):
    """Test HEAD points to main branch."""
    temp_repo.init()
    assert temp_repo.head_file.read_text() == 'ref: refs/heads/main\n'


def test_repository_config_content(temp_repo):
    """Test config file contains version."""
    temp_repo.init()
    assert 'repositoryformatversion' in temp_repo.config_file.read_text()


def test_repository_already_exists(temp_repo):
    """Test duplicate init raises error."""
    temp_repo.init()
    with pytest.raises(FileExistsError, match="already exists"):
        temp_repo.init()


def test_write_and_read_blob(temp_repo):
    """Test blob storage and retrieval."""
    temp_repo.init()
    hash_value = temp_repo.write_object(Blob(b'test data'))
    
    read_blob = temp_repo.read_object(hash_value)
    assert isinstance(read_blob, Blob)
    assert read_blob.data == b'test data'


def test_write_blob_creates_subdirectory(temp_repo):
    """Test object stored in subdirectory."""
    temp_repo.init()
    hash_value = temp_repo.write_object(Blob(b'test'))
    
    obj_path = temp_repo.object_path(hash_value)
    assert obj_path.exists()
    assert obj_path.parent.name == hash_value[:2]
    assert obj_path.name == hash_value[2:]
    assert zlib.decompress(obj_path.read_bytes()) == b'blob 4\x00test'


def test_read_missing_object(temp_repo):
    """Test reading an object that was never written."""
    temp_repo.init()
    with pytest.raises(NotFound):
        temp_repo.read_object('0' * 40)


def test_find_repository_in_subdirectory(temp_repo):
    """Test finding repo from nested directory."""
    temp_repo.init()
    subdir = temp_repo.work_tree / 'subdir' / 'nested'
    subdir.mkdir(parents=True)
    
    found_repo = Repository.find_repository(str(subdir))
    assert found_repo is not None
    assert found_repo.work_tree == temp_repo.work_tree


def test_find_repository_none(temp_dir):
    """Test searching outside any repository."""
    assert Repository.find_repository(str(temp_dir)) is None


def test_object_type(repo, sample_tree):
    """Test reading the type from the object header."""
    tree_hash = repo.write_object(sample_tree)
    assert repo.object_type(tree_hash) == 'tree'
    assert repo.object_type(sample_tree.entries[0].hash) == 'blob'


def test_read_tree_resolves_types_from_store(repo):
    """Test entry types come from the referenced objects."""
    blob_hash = repo.write_object(Blob(b'content\n'))
    inner = Tree()
    inner.add_entry('100644', 'blob', blob_hash, 'file.txt')
    inner_hash = repo.write_object(inner)
    
    # Mode says file, object says tree
    outer = Tree()
    outer.add_entry('100644', 'blob', inner_hash, 'odd')
    outer_hash = repo.write_object(outer)
    
    tree = repo.read_tree(outer_hash)
    assert tree.entries[0].type == 'tree'


def test_read_tree_rejects_blob(repo):
    """Test read_tree on a blob hash."""
    blob_hash = repo.write_object(Blob(b'x'))
    with pytest.raises(InvalidObject):
        repo.read_tree(blob_hash)


def test_write_tree(repo):
    """Test building trees from the index."""
    blob_a = repo.write_object(Blob(b'a\n'))
    blob_b = repo.write_object(Blob(b'b\n'))
    
    index = Index()
    index.add_or_replace(blob_a, 'z.txt')
    index.add_or_replace(blob_b, 'lib/util.py', MODE_EXECUTABLE)
    index.add_or_replace(blob_a, 'lib/deep/data.txt')
    index.add_or_replace(blob_b, 'lib.txt')
    
    root_hash = repo.write_tree(index)
    
    root = repo.read_tree(root_hash)
    # 'lib.txt' sorts before the directory, compared as 'lib/'
    assert [e.name for e in root.entries] == ['lib.txt', 'lib', 'z.txt']
    assert root.get('lib').mode == '040000'
    assert root.get('lib').type == 'tree'
    
    lib = repo.read_tree(root.get('lib').hash)
    assert [e.name for e in lib.entries] == ['deep', 'util.py']
    assert lib.get('util.py').mode == '100755'
    assert lib.get('util.py').hash == blob_b


def test_write_tree_refreshes_tree_cache(repo):
    """Test write_tree records every directory in the tree cache."""
    blob = repo.write_object(Blob(b'x\n'))
    index = Index()
    index.add_or_replace(blob, 'a/b/c.txt')
    index.add_or_replace(blob, 'a/d.txt')
    index.add_or_replace(blob, 'e.txt')
    
    root_hash = repo.write_tree(index)
    
    records = [(r.path, r.entry_count, r.subtree_count) for r in index.tree_cache]
    assert records == [('', 3, 1), ('a', 2, 1), ('a/b', 1, 0)]
    assert index.tree_cache.get('').sha1 == root_hash


def test_write_tree_reuses_cached_subtrees(repo, sample_index_bytes):
    """Test valid cache records are used instead of rebuilding."""
    index = Index.from_bytes(sample_index_bytes)
    
    root_hash = repo.write_tree(index)
    
    # src/cmd and src/object came from the cache, so they were never written
    assert not repo.object_exists('893eed7ba4e3d404c2a83ddf3aca42e9e019e730')
    assert not repo.object_exists('7aecc229b95b4cb4020c4b23716a5b97ad64c507')
    
    root = repo.read_tree(root_hash)
    assert [e.name for e in root.entries] == ['.gitignore', 'Cargo.lock', 'Cargo.toml', 'src']
    
    src = repo.read_object(root.get('src').hash)
    assert [(e.name, e.hash) for e in src.entries] == [
        ('cmd', '893eed7ba4e3d404c2a83ddf3aca42e9e019e730'),
        ('main.rs', 'e535668148e43b4c640ab5ed6ed3d3d9163d737a'),
        ('object', '7aecc229b95b4cb4020c4b23716a5b97ad64c507'),
    ]
    assert index.tree_cache.get('src').entry_count == 9
    assert index.tree_cache.get('').entry_count == 12


def test_commit_tree(repo_with_config, isolated_config):
    """Test writing a commit with the configured identity."""
    repo = repo_with_config
    tree_hash = repo.write_object(Tree())
    
    commit_hash = repo.commit_tree(tree_hash, 'Initial commit')
    
    commit = repo.read_object(commit_hash)
    assert isinstance(commit, Commit)
    assert commit.tree == tree_hash
    assert commit.parent is None
    assert commit.author.name == 'Test User'
    assert commit.committer.email == 'test@example.com'
    assert commit.message == 'Initial commit'


def test_commit_tree_with_parent(repo, signature):
    """Test writing a commit with a parent."""
    tree_hash = repo.write_object(Tree())
    first = repo.commit_tree(tree_hash, 'first', author=signature)
    second = repo.commit_tree(tree_hash, 'second', parent=first, author=signature)
    
    assert repo.read_object(second).parent == first


def test_commit_tree_requires_tree(repo, signature):
    """Test commit_tree refuses a non-tree object."""
    blob_hash = repo.write_object(Blob(b'x'))
    with pytest.raises(InvalidObject):
        repo.commit_tree(blob_hash, 'msg', author=signature)


def test_commit_tree_requires_identity(repo, isolated_config):
    """Test commit_tree without user.name/user.email."""
    tree_hash = repo.write_object(Tree())
    with pytest.raises(ValueError, match='user.name'):
        repo.commit_tree(tree_hash, 'msg')


def test_compression_level_from_config(repo, isolated_config):
    """Test core.compression reaches the object store."""
    repo.config.set('core', 'compression', '0')
    fresh = Repository(str(repo.work_tree))
    assert fresh.objects.compression_level == 0
    
    sha1 = fresh.write_object(Blob(b'stored'))
    assert fresh.read_object(sha1).data == b'stored'
