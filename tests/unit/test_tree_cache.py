"""Tree cache extension tests."""

import pytest
from sprig.core.errors import InvalidFormat
from sprig.core.index import TreeCache, TreeCacheEntry


def make_cache():
    return TreeCache([
        TreeCacheEntry('', 5, 2, 'a' * 40),
        TreeCacheEntry('docs', 1, 0, 'b' * 40),
        TreeCacheEntry('src', 3, 1, 'c' * 40),
        TreeCacheEntry('src/util', 2, 0, 'd' * 40),
    ])


def test_record_format():
    """Test a valid record is name, counts and raw hash."""
    cache = TreeCache([TreeCacheEntry('', 2, 0, 'ab' * 20)])
    assert cache.to_bytes() == b'\x002 0\n' + bytes.fromhex('ab' * 20)


def test_invalid_record_has_no_hash():
    """Test an invalidated record is written without a hash."""
    cache = TreeCache([TreeCacheEntry('', -1, 0)])
    assert cache.to_bytes() == b'\x00-1 0\n'


def test_roundtrip_builds_full_paths():
    """Test nested records are read back with full paths."""
    cache = make_cache()
    data = cache.to_bytes()
    
    assert b'src/util' not in data
    parsed = TreeCache.from_bytes(data)
    assert [r.path for r in parsed] == ['', 'docs', 'src', 'src/util']
    assert [r.sha1 for r in parsed] == ['a' * 40, 'b' * 40, 'c' * 40, 'd' * 40]
    assert parsed.to_bytes() == data


def test_roundtrip_hashes_with_separator_bytes():
    """Test raw hashes made of NUL and newline bytes do not break framing."""
    cache = TreeCache([
        TreeCacheEntry('', 4, 2, '00' * 20),
        TreeCacheEntry('a', 2, 1, '0a' * 20),
        TreeCacheEntry('a/b', 1, 0, '000a' * 10),
        TreeCacheEntry('c', 1, 0, '0a00' * 10),
    ])
    data = cache.to_bytes()
    
    parsed = TreeCache.from_bytes(data)
    assert [(r.path, r.entry_count, r.subtree_count, r.sha1) for r in parsed] == [
        ('', 4, 2, '00' * 20),
        ('a', 2, 1, '0a' * 20),
        ('a/b', 1, 0, '000a' * 10),
        ('c', 1, 0, '0a00' * 10),
    ]
    assert parsed.to_bytes() == data


def test_get_only_valid():
    """Test lookups skip invalid records."""
    cache = make_cache()
    assert cache.get('src').sha1 == 'c' * 40
    
    cache.invalidate('src/main.py')
    assert cache.get('src') is None
    assert cache.get('') is None
    assert cache.get('src/util').sha1 == 'd' * 40
    assert cache.get('docs').sha1 == 'b' * 40


def test_invalidate_nested_path():
    """Test every ancestor directory is invalidated."""
    cache = make_cache()
    cache.invalidate('src/util/x.py')
    assert [r.valid for r in cache] == [False, True, False, False]


def test_subtree_span():
    """Test a directory's records include its descendants only."""
    cache = make_cache()
    assert [r.path for r in cache.subtree('src')] == ['src', 'src/util']
    assert [r.path for r in cache.subtree('docs')] == ['docs']
    assert len(cache.subtree('')) == 4
    assert cache.subtree('missing') == []


def test_truncated_hash():
    """Test a valid record cut off inside its hash."""
    with pytest.raises(InvalidFormat):
        TreeCache.from_bytes(b'\x001 0\n' + b'\x01' * 5)


def test_malformed_counts():
    """Test non-numeric counts."""
    with pytest.raises(InvalidFormat):
        TreeCache.from_bytes(b'\x00one 0\n')


def test_missing_children():
    """Test a record promising more subtrees than follow."""
    with pytest.raises(InvalidFormat):
        TreeCache.from_bytes(b'\x00-1 1\n')
