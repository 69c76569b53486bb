"""Unit tests for the staging index format."""

import pytest

from graft.core.errors import CorruptObject
from graft.core.index import (
    STAGE_BASE, STAGE_OURS, STAGE_THEIRS, Index, normalize_path,
)
from graft.core.objects import FileEntry


def sha(char):
    return char * 40


def test_index_add_and_remove():
    index = Index()
    index.add_entry('a.txt', sha('a'))
    assert 'a.txt' in index
    assert len(index) == 1
    assert index.remove_entry('a.txt')
    assert not index.remove_entry('a.txt')


def test_index_write_read_roundtrip(tmp_path):
    index = Index()
    index.add_entry('b/c.txt', sha('b'))
    index.add_entry('a.txt', sha('a'), 0o100755)
    index.write(tmp_path / 'index')

    loaded = Index.read(tmp_path / 'index')
    assert loaded.to_files() == {
        'a.txt': FileEntry(sha('a'), '100755'),
        'b/c.txt': FileEntry(sha('b'), '100644'),
    }


def test_index_on_disk_layout(tmp_path):
    index = Index()
    index.add_entry('a.txt', sha('a'))
    index.write(tmp_path / 'index')

    data = (tmp_path / 'index').read_bytes()
    assert data[:4] == b'DIRC'
    assert int.from_bytes(data[4:8], 'big') == 2
    assert int.from_bytes(data[8:12], 'big') == 1


def test_conflict_stages_persist(tmp_path):
    index = Index()
    index.add_entry('f.txt', sha('0'))
    index.set_conflict('f.txt', FileEntry(sha('1')), FileEntry(sha('2')), FileEntry(sha('3')))
    index.write(tmp_path / 'index')

    loaded = Index.read(tmp_path / 'index')
    assert loaded.has_conflicts()
    assert loaded.conflicted_paths() == ['f.txt']
    stages = loaded.conflicts['f.txt']
    assert {stage: entry.sha1 for stage, entry in stages.items()} == {
        STAGE_BASE: sha('1'), STAGE_OURS: sha('2'), STAGE_THEIRS: sha('3'),
    }
    # Stage 0 still describes the full snapshot
    assert loaded.to_files() == {'f.txt': FileEntry(sha('0'))}


def test_delete_modify_conflict_omits_missing_stage():
    index = Index()
    index.set_conflict('f.txt', FileEntry(sha('1')), None, FileEntry(sha('3')))
    assert set(index.conflicts['f.txt']) == {STAGE_BASE, STAGE_THEIRS}


def test_resolve_clears_conflict():
    index = Index()
    index.add_entry('f.txt', sha('0'))
    index.set_conflict('f.txt', None, FileEntry(sha('2')), FileEntry(sha('3')))
    index.resolve('f.txt')
    assert not index.has_conflicts()
    assert 'f.txt' in index


def test_missing_index_is_empty(tmp_path):
    assert len(Index.read(tmp_path / 'index')) == 0


def test_checksum_mismatch(tmp_path):
    index = Index()
    index.add_entry('a.txt', sha('a'))
    index.write(tmp_path / 'index')

    data = bytearray((tmp_path / 'index').read_bytes())
    data[20] ^= 0xFF
    (tmp_path / 'index').write_bytes(bytes(data))

    with pytest.raises(CorruptObject, match='checksum'):
        Index.read(tmp_path / 'index')


def test_from_files_roundtrip():
    files = {'x': FileEntry(sha('1')), 'y/z': FileEntry(sha('2'), '100755')}
    assert Index.from_files(files).to_files() == files


@pytest.mark.parametrize('raw,expected', [
    ('a.txt', 'a.txt'),
    ('./a.txt', 'a.txt'),
    ('dir\\file.txt', 'dir/file.txt'),
])
def test_normalize_path(raw, expected):
    assert normalize_path(raw) == expected


@pytest.mark.parametrize('raw', ['', '/abs', '../up', 'a/../b', '.graft/HEAD'])
def test_normalize_path_rejects(raw):
    with pytest.raises(ValueError):
        normalize_path(raw)
