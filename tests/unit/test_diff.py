"""Unit tests for the diff engine."""

from graft.core.objects import FileEntry
from graft.operations.diff import ADDED, DELETED, MODIFIED, FileDiff, diff_files


def test_diff_files_classifies_paths():
    old = {'same': FileEntry('1' * 40), 'changed': FileEntry('2' * 40), 'gone': FileEntry('3' * 40)}
    new = {'same': FileEntry('1' * 40), 'changed': FileEntry('4' * 40), 'fresh': FileEntry('5' * 40)}

    changes = diff_files(old, new)
    assert [(c.path, c.kind) for c in changes] == [
        ('changed', MODIFIED), ('fresh', ADDED), ('gone', DELETED),
    ]


def test_mode_only_change():
    changes = diff_files({'run': FileEntry('1' * 40)}, {'run': FileEntry('1' * 40, '100755')})
    assert changes[0].mode_only


def test_diff_commits(mem_repo, make_commit):
    first = make_commit(mem_repo, {'a.txt': b'a\n', 'b.txt': b'b\n'}, 'first')
    second = make_commit(mem_repo, {'a.txt': b'A\n', 'b.txt': None, 'c.txt': b'c\n'}, 'second')

    changes = mem_repo.diff.diff_commits(first, second)
    assert [(c.path, c.kind) for c in changes] == [
        ('a.txt', MODIFIED), ('b.txt', DELETED), ('c.txt', ADDED),
    ]
    assert [c.kind for c in mem_repo.diff.diff_commits(None, first)] == [ADDED, ADDED]


def test_staged_and_unstaged_changes(mem_repo, make_commit):
    make_commit(mem_repo, {'a.txt': b'a\n', 'b.txt': b'b\n'}, 'first')
    mem_repo.staging.add('a.txt', b'staged\n')
    mem_repo.worktree.write('b.txt', b'edited\n')

    assert [c.path for c in mem_repo.diff.diff_index_to_head()] == ['a.txt']
    assert [c.path for c in mem_repo.diff.diff_worktree_to_index()] == ['b.txt']


def test_file_diff_hunks():
    diff = FileDiff('a.txt', b'one\ntwo\nthree\n', b'one\nTWO\nthree\n').compute_diff()
    assert len(diff.hunks) == 1
    assert '-two' in diff.hunks[0].lines
    assert '+TWO' in diff.hunks[0].lines


def test_format_diff_without_color(mem_repo, make_commit):
    first = make_commit(mem_repo, {'a.txt': b'one\n'}, 'first')
    second = make_commit(mem_repo, {'a.txt': b'two\n'}, 'second')

    engine = mem_repo.diff
    text = engine.format_diff(engine.file_diffs(engine.diff_commits(first, second)), color=False)
    assert 'diff --graft a/a.txt b/a.txt' in text
    assert '--- a/a.txt' in text
    assert '-one' in text
    assert '+two' in text
