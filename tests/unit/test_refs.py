"""Unit tests for references and HEAD."""

import os

import pytest

from graft.core.errors import (
    DestructiveConfirmationRequired, InvalidState, ObjectNotFound,
    RefConflict, RefNotFound,
)


@pytest.fixture
def two_commits(mem_repo, make_commit):
    first = make_commit(mem_repo, {'a.txt': b'1\n'}, 'first')
    second = make_commit(mem_repo, {'a.txt': b'2\n'}, 'second')
    return mem_repo, first, second


def test_unborn_head(mem_repo):
    head = mem_repo.refs.head()
    assert head.branch == 'main'
    assert head.commit is None
    with pytest.raises(RefNotFound):
        mem_repo.refs.resolve('HEAD')


def test_first_commit_creates_branch(two_commits):
    repo, first, second = two_commits
    assert repo.refs.read_ref('main') == second
    assert repo.refs.list_branches() == [('main', second)]


def test_update_compare_and_swap(two_commits):
    """A ref only moves when it still holds the expected value."""
    repo, first, second = two_commits
    repo.refs.update('main', first, second)
    assert repo.refs.resolve('main') == first

    with pytest.raises(RefConflict) as excinfo:
        repo.refs.update('main', second, second)
    assert excinfo.value.expected == second
    assert excinfo.value.actual == first
    assert repo.refs.resolve('main') == first


def test_update_creates_only_when_absent(two_commits):
    repo, first, second = two_commits
    repo.refs.update('topic', first, None)
    with pytest.raises(RefConflict):
        repo.refs.update('topic', second, None)


def test_update_refused_while_locked(two_commits):
    repo, first, second = two_commits
    lock = repo.heads_dir / 'main.lock'
    lock.write_text('')
    with pytest.raises(RefConflict):
        repo.refs.update('main', first, second)
    assert repo.refs.resolve('main') == second


def test_update_leaves_lock_taken_after_rename(two_commits, monkeypatch):
    """Once the ref is renamed into place, a new lock is someone else's."""
    repo, first, second = two_commits
    lock = repo.heads_dir / 'main.lock'
    real_replace = os.replace

    def replace_then_relock(src, dst):
        real_replace(src, dst)
        lock.write_text('')

    monkeypatch.setattr(os, 'replace', replace_then_relock)
    repo.refs.update('main', first, second)

    assert repo.refs.resolve('main') == first
    assert lock.exists()


def test_update_releases_lock_on_conflict(two_commits):
    repo, first, second = two_commits
    with pytest.raises(RefConflict):
        repo.refs.update('main', first, first)
    assert not (repo.heads_dir / 'main.lock').exists()


def test_delete_branch_refuses_moved_ref(two_commits, monkeypatch):
    repo, first, second = two_commits
    repo.refs.create_branch('topic', first)
    read_ref = repo.refs.read_ref
    monkeypatch.setattr(
        repo.refs, 'read_ref',
        lambda name: second if name == 'topic' else read_ref(name),
    )

    with pytest.raises(RefConflict) as excinfo:
        repo.refs.delete_branch('topic', force=True)
    assert excinfo.value.expected == second
    assert excinfo.value.actual == first
    assert (repo.heads_dir / 'topic').is_file()
    assert not (repo.heads_dir / 'topic.lock').exists()


def test_delete_branch_refused_while_locked(two_commits):
    repo, first, second = two_commits
    repo.refs.create_branch('topic', first)
    (repo.heads_dir / 'topic.lock').write_text('')
    with pytest.raises(RefConflict):
        repo.refs.delete_branch('topic', force=True)
    assert repo.refs.read_ref('topic') == first


def test_update_rejects_unknown_commit(two_commits):
    repo, first, second = two_commits
    with pytest.raises(ObjectNotFound):
        repo.refs.update('main', 'e' * 40, second)


def test_update_head_moves_current_branch(two_commits):
    repo, first, second = two_commits
    repo.refs.update('HEAD', first, second)
    assert repo.refs.current_branch() == 'main'
    assert repo.refs.read_ref('main') == first


def test_detached_head(two_commits):
    repo, first, second = two_commits
    repo.refs.detach_head(first)
    assert repo.refs.is_detached()
    assert repo.refs.current_ref() == 'HEAD'

    repo.refs.update('HEAD', second, first)
    assert repo.refs.head_commit() == second
    assert repo.refs.read_ref('main') == second


@pytest.mark.parametrize('name', ['', 'HEAD', '-x', 'a..b', 'has space', 'x.lock', 'a@{1}', 'end/'])
def test_invalid_branch_names(two_commits, name):
    repo, first, second = two_commits
    with pytest.raises(ValueError):
        repo.refs.create_branch(name, first)


def test_nested_branch_names(two_commits):
    repo, first, second = two_commits
    repo.refs.create_branch('feature/login', first)
    assert ('feature/login', first) in repo.refs.list_branches()


def test_delete_branch_rules(two_commits, make_commit):
    repo, first, second = two_commits

    with pytest.raises(InvalidState):
        repo.refs.delete_branch('main')
    with pytest.raises(RefNotFound):
        repo.refs.delete_branch('nope')

    repo.refs.create_branch('merged', first)
    assert repo.refs.delete_branch('merged') == first

    repo.refs.create_branch('topic', second)
    repo.staging.switch('topic')
    unmerged = make_commit(repo, {'b.txt': b'b\n'}, 'topic only')
    repo.staging.switch('main')

    with pytest.raises(DestructiveConfirmationRequired):
        repo.refs.delete_branch('topic')
    assert repo.refs.delete_branch('topic', force=True) == unmerged


def test_force_delete_current_branch_detaches(two_commits):
    repo, first, second = two_commits
    repo.refs.delete_branch('main', force=True)
    assert repo.refs.is_detached()
    assert repo.refs.head_commit() == second


def test_resolve_revision(two_commits):
    repo, first, second = two_commits
    assert repo.refs.resolve_revision('HEAD') == second
    assert repo.refs.resolve_revision('main') == second
    assert repo.refs.resolve_revision('refs/heads/main') == second
    assert repo.refs.resolve_revision('HEAD~1') == first
    assert repo.refs.resolve_revision('main~') == first
    assert repo.refs.resolve_revision(first[:10]) == first

    with pytest.raises(RefNotFound):
        repo.refs.resolve_revision('HEAD~2')
    with pytest.raises(RefNotFound):
        repo.refs.resolve_revision('nonexistent')


def test_resolve_revision_rejects_non_commit_hash(two_commits):
    repo, first, second = two_commits
    tree = repo.tree_of(first)
    with pytest.raises(RefNotFound):
        repo.refs.resolve_revision(tree)


def test_orig_head(two_commits):
    repo, first, second = two_commits
    with pytest.raises(RefNotFound):
        repo.refs.resolve_revision('ORIG_HEAD')
    repo.refs.write_orig_head(first)
    assert repo.refs.resolve_revision('ORIG_HEAD') == first
