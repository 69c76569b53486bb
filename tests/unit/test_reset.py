"""Unit tests for reset operations."""

import pytest

from graft.core.errors import DestructiveConfirmationRequired, InvalidState, RefNotFound
from graft.core.state import CLEAN
from graft.operations.reset import HARD, MIXED, SOFT


@pytest.fixture
def history(mem_repo, make_commit):
    """Three commits on main, each changing a.txt."""
    c1 = make_commit(mem_repo, {'a.txt': b'1\n'}, 'one')
    c2 = make_commit(mem_repo, {'a.txt': b'2\n', 'b.txt': b'b\n'}, 'two')
    c3 = make_commit(mem_repo, {'a.txt': b'3\n'}, 'three')
    return mem_repo, c1, c2, c3


def test_soft_reset_moves_ref_only(history):
    repo, c1, c2, c3 = history
    assert repo.reset.reset('HEAD~1', mode=SOFT) == c2

    assert repo.refs.read_ref('main') == c2
    assert repo.read_index().to_files() == repo.store.commit_files(c3)
    assert [c.path for c in repo.diff.diff_index_to_head()] == ['a.txt']
    assert repo.worktree.read('a.txt') == b'3\n'


def test_mixed_reset_resets_index(history):
    repo, c1, c2, c3 = history
    repo.reset.reset(c1)

    assert repo.refs.read_ref('main') == c1
    assert repo.read_index().to_files() == repo.store.commit_files(c1)
    assert repo.worktree.read('a.txt') == b'3\n'
    assert repo.worktree.read('b.txt') == b'b\n'
    assert [c.path for c in repo.staging.status().unstaged] == ['a.txt']
    assert repo.staging.status().untracked == ['b.txt']


def test_hard_reset_requires_force(history):
    repo, c1, c2, c3 = history
    with pytest.raises(DestructiveConfirmationRequired):
        repo.reset.reset(c1, mode=HARD)
    assert repo.refs.read_ref('main') == c3


def test_hard_reset_discards_everything_tracked(history):
    repo, c1, c2, c3 = history
    repo.staging.add('staged.txt', b'staged\n')
    repo.worktree.write('a.txt', b'scribble\n')
    repo.worktree.write('untracked.txt', b'stays\n')

    repo.reset.reset(c1, mode=HARD, force=True)

    assert repo.refs.read_ref('main') == c1
    assert repo.read_index().to_files() == repo.store.commit_files(c1)
    assert repo.worktree.read('a.txt') == b'1\n'
    assert repo.worktree.read('b.txt') is None
    assert repo.worktree.read('staged.txt') is None
    assert repo.worktree.read('untracked.txt') == b'stays\n'


def test_reset_independence(history):
    """hard to X then soft to Y: index matches X, ref points at Y."""
    repo, c1, c2, c3 = history
    repo.reset.reset(c2, mode=HARD, force=True)
    repo.reset.reset(c1, mode=SOFT)

    assert repo.refs.read_ref('main') == c1
    assert repo.read_index().to_files() == repo.store.commit_files(c2)


def test_reset_records_orig_head(history):
    repo, c1, c2, c3 = history
    repo.reset.reset(c1, mode=SOFT)
    assert repo.refs.read_orig_head() == c3
    repo.reset.reset('ORIG_HEAD', mode=SOFT)
    assert repo.refs.read_ref('main') == c3


def test_reset_to_head_unstages(history):
    repo, c1, c2, c3 = history
    repo.staging.add('a.txt', b'staged\n')
    repo.reset.reset()
    assert repo.read_index().to_files() == repo.head_files()
    assert repo.worktree.read('a.txt') == b'staged\n'


def test_reset_on_detached_head(history):
    repo, c1, c2, c3 = history
    repo.refs.detach_head(c3)
    repo.reset.reset(c2, mode=MIXED)
    assert repo.refs.head_commit() == c2
    assert repo.refs.read_ref('main') == c3


def test_reset_invalid_mode(history):
    repo, c1, c2, c3 = history
    with pytest.raises(ValueError):
        repo.reset.reset(c1, mode='keep')


def test_reset_unknown_target(history):
    repo, c1, c2, c3 = history
    with pytest.raises(RefNotFound):
        repo.reset.reset('no-such-branch')


def test_hard_reset_clears_paused_merge(diverged, make_commit):
    repo, base, m1, f1 = diverged
    make_commit(repo, {'shared.txt': b'main\n'}, 'main edit')
    repo.staging.switch('feature')
    make_commit(repo, {'shared.txt': b'feature\n'}, 'feature edit')
    repo.staging.switch('main')
    repo.merge.merge('feature')

    repo.reset.reset('HEAD', mode=HARD, force=True)

    assert repo.state == CLEAN
    assert not repo.read_index().has_conflicts()
    assert repo.worktree.read('shared.txt') == b'main\n'
    assert repo.worktree.read('feature.txt') is None
