"""Shared pytest fixtures for Graft tests."""

import itertools
from pathlib import Path

import pytest
from click.testing import CliRunner

from graft.core.config import Config
from graft.core.repository import Repository
from graft.core.worktree import MemoryWorkingTree

BASE_TIME = 1700000000


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory, monkeypatch):
    """Keep tests away from the user's global config and identity."""
    home = tmp_path_factory.mktemp('home')
    monkeypatch.setattr(Config, 'GLOBAL_CONFIG_PATH', home / '.graftconfig')
    monkeypatch.setenv('GRAFT_USER_NAME', 'Test User')
    monkeypatch.setenv('GRAFT_USER_EMAIL', 'test@example.com')
    return home / '.graftconfig'


@pytest.fixture
def repo(tmp_path):
    """An initialized repository backed by the filesystem."""
    return Repository(str(tmp_path)).init()


@pytest.fixture
def mem_repo(tmp_path):
    """An initialized repository whose working tree lives in memory."""
    return Repository(str(tmp_path), worktree=MemoryWorkingTree()).init()


@pytest.fixture
def make_commit():
    """
    Return a helper that stages files and commits them.

    ``make_commit(repo, {'a.txt': b'x', 'gone.txt': None}, 'message')``
    writes (or, for None, removes) each path and commits the index.
    Commit times increase by one second per call, so history order is
    predictable.
    """
    clock = itertools.count(BASE_TIME)

    def _make_commit(repo, files, message='commit'):
        for path, content in files.items():
            if content is None:
                repo.staging.remove(path)
            else:
                repo.staging.add(path, content)
        return repo.staging.commit(message, timestamp=next(clock))

    return _make_commit


@pytest.fixture
def diverged(mem_repo, make_commit):
    """
    main and feature branching off a shared base commit.

        base -- m1 (main)
             \\
              f1 (feature)
    """
    repo = mem_repo
    base = make_commit(repo, {'shared.txt': b'one\ntwo\nthree\n', 'keep.txt': b'keep\n'}, 'base')
    repo.refs.create_branch('feature', base)
    m1 = make_commit(repo, {'main.txt': b'main\n'}, 'main work')
    repo.staging.switch('feature')
    f1 = make_commit(repo, {'feature.txt': b'feature\n'}, 'feature work')
    repo.staging.switch('main')
    return repo, base, m1, f1


@pytest.fixture
def runner():
    """Create CLI runner."""
    return CliRunner()


@pytest.fixture
def cli_repo(runner, tmp_path, monkeypatch):
    """A repository in the current directory with one commit of file.txt."""
    from graft.cli.main import cli

    monkeypatch.chdir(tmp_path)
    result = runner.invoke(cli, ['init'])
    assert result.exit_code == 0, result.output

    (tmp_path / 'file.txt').write_text('initial content\n')
    assert runner.invoke(cli, ['add', 'file.txt']).exit_code == 0
    result = runner.invoke(cli, ['commit', '-m', 'Initial commit'])
    assert result.exit_code == 0, result.output
    return tmp_path


@pytest.fixture
def commit_file(runner):
    """Return a helper that writes, stages and commits one file via the CLI."""
    from graft.cli.main import cli

    def _commit_file(path, content, message):
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
        assert runner.invoke(cli, ['add', path]).exit_code == 0
        result = runner.invoke(cli, ['commit', '-m', message])
        assert result.exit_code == 0, result.output
        return result

    return _commit_file
