"""Integration tests for merge and merge-base commands."""

from graft.cli.main import cli
from graft.core.repository import Repository


def _diverge(runner, commit_file, main_content='main\n', feature_content='feature\n'):
    """Give main and feature one commit each touching file.txt."""
    runner.invoke(cli, ['branch', 'feature'])
    commit_file('file.txt', main_content, 'Main edit')
    runner.invoke(cli, ['switch', 'feature'])
    commit_file('file.txt', feature_content, 'Feature edit')
    runner.invoke(cli, ['switch', 'main'])


class TestMergeCommand:
    """Tests for graft merge."""

    def test_merge_fast_forward(self, runner, cli_repo, commit_file):
        runner.invoke(cli, ['switch', '-c', 'feature'])
        commit_file('feature.txt', 'feature content\n', 'Feature commit')
        runner.invoke(cli, ['switch', 'main'])

        result = runner.invoke(cli, ['merge', 'feature'])
        assert result.exit_code == 0
        assert 'Fast-forward to' in result.output
        assert (cli_repo / 'feature.txt').read_text() == 'feature content\n'

        repo = Repository(str(cli_repo))
        assert repo.refs.read_ref('main') == repo.refs.read_ref('feature')

    def test_merge_already_up_to_date(self, runner, cli_repo):
        runner.invoke(cli, ['branch', 'same-commit'])
        result = runner.invoke(cli, ['merge', 'same-commit'])
        assert result.exit_code == 0
        assert 'Already up to date' in result.output

    def test_merge_no_ff(self, runner, cli_repo, commit_file):
        runner.invoke(cli, ['switch', '-c', 'feature'])
        commit_file('feature.txt', 'feature\n', 'Feature commit')
        runner.invoke(cli, ['switch', 'main'])

        result = runner.invoke(cli, ['merge', 'feature', '--no-ff'])
        assert result.exit_code == 0
        assert 'Merge commit created' in result.output

        repo = Repository(str(cli_repo))
        commit = repo.store.get_commit(repo.refs.head_commit())
        assert len(commit.parents) == 2
        assert commit.message == "Merge 'feature' into main"
        assert 'Merge:' in runner.invoke(cli, ['log', '-n', '1']).output

    def test_merge_three_way_clean(self, runner, cli_repo, commit_file):
        runner.invoke(cli, ['branch', 'feature'])
        commit_file('main.txt', 'main\n', 'Main work')
        runner.invoke(cli, ['switch', 'feature'])
        commit_file('feature.txt', 'feature\n', 'Feature work')
        runner.invoke(cli, ['switch', 'main'])

        result = runner.invoke(cli, ['merge', 'feature', '-m', 'Bring in feature'])
        assert result.exit_code == 0
        assert "Merged 'feature' into 'main'" in result.output
        assert (cli_repo / 'main.txt').exists()
        assert (cli_repo / 'feature.txt').exists()

        repo = Repository(str(cli_repo))
        assert repo.store.get_commit(repo.refs.head_commit()).message == 'Bring in feature'
        assert repo.staging.status().is_clean

    def test_merge_conflict_then_commit(self, runner, cli_repo, commit_file):
        _diverge(runner, commit_file)

        result = runner.invoke(cli, ['merge', 'feature'])
        assert result.exit_code == 1
        assert 'CONFLICT (content): Merge conflict in file.txt' in result.output

        content = (cli_repo / 'file.txt').read_text()
        assert '<<<<<<< HEAD' in content
        assert '>>>>>>> feature' in content

        status = runner.invoke(cli, ['status']).output
        assert 'Unmerged paths' in status
        assert 'graft merge --abort' in status

        result = runner.invoke(cli, ['commit', '-m', 'too early'])
        assert result.exit_code == 1
        assert 'unresolved conflicts in: file.txt' in result.output

        (cli_repo / 'file.txt').write_text('resolved\n')
        result = runner.invoke(cli, ['add', 'file.txt'])
        assert '1 conflicted file(s) marked as resolved' in result.output

        result = runner.invoke(cli, ['commit'])
        assert result.exit_code == 0
        assert 'Merge completed!' in result.output

        repo = Repository(str(cli_repo))
        assert not repo.merge.in_progress()
        assert len(repo.store.get_commit(repo.refs.head_commit()).parents) == 2

    def test_add_warns_about_remaining_markers(self, runner, cli_repo, commit_file):
        _diverge(runner, commit_file)
        runner.invoke(cli, ['merge', 'feature'])

        result = runner.invoke(cli, ['add', 'file.txt'])
        assert 'still contain conflict markers' in result.output

    def test_merge_abort(self, runner, cli_repo, commit_file):
        _diverge(runner, commit_file)
        runner.invoke(cli, ['merge', 'feature'])

        result = runner.invoke(cli, ['merge', '--abort'])
        assert result.exit_code == 0
        assert 'Merge aborted' in result.output
        assert (cli_repo / 'file.txt').read_text() == 'main\n'
        assert 'nothing to commit' in runner.invoke(cli, ['status']).output

    def test_abort_without_merge(self, runner, cli_repo):
        result = runner.invoke(cli, ['merge', '--abort'])
        assert result.exit_code == 1
        assert 'No merge in progress' in result.output

    def test_merge_refused_while_merging(self, runner, cli_repo, commit_file):
        _diverge(runner, commit_file)
        runner.invoke(cli, ['merge', 'feature'])

        result = runner.invoke(cli, ['merge', 'feature'])
        assert result.exit_code == 1
        assert 'a merge is in progress' in result.output

    def test_merge_nonexistent_branch(self, runner, cli_repo):
        result = runner.invoke(cli, ['merge', 'nonexistent'])
        assert result.exit_code == 1
        assert "ref 'nonexistent' not found" in result.output

    def test_merge_missing_argument(self, runner, cli_repo):
        result = runner.invoke(cli, ['merge'])
        assert result.exit_code == 1
        assert 'Missing branch name' in result.output


class TestMergeBaseCommand:
    """Tests for graft merge-base."""

    def test_merge_base(self, runner, cli_repo, commit_file):
        base = Repository(str(cli_repo)).refs.head_commit()
        _diverge(runner, commit_file)

        result = runner.invoke(cli, ['merge-base', 'main', 'feature'])
        assert result.exit_code == 0
        assert result.output.strip() == base

        result = runner.invoke(cli, ['merge-base', '--all', 'main', 'feature'])
        assert result.output.strip() == base
