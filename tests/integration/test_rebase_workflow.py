"""Integration tests for the rebase command."""

from graft.cli.main import cli
from graft.core.repository import Repository


def _feature_behind_main(runner, commit_file, shared=False):
    """feature and main both gain one commit; ends on feature."""
    runner.invoke(cli, ['branch', 'feature'])
    if shared:
        commit_file('file.txt', 'main version\n', 'Main edit')
    else:
        commit_file('main.txt', 'main\n', 'Main work')
    runner.invoke(cli, ['switch', 'feature'])
    if shared:
        commit_file('file.txt', 'feature version\n', 'Feature edit')
    else:
        commit_file('feature.txt', 'feature\n', 'Feature work')


class TestRebaseCommand:
    """Tests for graft rebase."""

    def test_rebase_onto_main(self, runner, cli_repo, commit_file):
        _feature_behind_main(runner, commit_file)

        result = runner.invoke(cli, ['rebase', 'main'])
        assert result.exit_code == 0
        assert 'Successfully rebased onto' in result.output
        assert 'Replayed 1 commit(s)' in result.output

        repo = Repository(str(cli_repo))
        tip = repo.store.get_commit(repo.refs.read_ref('feature'))
        assert tip.message == 'Feature work'
        assert tip.parents == [repo.refs.read_ref('main')]
        assert repo.refs.current_branch() == 'feature'
        assert (cli_repo / 'main.txt').exists()

    def test_rebase_named_branch(self, runner, cli_repo, commit_file):
        _feature_behind_main(runner, commit_file)
        runner.invoke(cli, ['switch', 'main'])

        result = runner.invoke(cli, ['rebase', 'main', 'feature'])
        assert result.exit_code == 0
        assert Repository(str(cli_repo)).refs.current_branch() == 'feature'

    def test_rebase_up_to_date(self, runner, cli_repo, commit_file):
        runner.invoke(cli, ['branch', 'old'])
        commit_file('file.txt', 'newer\n', 'Newer')

        result = runner.invoke(cli, ['rebase', 'old'])
        assert result.exit_code == 0
        assert 'up to date' in result.output

    def test_rebase_fast_forward(self, runner, cli_repo, commit_file):
        runner.invoke(cli, ['switch', '-c', 'feature'])
        commit_file('feature.txt', 'feature\n', 'Feature work')
        runner.invoke(cli, ['switch', 'main'])

        result = runner.invoke(cli, ['rebase', 'feature'])
        assert result.exit_code == 0
        assert 'Fast-forwarded to' in result.output
        assert (cli_repo / 'feature.txt').exists()

    def test_conflict_continue(self, runner, cli_repo, commit_file):
        _feature_behind_main(runner, commit_file, shared=True)

        result = runner.invoke(cli, ['rebase', 'main'])
        assert result.exit_code == 1
        assert 'CONFLICT (content): Merge conflict in file.txt' in result.output
        assert 'Could not apply' in result.output
        assert '<<<<<<<' in (cli_repo / 'file.txt').read_text()

        status = runner.invoke(cli, ['status']).output
        assert 'Rebase in progress' in status
        assert '1 commit(s) left' in status

        result = runner.invoke(cli, ['rebase', '--continue'])
        assert result.exit_code == 1
        assert 'unresolved conflicts' in result.output

        (cli_repo / 'file.txt').write_text('both versions\n')
        runner.invoke(cli, ['add', 'file.txt'])
        result = runner.invoke(cli, ['rebase', '--continue'])
        assert result.exit_code == 0
        assert 'Successfully rebased' in result.output

        repo = Repository(str(cli_repo))
        tip = repo.store.get_commit(repo.refs.read_ref('feature'))
        assert tip.message == 'Feature edit'
        assert tip.parents == [repo.refs.read_ref('main')]
        assert not repo.rebase.in_progress()

    def test_conflict_skip(self, runner, cli_repo, commit_file):
        _feature_behind_main(runner, commit_file, shared=True)
        runner.invoke(cli, ['rebase', 'main'])

        result = runner.invoke(cli, ['rebase', '--skip'])
        assert result.exit_code == 0

        repo = Repository(str(cli_repo))
        assert repo.refs.read_ref('feature') == repo.refs.read_ref('main')
        assert (cli_repo / 'file.txt').read_text() == 'main version\n'

    def test_conflict_abort(self, runner, cli_repo, commit_file):
        _feature_behind_main(runner, commit_file, shared=True)
        before = Repository(str(cli_repo)).refs.read_ref('feature')
        runner.invoke(cli, ['rebase', 'main'])

        result = runner.invoke(cli, ['rebase', '--abort'])
        assert result.exit_code == 0
        assert 'Rebase aborted' in result.output

        repo = Repository(str(cli_repo))
        assert repo.refs.current_branch() == 'feature'
        assert repo.refs.read_ref('feature') == before
        assert (cli_repo / 'file.txt').read_text() == 'feature version\n'

    def test_commit_refused_during_rebase(self, runner, cli_repo, commit_file):
        _feature_behind_main(runner, commit_file, shared=True)
        runner.invoke(cli, ['rebase', 'main'])

        (cli_repo / 'file.txt').write_text('fixed\n')
        runner.invoke(cli, ['add', 'file.txt'])
        result = runner.invoke(cli, ['commit', '-m', 'manual'])
        assert result.exit_code == 1
        assert 'rebase is in progress' in result.output

    def test_continue_without_rebase(self, runner, cli_repo):
        result = runner.invoke(cli, ['rebase', '--continue'])
        assert result.exit_code == 1
        assert 'No rebase in progress' in result.output

    def test_conflicting_flags(self, runner, cli_repo):
        result = runner.invoke(cli, ['rebase', '--continue', '--abort'])
        assert result.exit_code == 1
        assert 'Use only one of' in result.output

    def test_missing_upstream(self, runner, cli_repo):
        result = runner.invoke(cli, ['rebase'])
        assert result.exit_code == 1
        assert 'Missing upstream' in result.output
