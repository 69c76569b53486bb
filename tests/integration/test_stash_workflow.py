"""Integration tests for the stash command group."""

from graft.cli.main import cli
from graft.core.repository import Repository


class TestStashCommand:
    """Tests for graft stash."""

    def test_stash_and_pop(self, runner, cli_repo):
        (cli_repo / 'file.txt').write_text('work in progress\n')

        result = runner.invoke(cli, ['stash'])
        assert result.exit_code == 0
        assert 'Saved working directory and index state' in result.output
        assert 'WIP on main' in result.output
        assert (cli_repo / 'file.txt').read_text() == 'initial content\n'

        result = runner.invoke(cli, ['stash', 'pop'])
        assert result.exit_code == 0
        assert 'Applied stash@{0} and removed it' in result.output
        assert (cli_repo / 'file.txt').read_text() == 'work in progress\n'
        assert len(Repository(str(cli_repo)).stash) == 0

    def test_nothing_to_stash(self, runner, cli_repo):
        result = runner.invoke(cli, ['stash', 'push'])
        assert result.exit_code == 0
        assert 'No local changes to save' in result.output

    def test_list_and_show(self, runner, cli_repo):
        (cli_repo / 'file.txt').write_text('edit\n')
        runner.invoke(cli, ['stash', 'push', '-m', 'my changes'])

        output = runner.invoke(cli, ['stash', 'list']).output
        assert 'stash@{0}' in output
        assert 'On main: my changes' in output

        output = runner.invoke(cli, ['stash', 'show', 'stash@{0}']).output
        assert 'my changes' in output
        assert 'modified: file.txt' in output

    def test_apply_keeps_entry(self, runner, cli_repo):
        (cli_repo / 'file.txt').write_text('edit\n')
        runner.invoke(cli, ['stash'])

        result = runner.invoke(cli, ['stash', 'apply', '0'])
        assert result.exit_code == 0
        assert 'Applied stash@{0}' in result.output
        assert len(Repository(str(cli_repo)).stash) == 1

        result = runner.invoke(cli, ['stash', 'drop'])
        assert result.exit_code == 0
        assert 'Dropped stash@{0}' in result.output
        assert 'No stashed changes' in runner.invoke(cli, ['stash', 'list']).output

    def test_keep_index(self, runner, cli_repo):
        (cli_repo / 'staged.txt').write_text('staged\n')
        runner.invoke(cli, ['add', 'staged.txt'])
        (cli_repo / 'file.txt').write_text('unstaged\n')

        result = runner.invoke(cli, ['stash', 'push', '--keep-index'])
        assert result.exit_code == 0
        assert (cli_repo / 'staged.txt').read_text() == 'staged\n'
        assert (cli_repo / 'file.txt').read_text() == 'initial content\n'

    def test_pop_conflict_keeps_entry(self, runner, cli_repo, commit_file):
        (cli_repo / 'file.txt').write_text('stashed\n')
        runner.invoke(cli, ['stash'])
        commit_file('file.txt', 'committed\n', 'Change file')

        result = runner.invoke(cli, ['stash', 'pop'])
        assert result.exit_code == 1
        assert 'CONFLICT (content): file.txt' in result.output
        assert 'The stash entry is kept' in result.output

        content = (cli_repo / 'file.txt').read_text()
        assert '<<<<<<< Updated upstream' in content
        assert '>>>>>>> Stashed changes' in content
        assert len(Repository(str(cli_repo)).stash) == 1

    def test_clear(self, runner, cli_repo):
        for n in range(2):
            (cli_repo / 'file.txt').write_text(f'edit {n}\n')
            runner.invoke(cli, ['stash'])

        result = runner.invoke(cli, ['stash', 'clear', '--yes'])
        assert result.exit_code == 0
        assert 'Dropped 2 stashes' in result.output

    def test_pop_empty(self, runner, cli_repo):
        result = runner.invoke(cli, ['stash', 'pop'])
        assert result.exit_code == 1
        assert 'stash@{0} does not exist' in result.output

    def test_invalid_reference(self, runner, cli_repo):
        result = runner.invoke(cli, ['stash', 'drop', 'stash@{x}'])
        assert result.exit_code == 2
        assert 'Invalid stash reference' in result.output
