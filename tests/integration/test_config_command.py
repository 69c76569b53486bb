"""Integration tests for the config command group."""

from graft.cli.main import cli


class TestConfigCommand:
    """Tests for graft config."""

    def test_set_and_get(self, runner, cli_repo):
        result = runner.invoke(cli, ['config', 'set', 'core.editor', 'vim'])
        assert result.exit_code == 0
        assert 'Set repository config: core.editor = vim' in result.output

        result = runner.invoke(cli, ['config', 'get', 'core.editor'])
        assert result.output.strip() == 'vim'

    def test_key_without_section_uses_core(self, runner, cli_repo):
        runner.invoke(cli, ['config', 'set', 'pager', 'less'])
        assert runner.invoke(cli, ['config', 'get', 'core.pager']).output.strip() == 'less'

    def test_global_config(self, runner, cli_repo, isolated_config):
        result = runner.invoke(cli, ['config', 'set', '--global', 'alias.co', 'switch'])
        assert result.exit_code == 0
        assert 'co = switch' in isolated_config.read_text()
        assert runner.invoke(cli, ['config', 'get', 'alias.co']).output.strip() == 'switch'

    def test_environment_wins(self, runner, cli_repo):
        runner.invoke(cli, ['config', 'set', 'user.name', 'Repo Name'])
        assert runner.invoke(cli, ['config', 'get', 'user.name']).output.strip() == 'Test User'

    def test_get_missing_key(self, runner, cli_repo):
        result = runner.invoke(cli, ['config', 'get', 'nothing.here'])
        assert result.exit_code == 1
        assert 'Config key not found' in result.output

    def test_unset(self, runner, cli_repo):
        runner.invoke(cli, ['config', 'set', 'core.editor', 'vim'])
        result = runner.invoke(cli, ['config', 'unset', 'core.editor'])
        assert result.exit_code == 0

        result = runner.invoke(cli, ['config', 'unset', 'core.editor'])
        assert result.exit_code == 1

    def test_list(self, runner, cli_repo):
        runner.invoke(cli, ['config', 'set', 'core.editor', 'vim'])
        output = runner.invoke(cli, ['config', 'list']).output
        assert 'core.editor=vim' in output
        assert 'core.repositoryformatversion=0' in output

    def test_repository_config_outside_repository(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(cli, ['config', 'set', 'core.editor', 'vim'])
        assert result.exit_code == 1
        assert 'Not a graft repository' in result.output
