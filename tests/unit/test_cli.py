import logging
import os

import mock
import pytest
from click.testing import CliRunner

from godepmon import cli
from godepmon.cli.reloader import DEFAULT_COMMAND
from godepmon.errors import ForceKillError
from godepmon.errors import PackageLoadError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def monitor_cls():
    with mock.patch.object(cli, 'install_signal_handlers'), \
            mock.patch.object(cli, 'configure_logging'), \
            mock.patch.object(cli, 'Monitor') as monitor_cls:
        yield monitor_cls


def test_default_path_is_cwd(tmpdir):
    with tmpdir.as_cwd():
        assert cli.resolve_root_dir('') == os.getcwd()


def test_file_path_resolves_to_directory(tmpdir):
    main = tmpdir.join('main.go')
    main.write('package main')
    assert cli.resolve_root_dir(str(main)) == str(tmpdir)


def test_relative_path_is_made_absolute(tmpdir):
    tmpdir.mkdir('cmd')
    with tmpdir.as_cwd():
        assert cli.resolve_root_dir('cmd') == os.path.join(os.getcwd(), 'cmd')


def test_build_command():
    assert cli.build_command(()) == DEFAULT_COMMAND
    assert cli.build_command(('go', ' test ', './...')) == 'go test ./...'


@pytest.mark.parametrize('verbose,level', [
    (0, logging.WARNING),
    (1, logging.INFO),
    (2, logging.DEBUG),
    (5, logging.DEBUG),
])
def test_verbosity_levels(verbose, level):
    root = logging.getLogger()
    old_handlers, old_level = root.handlers[:], root.level
    try:
        cli.configure_logging(verbose)
        assert root.level == level
    finally:
        root.handlers = old_handlers
        root.setLevel(old_level)


def test_builds_config_from_arguments(runner, monitor_cls, tmpdir):
    result = runner.invoke(cli.cli, [
        '--include-external-deps', '--poll', '--debounce-delay', '0.5',
        '--termination-timeout', '2', str(tmpdir), '--',
        'go', 'test', '-v', './...',
    ])
    assert result.exit_code == 0, result.output
    config = monitor_cls.call_args[0][0]
    assert config.root_dir == str(tmpdir)
    assert config.command == 'go test -v ./...'
    assert config.include_external
    assert config.use_polling
    assert config.debounce_delay == 0.5
    assert config.termination_timeout == 2.0
    monitor = monitor_cls.return_value
    monitor.run_forever.assert_called_once_with()
    monitor.supervisor.terminate.assert_called_once_with()


def test_defaults(runner, monitor_cls, tmpdir):
    with tmpdir.as_cwd():
        result = runner.invoke(cli.cli, [])
    assert result.exit_code == 0, result.output
    config = monitor_cls.call_args[0][0]
    assert os.path.samefile(config.root_dir, str(tmpdir))
    assert config.command == DEFAULT_COMMAND
    assert not config.include_external
    assert not config.use_polling


def test_command_without_separator(runner, monitor_cls, tmpdir):
    result = runner.invoke(cli.cli, [str(tmpdir), 'go', 'vet', '-json'])
    assert result.exit_code == 0, result.output
    assert monitor_cls.call_args[0][0].command == 'go vet -json'


def test_missing_path_is_usage_error(runner, monitor_cls, tmpdir):
    result = runner.invoke(cli.cli, [str(tmpdir.join('nope'))])
    assert result.exit_code == 2
    assert 'Path does not exist' in result.output
    assert not monitor_cls.called


def test_setup_error_exits_nonzero(runner, monitor_cls, tmpdir):
    monitor = monitor_cls.return_value
    monitor.run_forever.side_effect = PackageLoadError(
        str(tmpdir), 'main.go:3:1: syntax error')
    result = runner.invoke(cli.cli, [str(tmpdir)])
    assert result.exit_code == 1
    assert 'Fatal error occurred' in result.output
    assert 'syntax error' in result.output
    monitor.supervisor.terminate.assert_called_once_with()


def test_final_force_kill_failure_is_reported(runner, monitor_cls, tmpdir):
    monitor = monitor_cls.return_value
    monitor.supervisor.terminate.side_effect = ForceKillError(
        1234, OSError(1, 'Operation not permitted'))
    result = runner.invoke(cli.cli, [str(tmpdir)])
    assert 'PID 1234' in result.output


def test_signal_handler_shuts_down_from_thread():
    supervisor = mock.Mock()
    with mock.patch.object(cli.signal, 'signal') as install:
        cli.install_signal_handlers(supervisor)
    handlers = dict((c[0][0], c[0][1]) for c in install.call_args_list)
    assert set(handlers) == set([cli.signal.SIGINT, cli.signal.SIGTERM])
    with mock.patch.object(cli.os, '_exit') as exit_:
        with mock.patch.object(cli, 'threading') as threading:
            handlers[cli.signal.SIGINT](cli.signal.SIGINT, None)
            target = threading.Thread.call_args[1]['target']
            args = threading.Thread.call_args[1]['args']
            threading.Thread.return_value.start.assert_called_once_with()
        target(*args)
    supervisor.terminate.assert_called_once_with()
    exit_.assert_called_once_with(0)


def test_shutdown_exit_status_on_force_kill_failure():
    supervisor = mock.Mock()
    supervisor.terminate.side_effect = ForceKillError(
        99, OSError(1, 'Operation not permitted'))
    with mock.patch.object(cli.os, '_exit') as exit_:
        cli._shutdown(supervisor)
    exit_.assert_called_once_with(1)


def test_separator_after_path_is_dropped(runner, monitor_cls, tmpdir):
    result = runner.invoke(cli.cli, [str(tmpdir), '--', 'go', 'run', '.'])
    assert result.exit_code == 0, result.output
    assert monitor_cls.call_args[0][0].command == 'go run .'


def test_separator_alone_uses_default_command():
    assert cli.build_command(('--',)) == DEFAULT_COMMAND
    assert cli.build_command(('--', 'go', '--', 'x')) == 'go -- x'
