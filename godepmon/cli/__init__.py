"""Command line interface for godepmon.

Watches a Go package and the packages it imports from the same module, and
re-runs a command whenever one of their source files changes.
"""
import logging
import os
import signal
import sys
import threading

import click

from typing import Tuple  # noqa

from godepmon import __version__ as godepmon_version
from godepmon.cli.reloader import Config
from godepmon.cli.reloader import Monitor
from godepmon.cli.reloader import DEFAULT_COMMAND
from godepmon.errors import GodepmonError
from godepmon.errors import ForceKillError
from godepmon.supervisor import ProcessSupervisor  # noqa
from godepmon.supervisor import DEFAULT_TERMINATION_TIMEOUT
from godepmon.watcher.debounce import DEFAULT_DEBOUNCE_DELAY


LOGGER = logging.getLogger(__name__)

_LOG_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]


def configure_logging(verbose):
    # type: (int) -> None
    level = _LOG_LEVELS[min(verbose, len(_LOG_LEVELS) - 1)]
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('%(levelname)s %(message)s'))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)


def resolve_root_dir(path):
    # type: (str) -> str
    if not path:
        return os.getcwd()
    if not os.path.exists(path):
        raise click.BadParameter('Path does not exist: %s' % path,
                                 param_hint='PATH')
    path = os.path.abspath(path)
    if not os.path.isdir(path):
        path = os.path.dirname(path)
    return path


def build_command(words):
    # type: (Tuple[str, ...]) -> str
    parts = [word.strip() for word in words]
    # click keeps the separator once PATH has ended option parsing.
    if parts and parts[0] == '--':
        parts = parts[1:]
    if not parts:
        return DEFAULT_COMMAND
    return ' '.join(parts)


def _shutdown(supervisor):
    # type: (ProcessSupervisor) -> None
    LOGGER.info('received interrupt signal, terminating...')
    rc = 0
    try:
        supervisor.terminate()
    except ForceKillError as e:
        click.echo(str(e), err=True)
        rc = 1
    sys.stdout.flush()
    sys.stderr.flush()
    os._exit(rc)


def install_signal_handlers(supervisor):
    # type: (ProcessSupervisor) -> None
    # terminate() may block on a start() running in the main thread, so
    # the handler must not call it directly.
    def handler(signum, frame):
        t = threading.Thread(target=_shutdown, args=(supervisor,))
        t.daemon = True
        t.start()

    signal.signal(signal.SIGINT, handler)
    signal.signal(signal.SIGTERM, handler)


@click.command(
    context_settings={
        'allow_interspersed_args': False,
        'ignore_unknown_options': True,
    },
)
@click.version_option(version=godepmon_version,
                      message='%(prog)s %(version)s')
@click.option('--include-external-deps', is_flag=True, default=False,
              help=('Also include external dependencies '
                    '(default: include module imports only).'))
@click.option('-v', '--verbose', count=True,
              help=('Increase verbosity. Use multiple times for more '
                    'verbose output (e.g. -vv).'))
@click.option('--poll', is_flag=True, default=False,
              help='Poll file modification times instead of using '
                   'filesystem notifications.')
@click.option('--debounce-delay', type=float, default=DEFAULT_DEBOUNCE_DELAY,
              show_default=True,
              help='Seconds without changes before the command restarts.')
@click.option('--termination-timeout', type=float,
              default=DEFAULT_TERMINATION_TIMEOUT, show_default=True,
              help='Seconds to wait after SIGTERM before sending SIGKILL.')
@click.argument('path', required=False, default='')
@click.argument('command', nargs=-1, type=click.UNPROCESSED)
def cli(include_external_deps, verbose, poll, debounce_delay,
        termination_timeout, path, command):
    # type: (bool, int, bool, float, float, str, Tuple[str, ...]) -> None
    """Re-run COMMAND whenever the Go package at PATH or one of its
    dependencies changes.

    PATH defaults to the current directory.  If it names a file, the file's
    directory is used.  COMMAND defaults to 'go run .'; to give a COMMAND,
    PATH must be given too.  Separate them with '--' when COMMAND has
    options of its own.
    """
    configure_logging(verbose)
    config = Config(
        root_dir=resolve_root_dir(path),
        command=build_command(command),
        include_external=include_external_deps,
        debounce_delay=debounce_delay,
        termination_timeout=termination_timeout,
        use_polling=poll,
    )
    monitor = Monitor(config)
    install_signal_handlers(monitor.supervisor)
    try:
        monitor.run_forever()
    except GodepmonError as e:
        click.echo('Fatal error occurred: %s' % e, err=True)
        sys.exit(1)
    finally:
        try:
            monitor.supervisor.terminate()
        except ForceKillError as e:
            click.echo(str(e), err=True)


def main():
    # type: () -> None
    cli(prog_name='godepmon')
