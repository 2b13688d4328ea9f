"""Restart loop: resolve, watch, and restart the command on every change.

Each cycle builds a fresh ``ChangeWatcher`` so that the watch set is
resolved again, picking up new files and imports.  Cycles never overlap:
the command is started, the watcher blocks until a debounced change, and
the command is terminated before the next cycle begins.
"""
import logging

from typing import Callable, Optional  # noqa

from godepmon.deps import DependencyResolver
from godepmon.supervisor import ProcessSupervisor
from godepmon.supervisor import DEFAULT_TERMINATION_TIMEOUT
from godepmon.watcher.debounce import ChangeWatcher
from godepmon.watcher.debounce import DEFAULT_DEBOUNCE_DELAY
from godepmon.watcher.debounce import default_source_factory
from godepmon.watcher.shared import NotificationSource  # noqa


LOGGER = logging.getLogger(__name__)

DEFAULT_COMMAND = 'go run .'


class Config(object):
    def __init__(self, root_dir, command=DEFAULT_COMMAND,
                 include_external=False,
                 debounce_delay=DEFAULT_DEBOUNCE_DELAY,
                 termination_timeout=DEFAULT_TERMINATION_TIMEOUT,
                 use_polling=False):
        # type: (str, str, bool, float, float, bool) -> None
        self.root_dir = root_dir
        self.command = command
        self.include_external = include_external
        self.debounce_delay = debounce_delay
        self.termination_timeout = termination_timeout
        self.use_polling = use_polling


def _stat_source_factory():
    # type: () -> NotificationSource
    from godepmon.watcher.stat import StatNotificationSource
    return StatNotificationSource()


class Monitor(object):
    def __init__(self, config, supervisor=None, watcher_factory=None):
        # type: (Config, Optional[ProcessSupervisor], Optional[Callable[[], ChangeWatcher]]) -> None  # noqa
        if supervisor is None:
            supervisor = ProcessSupervisor(
                config.root_dir, config.command,
                termination_timeout=config.termination_timeout)
        if watcher_factory is None:
            watcher_factory = self._create_watcher
        self._config = config
        self._watcher_factory = watcher_factory
        self.supervisor = supervisor

    def _create_watcher(self):
        # type: () -> ChangeWatcher
        if self._config.use_polling:
            source_factory = _stat_source_factory
        else:
            source_factory = default_source_factory
        return ChangeWatcher(
            resolver=DependencyResolver(),
            source_factory=source_factory,
            debounce_delay=self._config.debounce_delay,
        )

    def run_once(self):
        # type: () -> None
        watcher = self._watcher_factory()
        try:
            self.supervisor.start()
            watcher.watch(self._config.root_dir,
                          include_external=self._config.include_external)
        finally:
            watcher.close()
        LOGGER.debug('change detected, restarting program')
        self.supervisor.terminate()

    def run_forever(self):
        # type: () -> None
        while True:
            self.run_once()
