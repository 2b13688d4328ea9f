"""Run the monitored command in its own process group.

Terminating sends SIGTERM to the whole group, waits a fixed grace period and
then SIGKILLs the group if the command is still running.  The grace period is
a plain sleep, so a successful graceful termination always takes at least
``termination_timeout`` seconds.
"""
import logging
import os
import signal
import subprocess
import threading
import time

from typing import Optional  # noqa

from godepmon.errors import EmptyCommandError
from godepmon.errors import StartCommandError
from godepmon.errors import ForceKillError


LOGGER = logging.getLogger(__name__)

DEFAULT_TERMINATION_TIMEOUT = 0.25


class ProcessGroupSignaller(object):
    """POSIX process group signalling.

    The process is expected to lead its own group, so its pid is also the
    group id.
    """
    def send_graceful(self, pid):
        # type: (int) -> None
        os.killpg(pid, signal.SIGTERM)

    def send_force_kill(self, pid):
        # type: (int) -> None
        os.killpg(pid, signal.SIGKILL)


class ProcessSupervisor(object):
    def __init__(self, cwd, command,
                 termination_timeout=DEFAULT_TERMINATION_TIMEOUT,
                 signaller=None):
        # type: (str, str, float, Optional[ProcessGroupSignaller]) -> None
        if signaller is None:
            signaller = ProcessGroupSignaller()
        self._cwd = cwd
        self._command = command
        self._termination_timeout = termination_timeout
        self._signaller = signaller
        self._lock = threading.Lock()
        self._process = None  # type: Optional[subprocess.Popen]

    @property
    def pid(self):
        # type: () -> Optional[int]
        process = self._process
        if process is None:
            return None
        return process.pid

    def start(self):
        # type: () -> None
        with self._lock:
            args = self._command.split()
            if not args:
                raise EmptyCommandError()
            LOGGER.info('running program: %s', ' '.join(args))
            try:
                # stdout/stderr are inherited from this process.
                self._process = subprocess.Popen(
                    args, cwd=self._cwd, start_new_session=True)
            except OSError as e:
                raise StartCommandError(self._command, e) from e
            LOGGER.info('program running (PID %d)', self._process.pid)

    def terminate(self):
        # type: () -> None
        with self._lock:
            process = self._process
            if process is None:
                LOGGER.debug('not terminating program: not running')
                return
            LOGGER.info('terminating process group (PID %d)', process.pid)
            try:
                self._signaller.send_graceful(process.pid)
            except OSError as e:
                LOGGER.warning(
                    'error sending SIGTERM to process group (PID %d): %s',
                    process.pid, e)
                self._force_kill(process)
                return
            # TODO: wait for the process group to exit instead of always
            # sleeping for the full timeout.
            time.sleep(self._termination_timeout)
            if process.poll() is not None:
                LOGGER.debug('program exited with status %d',
                             process.returncode)
                self._process = None
                return
            self._force_kill(process)

    def _force_kill(self, process):
        # type: (subprocess.Popen) -> None
        LOGGER.info('forcefully killing process group (PID %d)', process.pid)
        try:
            self._signaller.send_force_kill(process.pid)
        except OSError as e:
            raise ForceKillError(process.pid, e) from e
        self._process = None
