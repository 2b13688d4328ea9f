"""Debounced change detection over a resolved watch set.

A single save in an editor commonly produces several filesystem events.
``ChangeWatcher`` coalesces them: every qualifying event (re)arms a timer,
and only when the timer expires without another event arriving is the
watch session completed.
"""
import logging
import threading

from typing import Callable, List, Optional  # noqa

from godepmon.deps import DependencyResolver
from godepmon.errors import AlreadyRunningError
from godepmon.errors import DependencyResolutionError
from godepmon.errors import PathSubscriptionError
from godepmon.errors import WatcherCreationError
from godepmon.watcher.shared import FileEvent  # noqa
from godepmon.watcher.shared import NotificationSource  # noqa


LOGGER = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_DELAY = 0.25

IDLE = 'IDLE'
TIMER_PENDING = 'TIMER_PENDING'
CLOSED = 'CLOSED'


def default_source_factory():
    # type: () -> NotificationSource
    from godepmon.watcher.eventbased import WatchdogNotificationSource
    return WatchdogNotificationSource()


class CompletionSignal(object):
    """Single-use completion carrying either None or an error.

    Sending never blocks.  Only the first send is kept, and sending after
    ``close()`` is a no-op.  Closing wakes a waiting reader with None.
    """
    def __init__(self):
        # type: () -> None
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._value = None  # type: Optional[Exception]
        self._finished = False

    def send(self, error=None):
        # type: (Optional[Exception]) -> bool
        with self._lock:
            if self._finished:
                return False
            self._finished = True
            self._value = error
        self._done.set()
        return True

    def close(self):
        # type: () -> None
        with self._lock:
            self._finished = True
        self._done.set()

    def wait(self, timeout=None):
        # type: (Optional[float]) -> Optional[Exception]
        self._done.wait(timeout)
        return self._value


class ChangeWatcher(object):
    def __init__(self, resolver=None, source_factory=None,
                 debounce_delay=DEFAULT_DEBOUNCE_DELAY):
        # type: (Optional[DependencyResolver], Optional[Callable[[], NotificationSource]], float) -> None  # noqa
        if resolver is None:
            resolver = DependencyResolver()
        if source_factory is None:
            source_factory = default_source_factory
        self._resolver = resolver
        self._source_factory = source_factory
        self._debounce_delay = debounce_delay
        # Guards everything below.
        self._lock = threading.Lock()
        self._state = IDLE
        self._started = False
        self._timer = None  # type: Optional[threading.Timer]
        self._generation = 0
        self._source = None  # type: Optional[NotificationSource]
        self._completion = CompletionSignal()

    def watch(self, root_dir, include_external=False):
        # type: (str, bool) -> None
        """Block until a debounced change to the watch set of ``root_dir``.

        :raises AlreadyRunningError: ``watch`` was already called on this
            instance.
        :raises DependencyResolutionError: The watch set could not be
            computed.
        :raises WatcherCreationError: The notification source could not be
            created.
        :raises PathSubscriptionError: A file in the watch set could not be
            subscribed.
        """
        with self._lock:
            if self._started:
                raise AlreadyRunningError()
            self._started = True
            if self._state == CLOSED:
                return None
        try:
            paths = self._resolver.resolve(root_dir, include_external)
        except Exception as e:
            raise DependencyResolutionError(root_dir, e) from e
        try:
            source = self._source_factory()
        except Exception as e:
            raise WatcherCreationError(e) from e
        with self._lock:
            closed = self._state == CLOSED
            if not closed:
                self._source = source
        if closed:
            source.close()
            return None
        try:
            self._subscribe(source, paths)
        except PathSubscriptionError:
            if self._is_closed():
                LOGGER.debug('subscription aborted: watcher closed')
                return None
            raise
        if self._is_closed():
            return None
        LOGGER.info('watching %d files...', len(paths))
        t = threading.Thread(target=self._monitor, args=(source,))
        t.daemon = True
        t.start()
        error = self._completion.wait()
        if error is not None:
            raise error
        return None

    def close(self):
        # type: () -> None
        with self._lock:
            if self._state == CLOSED:
                LOGGER.debug('not closing watcher: already closed')
                return
            LOGGER.debug('closing watcher')
            self._stop_timer()
            self._state = CLOSED
            self._completion.close()
            source = self._source
            self._source = None
        if source is not None:
            source.close()

    def _is_closed(self):
        # type: () -> bool
        with self._lock:
            return self._state == CLOSED

    def _subscribe(self, source, paths):
        # type: (NotificationSource, List[str]) -> None
        for path in paths:
            try:
                source.add(path)
            except OSError as e:
                raise PathSubscriptionError(path, e) from e

    def _monitor(self, source):
        # type: (NotificationSource) -> None
        while True:
            item = source.notifications.get()
            if item is None:
                LOGGER.debug('notification source closed')
                self._end(None)
                return
            if isinstance(item, Exception):
                LOGGER.error('error occurred while watching files: %s', item)
                continue
            if not item.is_qualifying():
                LOGGER.debug('ignoring event: %s', item)
                continue
            LOGGER.debug('processing event: %s', item)
            self._arm_timer(item)

    def _arm_timer(self, event):
        # type: (FileEvent) -> None
        with self._lock:
            if self._state == CLOSED:
                return
            self._stop_timer()
            self._generation += 1
            timer = threading.Timer(self._debounce_delay, self._on_timer,
                                    args=(event, self._generation))
            timer.daemon = True
            self._timer = timer
            self._state = TIMER_PENDING
            timer.start()

    def _on_timer(self, event, generation):
        # type: (FileEvent, int) -> None
        with self._lock:
            # A re-armed or cancelled timer may still get here.
            if self._state != TIMER_PENDING or generation != self._generation:
                return
            LOGGER.info('%s', event)
            self._timer = None
            self._state = IDLE
            self._send(None)

    def _end(self, error):
        # type: (Optional[Exception]) -> None
        with self._lock:
            self._send(error)

    def _send(self, error):
        # type: (Optional[Exception]) -> None
        if self._state == CLOSED:
            LOGGER.debug('not ending: watcher closed')
            return
        if not self._completion.send(error):
            return
        if error is None:
            LOGGER.debug('ended without errors')
        else:
            LOGGER.debug('ended with error: %s', error)

    def _stop_timer(self):
        # type: () -> None
        if self._timer is not None:
            LOGGER.debug('stopping timer')
            self._timer.cancel()
            self._timer = None
            if self._state == TIMER_PENDING:
                self._state = IDLE
