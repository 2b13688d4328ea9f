import threading

from typing import Dict, List, Optional  # noqa

from godepmon.watcher.shared import NotificationSource
from godepmon.watcher.shared import FileEvent
from godepmon.watcher.shared import CREATE, WRITE, REMOVE
from godepmon.utils import OSUtils


class StatFileObserver(object):
    """Tracks the mtimes of a fixed list of files."""
    def __init__(self, osutils=None):
        # type: (Optional[OSUtils]) -> None
        if osutils is None:
            osutils = OSUtils()
        self._osutils = osutils
        # A missing file is recorded as None.
        self._mtimes = {}  # type: Dict[str, Optional[float]]

    def add(self, path):
        # type: (str) -> None
        self._mtimes[path] = self._osutils.mtime(path)

    def check(self):
        # type: () -> List[FileEvent]
        events = []
        for path in sorted(self._mtimes):
            event = self._check_file(path)
            if event is not None:
                events.append(event)
        return events

    def _check_file(self, path):
        # type: (str) -> Optional[FileEvent]
        old_mtime = self._mtimes[path]
        try:
            new_mtime = self._osutils.mtime(path)  # type: Optional[float]
        except FileNotFoundError:
            new_mtime = None
        self._mtimes[path] = new_mtime
        if new_mtime is None:
            if old_mtime is not None:
                return FileEvent(REMOVE, path)
            return None
        if old_mtime is None:
            return FileEvent(CREATE, path)
        if new_mtime > old_mtime:
            return FileEvent(WRITE, path)
        return None


class StatNotificationSource(NotificationSource):
    def __init__(self, interval=1.0, osutils=None):
        # type: (float, Optional[OSUtils]) -> None
        super(StatNotificationSource, self).__init__()
        self._interval = interval
        self._observer = StatFileObserver(osutils)
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._thread = None  # type: Optional[threading.Thread]

    def add(self, path):
        # type: (str) -> None
        with self._lock:
            self._observer.add(path)
            if self._thread is None:
                t = threading.Thread(target=self._run)
                t.daemon = True
                self._thread = t
                t.start()

    def close(self):
        # type: () -> None
        with self._lock:
            if self._stopped.is_set():
                return
            self._stopped.set()
            thread = self._thread
        if thread is not None:
            thread.join()
        self._emit(None)

    def _run(self):
        # type: () -> None
        while not self._stopped.wait(self._interval):
            with self._lock:
                try:
                    events = self._observer.check()
                except OSError as e:
                    self._emit(e)
                    continue
            for event in events:
                self._emit(event)
