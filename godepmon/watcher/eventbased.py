import errno
import os
import threading

from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler
from watchdog.events import FileSystemEvent  # noqa

from godepmon.watcher.shared import NotificationSource
from godepmon.watcher.shared import FileEvent
from godepmon.watcher.shared import CREATE, WRITE, REMOVE, RENAME, CHMOD

from typing import Any, Callable, List, Optional, Set  # noqa


_OPS_BY_EVENT_TYPE = {
    'created': CREATE,
    'modified': WRITE,
    'deleted': REMOVE,
}


class WatchDogEventAdapter(FileSystemEventHandler):
    """Filters out watchdog directory events and unwatched files."""
    def __init__(self, handler, is_watched):
        # type: (Callable[[FileEvent], None], Callable[[str], bool]) -> None
        self._handler = handler
        self._is_watched = is_watched

    def on_any_event(self, event):
        # type: (FileSystemEvent) -> None
        if event.is_directory:
            return
        for file_event in self._translate(event):
            self._handler(file_event)

    def _translate(self, event):
        # type: (FileSystemEvent) -> List[FileEvent]
        src_path = os.fsdecode(event.src_path)
        if event.event_type == 'moved':
            translated = []
            if self._is_watched(src_path):
                translated.append(FileEvent(RENAME, src_path))
            dest_path = os.fsdecode(event.dest_path)
            if self._is_watched(dest_path):
                translated.append(FileEvent(CREATE, dest_path))
            return translated
        if not self._is_watched(src_path):
            return []
        return [FileEvent(_OPS_BY_EVENT_TYPE.get(event.event_type, CHMOD),
                          src_path)]


class WatchdogNotificationSource(NotificationSource):
    """Uses watchdog to receive notifications for individual files.

    Watchdog observes directories, so every parent directory of a watched
    file is scheduled once, non-recursively, and events for files that
    were not added are dropped.
    """
    def __init__(self, observer=None):
        # type: (Optional[Any]) -> None
        super(WatchdogNotificationSource, self).__init__()
        if observer is None:
            observer = Observer()
        self._observer = observer
        self._lock = threading.Lock()
        self._watched = set()  # type: Set[str]
        self._directories = set()  # type: Set[str]
        self._closed = False
        self._adapter = WatchDogEventAdapter(self._emit, self._is_watched)
        self._observer.start()

    def add(self, path):
        # type: (str) -> None
        path = os.path.abspath(path)
        if not os.path.isfile(path):
            raise FileNotFoundError(
                errno.ENOENT, os.strerror(errno.ENOENT), path)
        directory = os.path.dirname(path)
        with self._lock:
            self._watched.add(path)
            if directory in self._directories:
                return
            self._directories.add(directory)
        try:
            self._observer.schedule(self._adapter, directory, recursive=False)
        except Exception:
            with self._lock:
                self._directories.discard(directory)
                self._watched.discard(path)
            raise

    def close(self):
        # type: () -> None
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._observer.stop()
        self._observer.join()
        self._emit(None)

    def _is_watched(self, path):
        # type: (str) -> bool
        with self._lock:
            return path in self._watched
