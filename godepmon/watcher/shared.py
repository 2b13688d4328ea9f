import queue
from collections import namedtuple

from typing import Union  # noqa


CREATE = 'CREATE'
WRITE = 'WRITE'
REMOVE = 'REMOVE'
RENAME = 'RENAME'
CHMOD = 'CHMOD'

QUALIFYING_OPS = frozenset([CREATE, WRITE, REMOVE])


class FileEvent(namedtuple('FileEvent', ['op', 'path'])):
    __slots__ = ()

    def is_qualifying(self):
        # type: () -> bool
        return self.op in QUALIFYING_OPS

    def __str__(self):
        # type: () -> str
        return '%s %s' % (self.op, self.path)


# Items put on ``NotificationSource.notifications``.  ``None`` means the
# source was closed and nothing else will follow.
Notification = Union[FileEvent, Exception, None]


class NotificationSource(object):
    """Delivers filesystem notifications for a set of files.

    Events and transient errors are put on the ``notifications`` queue.
    Closing the source puts a final ``None`` on the queue.
    """

    def __init__(self):
        # type: () -> None
        self.notifications = queue.Queue()  # type: queue.Queue

    def add(self, path):
        # type: (str) -> None
        raise NotImplementedError('add')

    def close(self):
        # type: () -> None
        raise NotImplementedError('close')

    def _emit(self, item):
        # type: (Notification) -> None
        self.notifications.put(item)
