import os
import shutil

import pytest


def _has_watchdog():
    try:
        import watchdog  # noqa
        return True
    except ImportError:
        return False


watchdog_only = pytest.mark.skipif(
    not _has_watchdog(), reason='watchdog is not installed')

posix_only = pytest.mark.skipif(
    os.name != 'posix', reason='requires POSIX process groups')

go_only = pytest.mark.skipif(
    shutil.which('go') is None, reason='go toolchain is not installed')
