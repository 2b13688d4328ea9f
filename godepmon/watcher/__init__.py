"""This module provides watchdog and stat based file watching for godepmon.

A ``ChangeWatcher`` subscribes a fixed list of files through a
``NotificationSource`` and reports a single, debounced change.  Two sources
are provided: one built on the watchdog event system, and a backup that
polls the watched files with stat and compares their mtimes.

The stat source exists because native notifications are not available
everywhere (network filesystems, some containers), and because watchdog can
fail to install on platforms without wheels.
"""
