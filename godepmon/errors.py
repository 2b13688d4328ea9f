"""Errors raised across godepmon's component boundaries.

Every error carries a ``kind`` tag and the structured fields needed to
diagnose it, so callers can branch on the type (or ``kind``) instead of
parsing messages.
"""

from typing import Optional  # noqa


class GodepmonError(Exception):
    kind = 'godepmon'

    def __init__(self, msg=''):
        # type: (str) -> None
        super(GodepmonError, self).__init__(msg)


class ModuleManifestNotFoundError(GodepmonError):
    kind = 'module-not-found'

    def __init__(self, start_dir):
        # type: (str) -> None
        self.start_dir = start_dir
        super(ModuleManifestNotFoundError, self).__init__(
            "go.mod file not found in '%s' or any parent directory"
            % start_dir)


class ModuleDirectiveMissingError(GodepmonError):
    kind = 'module-directive-missing'

    def __init__(self, manifest_path, msg=None):
        # type: (str, Optional[str]) -> None
        self.manifest_path = manifest_path
        if msg is None:
            msg = "'module' directive not found: %s" % manifest_path
        super(ModuleDirectiveMissingError, self).__init__(msg)


class InvalidModuleDirectiveError(ModuleDirectiveMissingError):
    kind = 'module-directive-invalid'

    def __init__(self, manifest_path, line):
        # type: (str, str) -> None
        self.line = line
        super(InvalidModuleDirectiveError, self).__init__(
            manifest_path,
            "invalid 'module' directive in %s: %r" % (manifest_path, line))


class PackageLoadError(GodepmonError):
    kind = 'package-load'

    def __init__(self, root_dir, detail):
        # type: (str, str) -> None
        self.root_dir = root_dir
        self.detail = detail
        super(PackageLoadError, self).__init__(
            "failed to load packages in '%s': %s" % (root_dir, detail))


class DependencyResolutionError(GodepmonError):
    kind = 'dependency-resolution'

    def __init__(self, root_dir, cause):
        # type: (str, Exception) -> None
        self.root_dir = root_dir
        self.cause = cause
        super(DependencyResolutionError, self).__init__(
            "failed to determine dependencies of '%s': %s"
            % (root_dir, cause))


class WatcherCreationError(GodepmonError):
    kind = 'watcher-creation'

    def __init__(self, cause):
        # type: (Exception) -> None
        self.cause = cause
        super(WatcherCreationError, self).__init__(
            'failed to create a file watcher: %s' % cause)


class AlreadyRunningError(GodepmonError):
    kind = 'already-running'

    def __init__(self):
        # type: () -> None
        super(AlreadyRunningError, self).__init__('watcher is already running')


class PathSubscriptionError(GodepmonError):
    kind = 'path-subscription'

    def __init__(self, path, cause):
        # type: (str, Exception) -> None
        self.path = path
        self.cause = cause
        super(PathSubscriptionError, self).__init__(
            "failed to add path '%s' to watcher: %s" % (path, cause))


class EmptyCommandError(GodepmonError):
    kind = 'empty-command'

    def __init__(self):
        # type: () -> None
        super(EmptyCommandError, self).__init__('command is empty')


class StartCommandError(GodepmonError):
    kind = 'start-command'

    def __init__(self, command, cause):
        # type: (str, Exception) -> None
        self.command = command
        self.cause = cause
        super(StartCommandError, self).__init__(
            "failed to start command '%s': %s" % (command, cause))


class ForceKillError(GodepmonError):
    kind = 'force-kill'

    def __init__(self, pid, cause):
        # type: (int, Exception) -> None
        self.pid = pid
        self.cause = cause
        super(ForceKillError, self).__init__(
            'error force-killing the process group (PID %d): %s'
            % (pid, cause))
