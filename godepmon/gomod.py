"""Locate a Go module's ``go.mod`` and read its module path."""
from typing import Optional  # noqa

from godepmon.errors import ModuleManifestNotFoundError
from godepmon.errors import ModuleDirectiveMissingError
from godepmon.errors import InvalidModuleDirectiveError
from godepmon.utils import OSUtils


MANIFEST_NAME = 'go.mod'


def find_module_manifest(path, osutils=None):
    # type: (str, Optional[OSUtils]) -> str
    """Return the absolute path of the nearest go.mod file.

    The search starts in ``path`` and walks up the directory tree until a
    go.mod is found or the filesystem root is reached.
    """
    if osutils is None:
        osutils = OSUtils()
    start_dir = osutils.abspath(path)
    current = start_dir
    while True:
        candidate = osutils.joinpath(current, MANIFEST_NAME)
        if osutils.file_exists(candidate):
            return candidate
        parent = osutils.dirname(current)
        if parent == current:
            raise ModuleManifestNotFoundError(start_dir)
        current = parent


class GoMod(object):
    def __init__(self, manifest_path, osutils=None):
        # type: (str, Optional[OSUtils]) -> None
        if osutils is None:
            osutils = OSUtils()
        self._path = manifest_path
        self._osutils = osutils
        self._module = None  # type: Optional[str]

    @property
    def path(self):
        # type: () -> str
        return self._path

    def module(self):
        # type: () -> str
        if self._module is not None:
            return self._module
        contents = self._osutils.get_file_contents(self._path)
        for line in contents.splitlines():
            if not line.startswith('module '):
                continue
            self._module = self._parse_directive(line)
            return self._module
        raise ModuleDirectiveMissingError(self._path)

    def _parse_directive(self, line):
        # type: (str) -> str
        directive = line.split('//', 1)[0]
        parts = directive.split()
        if len(parts) != 2:
            raise InvalidModuleDirectiveError(self._path, line)
        module = parts[1]
        if len(module) > 1 and module[0] == module[-1] == '"':
            module = module[1:-1]
        if not module:
            raise InvalidModuleDirectiveError(self._path, line)
        return module


def read_module_identifier(path, osutils=None):
    # type: (str, Optional[OSUtils]) -> str
    manifest = find_module_manifest(path, osutils=osutils)
    return GoMod(manifest, osutils=osutils).module()
