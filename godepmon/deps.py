"""Compute the set of Go source files a package depends on.

The resolver loads the package graph below a root directory and walks the
imports of every package in it.  Unless external dependencies are included,
only packages belonging to the enclosing module are admitted; packages from
other modules are skipped together with everything they import.
"""
import json
import logging
import os
import subprocess
from collections import namedtuple

from typing import Dict, List, Optional, Set  # noqa

from godepmon.errors import PackageLoadError
from godepmon.gomod import read_module_identifier
from godepmon.utils import OSUtils


LOGGER = logging.getLogger(__name__)

PackageNode = namedtuple('PackageNode', ['identifier', 'files', 'imports'])


class PackageGraph(object):
    def __init__(self, roots, packages):
        # type: (List[str], Dict[str, PackageNode]) -> None
        self.roots = roots
        self.packages = packages


class ScopeBoundary(object):
    """Decides whether a package identifier is part of the watched scope.

    A boundary created without a module admits every package.
    """

    def __init__(self, module=None):
        # type: (Optional[str]) -> None
        self.module = module
        self.prefix = module + '/' if module is not None else None

    def admits(self, identifier):
        # type: (str) -> bool
        if self.module is None:
            return True
        return identifier == self.module or identifier.startswith(self.prefix)


class GoListLoader(object):
    LOAD_PATTERN = './...'

    def __init__(self, go_binary='go'):
        # type: (str) -> None
        self._go_binary = go_binary

    def load(self, root_dir):
        # type: (str) -> PackageGraph
        args = [self._go_binary, 'list', '-deps', '-json', self.LOAD_PATTERN]
        LOGGER.debug('loading packages: %s (in %s)', ' '.join(args), root_dir)
        try:
            proc = subprocess.run(
                args,
                cwd=root_dir,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                universal_newlines=True,
                check=False,
            )
        except OSError as e:
            raise PackageLoadError(root_dir, str(e)) from e
        if proc.returncode != 0:
            detail = proc.stderr.strip() or 'go list exited with status %d' % (
                proc.returncode)
            raise PackageLoadError(root_dir, detail)
        try:
            return self.parse(proc.stdout, root_dir)
        except ValueError as e:
            raise PackageLoadError(
                root_dir, 'unreadable go list output: %s' % e) from e

    def parse(self, output, root_dir=''):
        # type: (str, str) -> PackageGraph
        roots = []  # type: List[str]
        packages = {}  # type: Dict[str, PackageNode]
        for raw in self._iter_json_objects(output):
            identifier = raw['ImportPath']
            error = self._package_error(raw)
            if error is not None:
                raise PackageLoadError(root_dir, '%s: %s' % (identifier, error))
            directory = raw.get('Dir', '')
            filenames = (raw.get('GoFiles') or []) + (raw.get('CgoFiles') or [])
            files = [os.path.join(directory, name) for name in filenames]
            packages[identifier] = PackageNode(
                identifier=identifier,
                files=files,
                imports=list(raw.get('Imports') or []),
            )
            if not raw.get('DepOnly', False):
                roots.append(identifier)
        return PackageGraph(roots=roots, packages=packages)

    def _package_error(self, raw):
        # type: (Dict) -> Optional[str]
        # go list can exit 0 and report broken packages in these fields.
        errors = []
        if raw.get('Error'):
            errors.append(raw['Error'])
        errors.extend(raw.get('DepsErrors') or [])
        if not errors:
            return None
        return '; '.join(
            e.get('Err', 'unknown error') if isinstance(e, dict) else str(e)
            for e in errors)

    def _iter_json_objects(self, output):
        # go list -json prints a stream of objects, not a JSON array.
        decoder = json.JSONDecoder()
        index = 0
        length = len(output)
        while True:
            while index < length and output[index].isspace():
                index += 1
            if index >= length:
                return
            obj, index = decoder.raw_decode(output, index)
            yield obj


class DependencyResolver(object):
    def __init__(self, loader=None, osutils=None):
        # type: (Optional[GoListLoader], Optional[OSUtils]) -> None
        if loader is None:
            loader = GoListLoader()
        if osutils is None:
            osutils = OSUtils()
        self._loader = loader
        self._osutils = osutils

    def resolve(self, root_dir, include_external=False):
        # type: (str, bool) -> List[str]
        """Return the sorted list of source files to watch for ``root_dir``.

        :raises ModuleManifestNotFoundError: No go.mod encloses ``root_dir``
            (only checked when ``include_external`` is False).
        :raises ModuleDirectiveMissingError: The go.mod has no usable
            module directive.
        :raises PackageLoadError: The package graph could not be loaded.
        """
        if include_external:
            boundary = ScopeBoundary()
        else:
            boundary = ScopeBoundary(
                read_module_identifier(root_dir, osutils=self._osutils))
            LOGGER.debug('module: %s', boundary.module)
        graph = self._loader.load(root_dir)
        admitted = self._walk(graph, boundary)
        files = set()  # type: Set[str]
        for identifier in admitted:
            files.update(graph.packages[identifier].files)
        LOGGER.debug('%d packages admitted, %d files', len(admitted),
                     len(files))
        return sorted(files)

    def _walk(self, graph, boundary):
        # type: (PackageGraph, ScopeBoundary) -> List[str]
        admitted = []  # type: List[str]
        visited = set()  # type: Set[str]
        stack = list(reversed(graph.roots))
        while stack:
            identifier = stack.pop()
            if identifier in visited:
                continue
            if not boundary.admits(identifier):
                LOGGER.debug('skipping package: %s', identifier)
                continue
            node = graph.packages.get(identifier)
            if node is None:
                LOGGER.debug('package not in graph: %s', identifier)
                continue
            visited.add(identifier)
            admitted.append(identifier)
            stack.extend(reversed(node.imports))
        return admitted
