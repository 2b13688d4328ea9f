import os


class OSUtils(object):
    def file_exists(self, filename):
        # type: (str) -> bool
        return os.path.isfile(filename)

    def directory_exists(self, path):
        # type: (str) -> bool
        return os.path.isdir(path)

    def abspath(self, path):
        # type: (str) -> str
        return os.path.abspath(path)

    def dirname(self, path):
        # type: (str) -> str
        return os.path.dirname(path)

    def joinpath(self, *args):
        # type: (str) -> str
        return os.path.join(*args)

    def get_file_contents(self, filename, encoding='utf-8'):
        # type: (str, str) -> str
        with open(filename, 'r', encoding=encoding) as f:
            return f.read()

    def mtime(self, path):
        # type: (str) -> float
        return os.stat(path).st_mtime
