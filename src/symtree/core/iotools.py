import os
import pathlib
import typing


PathLike = typing.Union[str, pathlib.Path]


class NonExistentPathError(Exception):

    def __init__(self, path: str=None):
        self._path = path

    @property
    def path(self) -> str:
        if self._path is None:
            self._path = "The requested path"
        return self._path

    def __str__(self):
        return f"{self.path} does not exist."


class ReadOnlyPathError(Exception):

    def __init__(self, obj: object):
        self._obj = obj

    def __str__(self):
        return f"Objects of type {self._obj} are read-only."


class ReadOnlyPath(type(pathlib.Path())):
    """A fully resolved path intended only for reading.

    Creating an instance expands the user wildcard, resolves the result and
    raises `NonExistentPathError` if the path does not exist. Attempts to
    write through the instance raise `ReadOnlyPathError`.
    """

    def __new__(cls, *args, **kwargs):
        path = pathlib.Path(*args).expanduser().resolve()
        if not path.exists():
            raise NonExistentPathError(path)
        return super().__new__(cls, path)

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(pathlib.Path(*args).expanduser().resolve())

    def with_segments(self, *pathsegments):
        """Derived paths are ordinary paths."""
        return pathlib.Path(*pathsegments)

    def open(self, *args, **kwargs):
        if 'w' in args or 'w' in kwargs.get('mode', ''):
            raise ReadOnlyPathError(self.__class__)
        return super().open(*args, **kwargs)

    def write_bytes(self, *args, **kwargs):
        raise ReadOnlyPathError(self.__class__)

    def write_text(self, *args, **kwargs):
        raise ReadOnlyPathError(self.__class__)


def search(
    paths: typing.Iterable[typing.Optional[PathLike]],
    file: PathLike,
) -> typing.Optional[pathlib.Path]:
    """Search `paths` for `file`.
    
    Parameters
    ----------
    paths : iterable of path-like
        The paths to search, in the order given. Each member must be an object
        that can represent a path on the current file system. Members that are
        `None` or that do not exist are skipped.

    file : path-like
        The file to locate.

    Returns
    -------
    path or `None`
        The full path to the file, if found.
    """
    for p in paths:
        if p is None or not os.path.isdir(os.path.expanduser(str(p))):
            continue
        path = ReadOnlyPath(p)
        test = path / str(file)
        if test.exists():
            return test
