import collections.abc
import typing


T = typing.TypeVar('T')


def batch_replace(string: str, replacement: typing.Mapping[str, str]) -> str:
    """Replace characters in a string based on a mapping."""
    for old, new in replacement.items():
        string = string.replace(old.strip(), new)
    return string


class RegistrationError(KeyError):
    """An object is already registered under the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name

    def __str__(self) -> str:
        return f"An object named {self.name!r} is already registered"


class ObjectRegistry(collections.abc.Mapping):
    """Named objects, each with optional metadata.

    Indexing by name gives the metadata of an entry, which includes the object
    itself under the key `'object'`. Use `find` to get only the object.
    """

    def __init__(self) -> None:
        self._entries = {}

    def __iter__(self) -> typing.Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __getitem__(self, name: str) -> typing.Dict[str, typing.Any]:
        return self._entries[name]

    _OT = typing.TypeVar('_OT')

    def register(
        self,
        _obj: _OT=None,
        name: str=None,
        overwrite: bool=False,
        **metadata
    ) -> _OT:
        """Register an object under a name, with any metadata.

        This method works either as a direct call or as a decorator, with or
        without arguments. It always returns the registered object.

        Parameters
        ----------
        name : string, optional
            The key of the new entry. The default is the object's `__name__`.

        overwrite : bool, default=false
            If true, replace an existing entry with the same name. Otherwise,
            registering a name twice raises `RegistrationError`.

        **metadata
            Arbitrary metadata to store with the object.

        Examples
        --------
        >>> from symtree.core.iterables import ObjectRegistry
        >>> registry = ObjectRegistry()
        >>> @registry.register
        ... def double(v):
        ...     return 2 * v
        ...
        >>> @registry.register(name='half', arity=1)
        ... def _half(v):
        ...     return v / 2
        ...
        >>> sorted(registry)
        ['double', 'half']
        >>> registry['half']['arity']
        1
        """
        def decorator(obj):
            key = obj.__name__ if name is None else name
            if key in self._entries and not overwrite:
                raise RegistrationError(key)
            self._entries[key] = {'object': obj, **metadata}
            return obj
        if _obj is None:
            return decorator
        return decorator(_obj)

    def find(self, name: str) -> typing.Any:
        """Get the registered object itself, without its metadata."""
        return self._entries[name]['object']

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}({sorted(self._entries)})"


class Once(typing.Generic[T]):
    """A cell that computes its value on first access and keeps it.

    The owner passes a zero-argument callable. The cell calls it at most once,
    so an immutable owner can defer an expensive computation without storing a
    mutable, possibly empty attribute of its own.
    """

    __slots__ = ('_compute', '_value', '_done')

    def __init__(self, compute: typing.Callable[[], T]) -> None:
        self._compute = compute
        self._value = None
        self._done = False

    @property
    def done(self) -> bool:
        """True if this cell has already computed its value."""
        return self._done

    def get(self) -> T:
        """Compute the value if necessary, then return it."""
        if not self._done:
            self._value = self._compute()
            self._done = True
        return self._value

    def __repr__(self) -> str:
        if self._done:
            return f"{self.__class__.__qualname__}({self._value!r})"
        return f"{self.__class__.__qualname__}(<pending>)"
