import pytest

from symtree.core import functions
from symtree.core import iterables


def test_batch_replace():
    """Replace each key of the mapping with its value."""
    replacements = {'×': '*', '÷': '/'}
    assert iterables.batch_replace('2 × 3 ÷ 4', replacements) == '2 * 3 / 4'
    assert iterables.batch_replace('x', {}) == 'x'


def test_object_registry():
    """Test the collection of objects with metadata."""
    registry = iterables.ObjectRegistry()
    registry.register([2, 3], name='this')
    assert registry['this']['object'] == [2, 3]
    @registry.register(name='func', arity=1)
    def func():
        pass
    assert registry['func']['object'] is func
    assert registry.find('func') is func
    assert registry['func']['arity'] == 1
    assert len(registry) == 2
    assert 'func' in registry
    assert 'other' not in registry
    assert sorted(registry) == ['func', 'this']
    assert repr(registry) == "ObjectRegistry(['func', 'this'])"


def test_object_registry_default_keys():
    """Unnamed objects register under their own names."""
    registry = iterables.ObjectRegistry()
    @registry.register
    def double(v):
        return 2 * v
    assert registry.find('double') is double
    assert registry['double'] == {'object': double}


def test_object_registry_duplicates():
    """A name registers once unless the caller allows overwriting."""
    registry = iterables.ObjectRegistry()
    registry.register(abs, name='size')
    with pytest.raises(iterables.RegistrationError) as error:
        registry.register(len, name='size')
    assert error.value.name == 'size'
    assert 'already registered' in str(error.value)
    assert registry.find('size') is abs
    registry.register(len, name='size', overwrite=True)
    assert registry.find('size') is len
    assert len(registry) == 1


def test_function_registry():
    """Function nodes register under their printed names."""
    assert functions.registry.find('sin') is functions.Sin
    assert 'exp' in functions.registry


def test_once():
    """The cell computes its value once, on first access."""
    calls = []
    def compute():
        calls.append(1)
        return 42
    cell = iterables.Once(compute)
    assert not cell.done
    assert repr(cell) == 'Once(<pending>)'
    assert cell.get() == 42
    assert cell.get() == 42
    assert cell.done
    assert len(calls) == 1
    assert repr(cell) == 'Once(42)'
