import pathlib

import pytest

import symtree
from symtree.core import iotools


@pytest.fixture
def inifile(tmp_path: pathlib.Path) -> pathlib.Path:
    """A configuration file that overrides the ambient variable."""
    path = tmp_path / 'symtree.ini'
    path.write_text("[engine]\nvariable = t\ntolerance = 1e-6\n")
    return path


def test_search(tmp_path: pathlib.Path, inifile: pathlib.Path):
    """Search the given directories in order, skipping missing ones."""
    paths = [None, tmp_path / 'missing', tmp_path]
    found = iotools.search(paths, 'symtree.ini')
    assert found == inifile.resolve()
    assert iotools.search([tmp_path], 'other.ini') is None


def test_read_only_path(inifile: pathlib.Path):
    """A read-only path resolves on creation and refuses to write."""
    path = iotools.ReadOnlyPath(inifile)
    assert path.is_absolute()
    assert 'variable = t' in path.read_text()
    with pytest.raises(iotools.ReadOnlyPathError):
        path.write_text('nothing')
    with pytest.raises(iotools.ReadOnlyPathError):
        path.open('w')
    with pytest.raises(iotools.NonExistentPathError):
        iotools.ReadOnlyPath(inifile.parent / 'missing.ini')


def test_environment_defaults(tmp_path: pathlib.Path, monkeypatch):
    """The packaged configuration provides the default settings."""
    monkeypatch.chdir(tmp_path)
    engine = symtree.Environment('engine')
    assert engine['variable'] == 'x'
    assert engine.getfloat('tolerance') == 1e-10
    assert sorted(engine) == ['tolerance', 'variable']
    assert len(engine) == 2
    roots = symtree.Environment('roots')
    assert roots.getint('max_steps') == 2000
    with pytest.raises(KeyError):
        engine['nothing']
    with pytest.raises(KeyError):
        symtree.Environment('nothing')


def test_environment_override(inifile: pathlib.Path, monkeypatch):
    """A file in the working directory takes precedence."""
    monkeypatch.chdir(inifile.parent)
    engine = symtree.Environment('engine')
    assert engine['variable'] == 't'
    assert engine.getfloat('tolerance') == 1e-6
    assert engine.path == inifile.resolve()
    assert '"variable": "t"' in str(engine)
