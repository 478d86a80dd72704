import json

import pytest

from ..errors import RulesetError
from ..rules import (
    Ruleset, DEFAULT_RULESET, PYTHON_RULESET, select_ruleset, load_ruleset,
)

def test_select_ruleset():
    assert select_ruleset(None) is DEFAULT_RULESET
    assert select_ruleset("libfoo.dylib") is DEFAULT_RULESET
    assert select_ruleset("libpython2.7.dylib") is PYTHON_RULESET
    # has to be a prefix
    assert select_ruleset("notlibpython.so") is DEFAULT_RULESET

def test_default_ruleset():
    assert DEFAULT_RULESET.rename(b"_malloc") == b"___wrap_malloc"
    assert DEFAULT_RULESET.rename(b"_putc") == b"___wrap__IO_putc"
    assert DEFAULT_RULESET.rename(b"_getc") == b"___wrap__IO_getc"
    assert DEFAULT_RULESET.rename(b"_fopen$UNIX2003") == b"___wrap_fopen"
    assert DEFAULT_RULESET.rename(b"_dlopen") is None
    # the first byte is a scope marker, whatever it is
    assert DEFAULT_RULESET.rename(b"xmalloc") == b"___wrap_malloc"
    assert DEFAULT_RULESET.rename(b"malloc") is None
    assert DEFAULT_RULESET.rename(b"_") is None
    assert DEFAULT_RULESET.rename(b"") is None

def test_python_ruleset():
    assert PYTHON_RULESET.rename(b"_dlopen") == b"___py_wrap_dlopen"
    assert PYTHON_RULESET.rename(b"_stat") == b"___py_wrap_stat"
    assert PYTHON_RULESET.rename(b"_malloc") is None

def test_ruleset_converts_to_bytes():
    ruleset = Ruleset(name="t", prefix="p_", mappings={"a": True, "b": "_c"})
    assert ruleset.prefix == b"p_"
    assert ruleset.mappings == {b"a": True, b"b": b"_c"}
    with pytest.raises(UnicodeEncodeError):
        Ruleset(name="t", prefix="☃", mappings={})

def _write_json(tmpdir, data):
    path = tmpdir.join("rules.json")
    path.write(json.dumps(data))
    return path.strpath

def test_load_ruleset(tmpdir):
    path = _write_json(tmpdir, {
        "prefix": "__my_",
        "mappings": {"malloc": True, "putc": "__my_IO_putc"},
    })
    ruleset = load_ruleset(path)
    assert ruleset.name == path
    assert ruleset.rename(b"_malloc") == b"__my_malloc"
    assert ruleset.rename(b"_putc") == b"__my_IO_putc"
    assert ruleset.rename(b"_free") is None

    # literal replacements don't need a prefix
    path = _write_json(tmpdir, {"mappings": {"free": "_myfree"}})
    assert load_ruleset(path).rename(b"_free") == b"_myfree"

@pytest.mark.parametrize("data", [
    [],
    {"prefix": "p_"},
    {"prefix": 1, "mappings": {}},
    {"prefix": "p_", "mappings": []},
    {"prefix": "p_", "mappings": {"malloc": False}},
    {"prefix": "p_", "mappings": {"malloc": 3}},
    {"mappings": {"malloc": True}},
    {"prefix": "p_", "mappings": {"malloc": "☃"}},
])
def test_load_ruleset_invalid(tmpdir, data):
    with pytest.raises(RulesetError):
        load_ruleset(_write_json(tmpdir, data))

def test_load_ruleset_unreadable(tmpdir):
    with pytest.raises(RulesetError):
        load_ruleset(tmpdir.join("nonexistent.json").strpath)
    path = tmpdir.join("garbage.json")
    path.write("{not json")
    with pytest.raises(RulesetError):
        load_ruleset(path.strpath)
