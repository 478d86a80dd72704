import pytest

from ..destruct import StructType, check_span
from ..errors import OutOfBoundsError

_fields = [
    ("I", "magic"),
    ("c", "byte"),
]

TEST = StructType("TEST", _fields)
TEST_BE = StructType("TEST_BE", _fields, endian=">")

def test_destruct():
    assert TEST.size == 5
    assert TEST_BE.size == 5

    raw = bytearray(b"\x00\x00\x01\x02\x03\x04")
    view_0_le = TEST.view(raw, 0)
    view_1_be = TEST_BE.view(raw, 1)
    for view in [view_0_le, view_1_be]:
        assert len(view) == 2
        assert view.size == 5
        # smoke test
        repr(view)
    assert view_0_le.end_offset == 5
    assert view_1_be.end_offset == 6

    assert dict(view_0_le) == {"magic": 0x02010000, "byte": b"\x03"}
    assert dict(view_1_be) == {"magic": 0x00010203, "byte": b"\x04"}

    view_0_le["magic"] = 0x12345678
    assert raw == bytearray(b"\x78\x56\x34\x12\x03\x04")
    assert view_1_be["magic"] == 0x56341203
    assert view_0_le.raw() == b"\x78\x56\x34\x12\x03"

    with pytest.raises(NotImplementedError):
        del view_0_le["magic"]
    with pytest.raises(KeyError):
        view_0_le["nonexistent"] = 1

def test_destruct_bounds():
    raw = bytearray(6)
    TEST.view(raw, 1)
    with pytest.raises(OutOfBoundsError):
        TEST.view(raw, 2)
    with pytest.raises(OutOfBoundsError):
        TEST.view(raw, -1)
    with pytest.raises(OutOfBoundsError):
        TEST.view(bytearray(4), 0)
    # OutOfBoundsError is a ValueError, like the rest of our errors
    with pytest.raises(ValueError):
        TEST.view(raw, 100)

def test_destruct_pack_error():
    view = TEST.new()
    with pytest.raises(ValueError):
        view["magic"] = -1
    with pytest.raises(ValueError):
        view["magic"] = 2 ** 32
    assert view["magic"] == 0

def test_view_array():
    raw = bytearray(b"\x01\x00\x00\x00a\x02\x00\x00\x00b")
    views = TEST.view_array(raw, 0, 2)
    assert [v["magic"] for v in views] == [1, 2]
    assert [v.offset for v in views] == [0, 5]
    assert TEST.view_array(raw, 0, 0) == []
    with pytest.raises(OutOfBoundsError):
        TEST.view_array(raw, 1, 2)

def test_cast():
    short = StructType("SHORT", [("I", "magic")])
    raw = bytearray(b"\x01\x00\x00\x00a")
    view = short.view(raw, 0).cast(TEST)
    assert view["byte"] == b"a"
    with pytest.raises(OutOfBoundsError):
        TEST.view(raw[:4], 0)

def test_check_span():
    check_span(b"abc", 0, 3)
    check_span(b"abc", 3, 0)
    for start, size in [(0, 4), (2, 2), (-1, 1), (0, -1)]:
        with pytest.raises(OutOfBoundsError):
            check_span(b"abc", start, size)
