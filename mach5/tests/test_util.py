import pytest

from ..errors import OutOfBoundsError
from ..util import *

def test_sizeslice():
    assert b"abcdef"[sizeslice(1, 3)] == b"bcd"
    assert b"abcdef"[sizeslice(6, 0)] == b""

def test_checked_slice():
    assert checked_slice(bytearray(b"abcdef"), 2, 2) == b"cd"
    with pytest.raises(OutOfBoundsError):
        checked_slice(b"abcdef", 4, 3)

def test_read_asciiz():
    assert read_asciiz(b"abc\x00def", 0) == (b"abc", 4)
    assert read_asciiz(b"abc\x00def", 1) == (b"bc", 4)
    assert read_asciiz(b"abc\x00def", 3) == (b"", 4)
    assert read_asciiz(b"abc\x00def\x00", 4) == (b"def", 8)
    # unterminated string at the end of the buffer
    assert read_asciiz(bytearray(b"abc\x00def"), 4) == (b"def", 8)
