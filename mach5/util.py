from .destruct import check_span

def sizeslice(start, size):
    return slice(start, start + size)

def checked_slice(buf, start, size):
    check_span(buf, start, size)
    return buf[sizeslice(start, size)]

def read_asciiz(buf, offset):
    end = buf.find(b"\x00", offset)
    if end < 0:
        end = len(buf)
    return bytes(buf[offset:end]), end + 1
