import struct
from collections.abc import MutableMapping

from .errors import OutOfBoundsError

# Thin wrapper around the 'struct' module for poking at packed binary records
# that live inside a larger buffer.
#
# Usage:
#   SYMTAB_COMMAND = StructType("SYMTAB_COMMAND", [
#     # struct code, field name
#     ("I", "cmd"),
#     ...
#   ])
#
#   symtab = SYMTAB_COMMAND.view(buf, offset)
#   symtab["strsize"]
#   # Mutates 'buf' in-place
#   symtab["strsize"] = whatever
#
# Views are bounds-checked when they're created, so a view that exists can
# always be read and written.

def check_span(buf, start, size):
    if start < 0 or size < 0 or start + size > len(buf):
        raise OutOfBoundsError(
            "range [{:#x}, {:#x}) is outside of the {:#x} byte buffer"
            .format(start, start + size, len(buf)))

class StructType(object):
    def __init__(self, name, fields, endian="<"):
        self._name = name
        self._fields = fields
        self._types = [f[0] for f in self._fields]
        self._names = [f[1] for f in self._fields]

        self._struct = struct.Struct(endian + "".join(self._types))
        self.size = self._struct.size

    def __repr__(self):
        return "<StructType {} ({} bytes)>".format(self._name, self.size)

    def _unpack_from(self, buf, offset):
        values = self._struct.unpack_from(buf, offset)
        return dict(zip(self._names, values))

    def _pack_into(self, buf, offset, value_dict):
        values = [value_dict[n] for n in self._names]
        try:
            self._struct.pack_into(buf, offset, *values)
        except struct.error as exc:
            raise ValueError("can't pack {}: {}".format(self._name, exc))

    def view(self, buf, offset):
        check_span(buf, offset, self.size)
        return StructView(self, buf, offset)

    def view_array(self, buf, offset, count):
        check_span(buf, offset, self.size * count)
        views = []
        for _ in range(count):
            views.append(StructView(self, buf, offset))
            offset += self.size
        return views

    def new(self):
        return self.view(bytearray(self.size), 0)

def _repr_field(struct_code, value):
    if struct_code in "bBhHiIlLqQ":
        l = struct.calcsize("<" + struct_code)
        # l bytes -> 2*l nibbles
        f = "0x{:0" + str(2 * l) + "x}"
        return f.format(value)
    else:
        return repr(value)

class StructView(MutableMapping):
    def __init__(self, struct_type, buf, offset):
        self.struct_type = struct_type
        self.buf = buf
        self.offset = offset

    def __repr__(self):
        s = "<{} of <{}>[{:#x}:]\n".format(
            self.struct_type._name, self.buf.__class__.__name__, self.offset)
        d = dict(self)
        for type_, name in self.struct_type._fields:
            s += "  {:>30}: {}\n".format(name, _repr_field(type_, d[name]))
        s += ">"
        return s

    def _value_dict(self):
        return self.struct_type._unpack_from(self.buf, self.offset)

    def __getitem__(self, k):
        return self._value_dict()[k]

    def __setitem__(self, k, v):
        value_dict = self._value_dict()
        if k not in value_dict:
            raise KeyError(k)
        value_dict[k] = v
        self.struct_type._pack_into(self.buf, self.offset, value_dict)

    def __delitem__(self, k):
        raise NotImplementedError(
            "can't delete fields from fixed-length struct")

    def __len__(self):
        return len(self.struct_type._names)

    def __iter__(self):
        return iter(self.struct_type._names)

    def cast(self, new_type):
        return new_type.view(self.buf, self.offset)

    def raw(self):
        return bytes(self.buf[self.offset:self.end_offset])

    @property
    def size(self):
        return self.struct_type.size

    @property
    def end_offset(self):
        return self.offset + self.size
