import json

import attr

from .errors import RulesetError
from .macho_info import UNIX2003_SUFFIX

# A ruleset says which imported symbols get renamed, and to what. Keys are
# bare C names (no leading underscore); a value of True means "prepend the
# prefix", anything else is the literal replacement symbol name.
#
# For example, with the default ruleset "_calloc" becomes "___wrap_calloc",
# which the wrapper library defines as __wrap_calloc in C.

def _to_bytes(value):
    if isinstance(value, str):
        return value.encode("ascii")
    return bytes(value)

def _convert_mappings(mappings):
    converted = {}
    for name, target in mappings.items():
        if target is not True:
            target = _to_bytes(target)
        converted[_to_bytes(name)] = target
    return converted

@attr.s(frozen=True)
class Ruleset:
    name = attr.ib()
    prefix = attr.ib(converter=_to_bytes)
    mappings = attr.ib(converter=_convert_mappings)

    def rename(self, symbol):
        """Return the new name for a string table entry, or None.

        The first byte is the scope marker (the leading underscore C symbols
        get), and isn't part of the lookup.
        """
        if len(symbol) <= 1:
            return None
        bare = symbol[1:].replace(UNIX2003_SUFFIX, b"")
        target = self.mappings.get(bare)
        if target is None:
            return None
        if target is True:
            return self.prefix + bare
        return target


DEFAULT_RULESET = Ruleset(
    name="default",
    prefix="___wrap_",
    mappings={
        "calloc": True, "malloc": True, "realloc": True, "free": True,
        "open": True, "open64": True, "close": True, "write": True,
        "read": True, "lseek": True, "lseek64": True, "fclose": True,
        "ferror": True, "clearerr": True, "feof": True, "fileno": True,
        "fopen": True, "fdopen": True, "freopen": True, "fread": True,
        "fwrite": True, "fflush": True, "fputc": True, "fputs": True,
        # glibc names these _IO_putc/_IO_getc, and that's what the wrapper
        # library exports
        "putc": "___wrap__IO_putc",
        "fseek": True, "ftell": True, "rewind": True, "fgetpos": True,
        "fsetpos": True, "fprintf": True, "vfprintf": True, "fgetc": True,
        "fgets": True,
        "getc": "___wrap__IO_getc",
        "ungetc": True, "ioctl": True, "stat": True, "printf": True,
    })

PYTHON_RULESET = Ruleset(
    name="python",
    prefix="___py_wrap_",
    mappings={
        "fopen64": True, "getcwd": True, "chdir": True, "access": True,
        "unlink": True, "chmod": True, "rmdir": True, "utime": True,
        "rename": True, "mkdir": True, "open": True, "fopen": True,
        "freopen": True, "opendir": True, "dlopen": True, "dlclose": True,
        "dlsym": True, "lstat": True, "stat": True,
    })

PYTHON_LIBRARY_PREFIX = "libpython"

def select_ruleset(library_name):
    if library_name is not None and library_name.startswith(
            PYTHON_LIBRARY_PREFIX):
        return PYTHON_RULESET
    return DEFAULT_RULESET

def load_ruleset(path):
    """Read a ruleset from a JSON file.

    The file looks like::

        {"prefix": "___wrap_",
         "mappings": {"malloc": true, "putc": "___wrap__IO_putc"}}
    """
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise RulesetError("can't read ruleset {}: {}".format(path, exc))

    if not isinstance(data, dict):
        raise RulesetError("{}: expected a JSON object".format(path))
    prefix = data.get("prefix", "")
    mappings = data.get("mappings")
    if not isinstance(prefix, str):
        raise RulesetError("{}: 'prefix' must be a string".format(path))
    if not isinstance(mappings, dict):
        raise RulesetError("{}: 'mappings' must be an object".format(path))
    for name, target in mappings.items():
        if target is not True and not isinstance(target, str):
            raise RulesetError(
                "{}: mapping for {!r} must be true or a symbol name"
                .format(path, name))
        if target is True and not prefix:
            raise RulesetError(
                "{}: mapping for {!r} needs a prefix".format(path, name))
    try:
        return Ruleset(name=str(path), prefix=prefix, mappings=mappings)
    except UnicodeEncodeError as exc:
        raise RulesetError("{}: symbol names must be ASCII ({})"
                           .format(path, exc))
