import sys
import argparse
import logging

from .. import __version__
from ..errors import MachOError, RulesetError
from ..macho import wrap_symbols, iter_symbols
from ..rules import PYTHON_RULESET, select_ruleset, load_ruleset

# Usage: python3 -m mach5.cmd.wrap INPUT [LIBRARY] [-o OUTPUT]

DEFAULT_OUTPUT = "output.so"

def _parser():
    parser = argparse.ArgumentParser(
        prog="python3 -m mach5.cmd.wrap",
        description="Rename imported symbols in a 32-bit Mach-O file so they"
                    " resolve to a wrapper library.")
    parser.add_argument("input", help="Mach-O file to rewrite")
    parser.add_argument(
        "library", nargs="?", default=None,
        help="name of the library being built; names starting with"
             " 'libpython' select the Python wrapper rules")
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT,
                        help="where to write the result (default: %(default)s)")
    parser.add_argument("--rules", metavar="FILE",
                        help="read the rename rules from a JSON file instead")
    parser.add_argument("--strict", action="store_true",
                        help="fail instead of dropping data that follows the"
                             " string table")
    parser.add_argument("--list", action="store_true",
                        help="print the symbol table and exit")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--version", action="version",
                        version="%(prog)s " + __version__)
    return parser

def _list_symbols(buf, out):
    for sym in iter_symbols(buf):
        name = "" if sym.name is None else sym.name.decode("ascii", "replace")
        flags = "".join([
            "S" if sym.is_stab else "-",
            "P" if sym.is_private_external else "-",
            "E" if sym.is_external else "-",
        ])
        out.write("{:6d} {:#010x} {} {:#04x} {:3d} {}\n".format(
            sym.index, sym.value, flags, sym.type_bits, sym.sect, name))

def main(argv=None):
    args = _parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stderr)

    try:
        with open(args.input, "rb") as f:
            buf = f.read()
    except OSError as exc:
        sys.stderr.write("error: {}\n".format(exc))
        return 1

    try:
        if args.list:
            _list_symbols(buf, sys.stdout)
            return 0
        if args.rules is not None:
            ruleset = load_ruleset(args.rules)
        else:
            ruleset = select_ruleset(args.library)
        if ruleset is PYTHON_RULESET:
            logging.getLogger(__name__).info("Using Python mappings.")
        result = wrap_symbols(buf, ruleset, strict=args.strict)
    except (MachOError, RulesetError) as exc:
        sys.stderr.write("error: {}\n".format(exc))
        return 1

    with open(args.output, "wb") as f:
        f.write(result.buf)
    return 0

if __name__ == "__main__":
    sys.exit(main())
