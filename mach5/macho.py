import logging

import attr

from .errors import (
    MachOError, MalformedHeaderError, CorruptCommandStreamError,
    MissingSymtabError, UnmappedSymbolOffsetError, TrailingDataError,
)
from .util import sizeslice, checked_slice, read_asciiz
from .macho_info import *

log = logging.getLogger(__name__)

################################################################
# Mach-O basics
################################################################

def view_mach_header(buf):
    header = MACH_HEADER.view(buf, 0)
    magic = header["magic"]
    if magic == MH_MAGIC:
        return header
    elif magic in (MH_MAGIC_64, MH_CIGAM_64):
        raise MalformedHeaderError(
            "This is a 64-bit Mach-O file; only 32-bit files are supported")
    elif magic == MH_CIGAM:
        raise MalformedHeaderError(
            "This file is big-endian, which isn't supported")
    elif magic in (FAT_MAGIC, FAT_CIGAM):
        raise MalformedHeaderError(
            "This is a fat binary; extract a single architecture first"
            " (e.g. with lipo -thin)")
    else:
        raise MalformedHeaderError(
            "This doesn't seem to be a Mach-O binary? (magic {:#010x})"
            .format(magic))


def view_load_command(buf, offset):
    load_command = LOAD_COMMAND.view(buf, offset)
    cmdsize = load_command["cmdsize"]
    if cmdsize == 0:
        raise CorruptCommandStreamError(
            "load command at {:#x} has cmdsize 0".format(offset))
    struct_type = LC_ID_TO_STRUCT.get(load_command["cmd"])
    if struct_type is not None:
        if cmdsize < struct_type.size:
            raise CorruptCommandStreamError(
                "load command at {:#x} has cmdsize {}, but {} needs {}"
                .format(offset, cmdsize, struct_type._name, struct_type.size))
        load_command = load_command.cast(struct_type)
    return load_command

# Each call returns a fresh generator, so the walk can be restarted at will.
def view_load_commands(header, cmds=None):
    offset = header.end_offset
    end = header.end_offset + header["sizeofcmds"]
    for i in range(header["ncmds"]):
        if offset + LOAD_COMMAND.size > end:
            raise CorruptCommandStreamError(
                "load command {} at {:#x} starts past the end of the"
                " command area ({:#x})".format(i, offset, end))
        load_command = view_load_command(header.buf, offset)
        if offset + load_command["cmdsize"] > end:
            raise CorruptCommandStreamError(
                "load command {} at {:#x} (cmdsize {}) runs past the end of"
                " the command area ({:#x})"
                .format(i, offset, load_command["cmdsize"], end))
        if cmds is None or load_command["cmd"] in cmds:
            yield load_command
        offset += load_command["cmdsize"]


################################################################
# Finding the tables
################################################################

@attr.s(slots=True)
class Tables:
    # views onto the file's SYMTAB_COMMAND and __LINKEDIT SEGMENT_COMMAND;
    # linkedit may be None (e.g. for .o files)
    symtab = attr.ib()
    linkedit = attr.ib(default=None)

def _is_linkedit(segment_command):
    # segname is NUL-padded; a prefix match is what the old tools did
    return segment_command["segname"].startswith(SEG_LINKEDIT)

def locate_tables(header):
    symtab = None
    linkedit = None
    for lc in view_load_commands(header, {LC_SEGMENT, LC_SYMTAB}):
        if lc["cmd"] == LC_SEGMENT and _is_linkedit(lc):
            if linkedit is None:
                log.info("Found LINKEDIT segment at offset %d", lc.offset)
                linkedit = lc
            else:
                log.warning("Ignoring extra LINKEDIT segment at offset %d",
                            lc.offset)
        elif lc["cmd"] == LC_SYMTAB:
            if symtab is None:
                log.debug("Found LC_SYMTAB at offset %d", lc.offset)
                symtab = lc
            else:
                log.warning("Ignoring extra LC_SYMTAB at offset %d",
                            lc.offset)
    if symtab is None:
        raise MissingSymtabError(
            "no LC_SYMTAB load command; there's nothing to rewrite")
    if linkedit is None:
        log.info("No LINKEDIT segment; its size won't be updated")
    return Tables(symtab=symtab, linkedit=linkedit)


################################################################
# String table
################################################################

# The string table is a blob of NUL-terminated strings, addressed by the byte
# offset where each one starts. Renaming a string changes its length, which
# shifts every string after it -- so we walk it once, front to back, keeping
# a running total of how far things have moved.

@attr.s(slots=True)
class Rename:
    offset = attr.ib()
    new_offset = attr.ib()
    old_name = attr.ib()
    new_name = attr.ib()

@attr.s(slots=True)
class StringTableRewrite:
    # new strings, in the same order as the originals
    strings = attr.ib()
    # {old offset: new offset}, for every string in the table
    offset_map = attr.ib()
    size_diff = attr.ib()
    renames = attr.ib(default=attr.Factory(list))

    def encode(self):
        return b"\x00".join(self.strings)

def split_string_table(blob):
    # bytes.split keeps the empty strings between adjacent NULs and after a
    # trailing NUL, so joining on NUL gives back exactly the same bytes.
    offset = 0
    for s in bytes(blob).split(b"\x00"):
        yield offset, s
        offset += len(s) + 1

def rename_strings(blob, ruleset):
    strings = []
    offset_map = {}
    renames = []
    size_diff = 0
    for offset, orig in split_string_table(blob):
        offset_map[offset] = offset + size_diff
        new = ruleset.rename(orig)
        if new is None:
            strings.append(orig)
            continue
        strings.append(new)
        renames.append(Rename(offset=offset, new_offset=offset_map[offset],
                              old_name=orig, new_name=new))
        log.info("   - Mapping: %s to %s (offset %d -> %d)",
                 orig.decode("ascii", "replace"),
                 new.decode("ascii", "replace"),
                 offset, offset_map[offset])
        size_diff += len(new) - len(orig)
    return StringTableRewrite(strings=strings, offset_map=offset_map,
                              size_diff=size_diff, renames=renames)


################################################################
# Symbol table
################################################################

PROGRESS_INTERVAL = 10000

# Returns a new copy of the symbol table with the string offsets remapped.
# Entries keep their size and order; only n_strx changes.
def patch_symbol_table(buf, symoff, nsyms, offset_map):
    new_symbols = bytearray(checked_slice(buf, symoff, nsyms * NLIST.size))
    for i, nlist in enumerate(NLIST.view_array(new_symbols, 0, nsyms)):
        if i and i % PROGRESS_INTERVAL == 0:
            log.debug("  - Mapped %d symbols...", i)
        strx = nlist["n_strx"]
        if strx <= MAX_SENTINEL_STRX:
            continue
        try:
            nlist["n_strx"] = offset_map[strx]
        except KeyError:
            raise UnmappedSymbolOffsetError(i, strx) from None
    assert len(new_symbols) == nsyms * NLIST.size
    return new_symbols

@attr.s(slots=True)
class Symbol:
    index = attr.ib()
    strx = attr.ib()
    name = attr.ib()
    type = attr.ib()
    sect = attr.ib()
    desc = attr.ib()
    value = attr.ib()

    @property
    def is_stab(self):
        return bool(self.type & N_STAB)

    @property
    def is_private_external(self):
        return bool(self.type & N_PEXT)

    @property
    def is_external(self):
        return bool(self.type & N_EXT)

    @property
    def type_bits(self):
        return self.type & N_TYPE

def iter_symbols(buf):
    header = view_mach_header(buf)
    symtab = locate_tables(header).symtab
    strtab = checked_slice(buf, symtab["stroff"], symtab["strsize"])
    nlists = NLIST.view_array(buf, symtab["symoff"], symtab["nsyms"])
    for i, nlist in enumerate(nlists):
        strx = nlist["n_strx"]
        if strx <= len(strtab):
            name, _ = read_asciiz(strtab, strx)
        else:
            name = None
        yield Symbol(index=i, strx=strx, name=name, type=nlist["n_type"],
                     sect=nlist["n_sect"], desc=nlist["n_desc"],
                     value=nlist["n_value"])


################################################################
# Putting the file back together
################################################################

# Everything fixed-size gets patched in place through the views in 'tables'
# (which point into buf); only then do we cut the buffer and append the new
# string table. The string table is assumed to be the last thing in the file.
def finalize_layout(buf, tables, new_symbols, new_strtab, *, strict=False):
    symtab = tables.symtab
    stroff = symtab["stroff"]
    old_end = stroff + symtab["strsize"]
    size_diff = len(new_strtab) - symtab["strsize"]

    # ld writes an empty LC_SYMTAB as all zeros; there's nothing to splice
    if symtab["strsize"] == 0 and symtab["nsyms"] == 0 and not new_strtab:
        log.info("Symbol table is empty; nothing to rewrite")
        return buf

    header = MACH_HEADER.view(buf, 0)
    cmds_end = header.end_offset + header["sizeofcmds"]
    if stroff < cmds_end:
        raise CorruptCommandStreamError(
            "string table at {:#x} starts inside the load commands (which"
            " end at {:#x})".format(stroff, cmds_end))

    if new_symbols and symtab["symoff"] + len(new_symbols) > stroff:
        raise MachOError(
            "symbol table at {:#x} overlaps or follows the string table at"
            " {:#x}".format(symtab["symoff"], stroff))

    trailing = len(buf) - old_end
    if trailing > 0:
        msg = ("{} bytes follow the string table (which ends at {:#x})"
               .format(trailing, old_end))
        if strict:
            raise TrailingDataError(msg)
        log.warning("%s; they will be dropped", msg)

    if tables.linkedit is not None:
        new_filesize = tables.linkedit["filesize"] + size_diff
        if not 0 <= new_filesize < 2 ** 32:
            raise MachOError(
                "can't resize {} segment at {:#x}: filesize {} + {} is out"
                " of range".format(
                    SEG_LINKEDIT.decode("ascii"), tables.linkedit.offset,
                    tables.linkedit["filesize"], size_diff))

    symtab["strsize"] = len(new_strtab)

    if tables.linkedit is not None:
        log.info("Size changed by %d bytes, rewriting LINKEDIT segment.",
                 size_diff)
        tables.linkedit["filesize"] = new_filesize

    symbol_slice = sizeslice(symtab["symoff"], len(new_symbols))
    assert len(buf[symbol_slice]) == len(new_symbols)
    buf[symbol_slice] = new_symbols

    return buf[:stroff] + new_strtab


################################################################
# The whole thing
################################################################

@attr.s(slots=True)
class RewriteResult:
    buf = attr.ib()
    renames = attr.ib()
    size_diff = attr.ib()
    nsyms = attr.ib()
    linkedit_found = attr.ib()

def wrap_symbols(buf, ruleset, *, strict=False):
    # Make a mutable copy to work on
    buf = bytearray(buf)
    log.info("Input file was %d bytes long.", len(buf))

    header = view_mach_header(buf)
    tables = locate_tables(header)
    symtab = tables.symtab

    log.info("Symbol table has %d symbols.", symtab["nsyms"])
    strtab = checked_slice(buf, symtab["stroff"], symtab["strsize"])
    rewrite = rename_strings(strtab, ruleset)

    new_symbols = patch_symbol_table(
        buf, symtab["symoff"], symtab["nsyms"], rewrite.offset_map)

    new_strtab = rewrite.encode()
    assert len(new_strtab) == symtab["strsize"] + rewrite.size_diff

    nsyms = symtab["nsyms"]
    new_buf = finalize_layout(buf, tables, new_symbols, new_strtab,
                              strict=strict)
    log.info("Output file is %d bytes long.", len(new_buf))

    return RewriteResult(buf=new_buf, renames=rewrite.renames,
                         size_diff=rewrite.size_diff, nsyms=nsyms,
                         linkedit_found=tables.linkedit is not None)
