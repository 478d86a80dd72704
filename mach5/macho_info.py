from .destruct import StructType

# This file contains structs and constants describing the (32-bit,
# little-endian) Mach-O format.
#
# Reference:
#
#   The MacOSX header files, which can be found in e.g.:
#     /Applications/Xcode.app/Contents/Developer/Platforms/MacOSX.platform/Developer/SDKs/MacOSX10.11.sdk/usr/include/
#
# In particular:
#   mach-o/loader.h
#   mach-o/nlist.h
#   mach-o/fat.h (only for the magic number, so we can complain about it)

uint8_t = "B"
uint16_t = "H"
uint32_t = "I"
# 32 bits signed int, even on 64 bit systems -- see
# mach/{machine,i386}/vm_types.h
integer_t = "i"
cpu_type_t = integer_t
cpu_subtype_t = integer_t
# mach/vm_prot.h
vm_prot_t = "i"

# Magic field (32-bit architectures)
MH_MAGIC = 0xfeedface
# Byteswapped magic field
MH_CIGAM = 0xcefaedfe
# Things we recognize only so we can give a useful error message
MH_MAGIC_64 = 0xfeedfacf
MH_CIGAM_64 = 0xcffaedfe
FAT_MAGIC = 0xcafebabe
FAT_CIGAM = 0xbebafeca

MACH_HEADER = StructType(
    "MACH_HEADER", [
        (uint32_t, "magic"),
        (cpu_type_t, "cputype"),
        (cpu_subtype_t, "cpusubtype"),
        (uint32_t, "filetype"),
        (uint32_t, "ncmds"),
        (uint32_t, "sizeofcmds"),
        (uint32_t, "flags"),
    ])

## Load commands

LC_SEGMENT = 0x1
LC_SYMTAB = 0x2

def _command(name, fields):
    return StructType(name,
                      [(uint32_t, "cmd"), (uint32_t, "cmdsize")] + fields)
LOAD_COMMAND = _command("LOAD_COMMAND", [])

LC_ID_TO_STRUCT = {}

SEGMENT_COMMAND = _command(
    "SEGMENT_COMMAND", [
        ("16s", "segname"),
        (uint32_t, "vmaddr"),
        (uint32_t, "vmsize"),
        (uint32_t, "fileoff"),
        (uint32_t, "filesize"),
        (vm_prot_t, "maxprot"),
        (vm_prot_t, "initprot"),
        (uint32_t, "nsects"),
        (uint32_t, "flags"),
    ])
LC_ID_TO_STRUCT[LC_SEGMENT] = SEGMENT_COMMAND

# The segment holding the symbol table, string table, and the rest of the
# linker metadata. segname is NUL-padded to 16 bytes.
SEG_LINKEDIT = b"__LINKEDIT"

SYMTAB_COMMAND = _command(
    "SYMTAB_COMMAND", [
        (uint32_t, "symoff"),
        (uint32_t, "nsyms"),
        (uint32_t, "stroff"),
        (uint32_t, "strsize"),
    ])
LC_ID_TO_STRUCT[LC_SYMTAB] = SYMTAB_COMMAND

## Symbol table entries (mach-o/nlist.h)

NLIST = StructType(
    "NLIST", [
        # index into the string table
        (uint32_t, "n_strx"),
        (uint8_t, "n_type"),
        # section number or NO_SECT
        (uint8_t, "n_sect"),
        (uint16_t, "n_desc"),
        (uint32_t, "n_value"),
    ])

# n_type is a bitfield:
#   0xe0  if any of these bits are set, it's a symbolic debugging entry
#   0x10  private external symbol bit
#   0x0e  type bits
#   0x01  external symbol bit
N_STAB = 0xe0
N_PEXT = 0x10
N_TYPE = 0x0e
N_EXT = 0x01

# Values for the N_TYPE bits
N_UNDF = 0x0
N_ABS = 0x2
N_SECT = 0xe
N_PBUD = 0xc
N_INDR = 0xa

# n_strx values 0 and 1 don't refer to a string. 0 means "no name"; ld puts a
# single space at offset 1 and uses it for the same purpose.
MAX_SENTINEL_STRX = 1

# Old versions of the OS X libc exported some functions under a versioned
# name ("_fopen$UNIX2003"); we want to wrap them all the same.
UNIX2003_SUFFIX = b"$UNIX2003"
