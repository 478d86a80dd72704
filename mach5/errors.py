# Everything that can go wrong while rewriting a binary is fatal: there's no
# partial output, so callers only need to catch MachOError (or ValueError, if
# they don't want to import us).

class MachOError(ValueError):
    pass

class OutOfBoundsError(MachOError):
    pass

class MalformedHeaderError(MachOError):
    pass

class CorruptCommandStreamError(MachOError):
    pass

class MissingSymtabError(MachOError):
    pass

class UnmappedSymbolOffsetError(MachOError):
    def __init__(self, index, strx):
        super().__init__(
            "symbol {} refers to string table offset {:#x}, which is not the "
            "start of any string".format(index, strx))
        self.index = index
        self.strx = strx

class TrailingDataError(MachOError):
    pass

class RulesetError(ValueError):
    pass
