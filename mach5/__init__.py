from ._version import __version__

from .errors import MachOError, RulesetError
from .macho import wrap_symbols, iter_symbols
from .rules import (
    Ruleset, DEFAULT_RULESET, PYTHON_RULESET, select_ruleset, load_ruleset,
)
