"""
Hint Maps - recovering caption names from fingerprints
======================================================

A compiled container only stores fingerprints, so decompiling yields integer
keys unless the original names can be found elsewhere. A hint map is a plain
fingerprint -> name dict built from a known source of names:

| Builder                  | Source                         | Entries per name      |
|--------------------------|--------------------------------|-----------------------|
| hints_from_script_tree() | parsed caption script (Tokens) | case-folded + exact   |
| hints_from_strings()     | any list of candidate names    | case-folded           |

Several hint maps are consulted through a HintChain, in order. The first map
holding a fingerprint wins, so a trusted caption script can be placed ahead
of a generic wordlist without merging or mutating either.
"""

import logging
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

from .errors import UnhashableKeyError
from .hashing import fingerprint, fingerprint_exact, format_fingerprint
from .script_tree import ScriptSection, pairs

logger = logging.getLogger(__name__)

HintMap = Mapping[int, str]


def hints_from_script_tree(tree: ScriptSection) -> Dict[int, str]:
    """
    Build a hint map from the lang/Tokens section of a parsed caption script.

    Each token name is registered under both its case-folded and its
    exact-case fingerprint. On collision the later name overwrites.

    Args:
        tree: Root of the parsed caption script

    Returns:
        Dict mapping fingerprint -> original token name

    Raises:
        ScriptTreeError: if the lang or Tokens section is missing
        UnhashableKeyError: if a token name is outside the single-byte range
    """
    tokens = tree.section('lang').section('Tokens')
    out = {}
    for pair in pairs(tokens):
        out[fingerprint(pair.key)] = pair.key
        out[fingerprint_exact(pair.key)] = pair.key
    logger.debug("Built %d hint entries from caption script", len(out))
    return out


def hints_from_strings(strings: Iterable[str]) -> Dict[int, str]:
    """
    Build a hint map from a flat list of candidate names.

    Names that cannot be hashed are skipped with a warning rather than
    failing the whole list.
    """
    out = {}
    skipped = 0
    for text in strings:
        try:
            out[fingerprint(text)] = text
        except UnhashableKeyError as e:
            skipped += 1
            logger.warning("Skipping hint: %s", e)
    logger.debug("Built %d hint entries from %d strings (%d skipped)",
                 len(out), len(out) + skipped, skipped)
    return out


class HintChain:
    """
    Ordered priority list of hint maps.

    Earlier maps take priority over later ones. The chain holds references to
    the given maps and never modifies them.
    """

    def __init__(self, hints: Iterable[HintMap] = ()):
        self._maps: Tuple[HintMap, ...] = tuple(hints)
        for i, hint in enumerate(self._maps):
            if not isinstance(hint, Mapping):
                raise TypeError(f"Hint {i} must be a mapping, got {type(hint).__name__}")

    @classmethod
    def coerce(cls, hints: Union["HintChain", HintMap, Sequence[HintMap], None]) -> "HintChain":
        """Accept None, a single hint map, a sequence of hint maps, or a chain."""
        if hints is None:
            return cls()
        if isinstance(hints, HintChain):
            return hints
        if isinstance(hints, Mapping):
            return cls((hints,))
        return cls(hints)

    def __len__(self):
        return len(self._maps)

    def __repr__(self):
        sizes = ', '.join(str(len(m)) for m in self._maps)
        return f"HintChain(maps=[{sizes}])"

    def lookup(self, value: int) -> Optional[str]:
        """Return the name for a fingerprint from the first map that has it."""
        for hint in self._maps:
            name = hint.get(value)
            if name is not None:
                return name
        return None

    def resolve(self, value: int) -> Union[str, int]:
        """Return the hinted name, or the fingerprint itself when no map has it."""
        name = self.lookup(value)
        if name is None:
            logger.debug("No hint for %s", format_fingerprint(value))
            return value
        return name
