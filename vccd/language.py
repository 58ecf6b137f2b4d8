"""
Caption Language
================

A Language is one localized set of closed captions: an optional name
("english", "french", ...) and an ordered token map.

Token keys are either caption names (str, case-sensitive, unhashed) or
fingerprints (int) when the name is unknown, as happens after decompiling a
container without hints. Keys become fingerprints only when compiling.

Usage:
    lang = Language({"npc.hello": "Hello there."}, "english")
    data = lang.compile()

    same = Language.decompile(data, [hints_from_strings(["npc.hello"])], "english")
    assert same == lang
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional, Sequence, Tuple, Union

from .container import build_container, read_container, read_string
from .errors import ConstructionError
from .hashing import TokenKey, format_fingerprint, key_fingerprint
from .hints import HintChain, HintMap
from .script_tree import ScriptSection, pairs

logger = logging.getLogger(__name__)

TokenSource = Union[Mapping[TokenKey, str], Iterable[Tuple[TokenKey, str]]]
Hints = Union[HintChain, HintMap, Sequence[HintMap], None]


def _collect_tokens(tokens: TokenSource) -> Dict[TokenKey, str]:
    if tokens is None:
        raise ConstructionError("Expected a mapping or key/value pairs for tokens, got None")
    if isinstance(tokens, (str, bytes)):
        raise ConstructionError(f"Expected a mapping or key/value pairs for tokens, "
                                f"got {type(tokens).__name__}")

    if isinstance(tokens, Mapping):
        items = tokens.items()
    else:
        try:
            items = list(tokens)
        except TypeError:
            raise ConstructionError(f"Expected a mapping or key/value pairs for tokens, "
                                    f"got {type(tokens).__name__}") from None

    out = {}
    for item in items:
        try:
            key, value = item
        except (TypeError, ValueError):
            raise ConstructionError(f"Token entry must be a (key, value) pair, got {item!r}") from None
        if isinstance(key, bool) or not isinstance(key, (str, int)):
            raise ConstructionError(f"Token key must be str or int, got {type(key).__name__}")
        if not isinstance(value, str):
            raise ConstructionError(f"Token value for {key!r} must be str, got {type(value).__name__}")
        out[key] = value
    return out


class Language:
    """A set of caption tokens for one language."""

    def __init__(self, tokens: TokenSource, name: Optional[str] = None):
        self._tokens = _collect_tokens(tokens)
        self.name = name

    @property
    def tokens(self) -> Mapping[TokenKey, str]:
        """Read-only view of the token map, in insertion order."""
        return MappingProxyType(self._tokens)

    def __len__(self):
        return len(self._tokens)

    def __iter__(self) -> Iterator[TokenKey]:
        return iter(self._tokens)

    def __getitem__(self, key: TokenKey) -> str:
        return self._tokens[key]

    def __contains__(self, key):
        return key in self._tokens

    def __eq__(self, other):
        if not isinstance(other, Language):
            return NotImplemented
        return self.name == other.name and self._tokens == other._tokens

    def __repr__(self):
        return f"Language(name={self.name!r}, tokens={len(self._tokens)})"

    # =========================================================================
    # Compile / Decompile
    # =========================================================================

    def compile(self) -> bytes:
        """
        Compile this Language into a captions container (.dat).

        String keys are hashed with their lower-cased fingerprint, integer
        keys are written as-is. Directory order follows token order.

        Raises:
            ConstructionError: if an integer key does not fit in 32 bits
            UnhashableKeyError: if a string key cannot be hashed
            BlockOverflowError: if a single string does not fit in a block
        """
        entries = []
        seen = {}
        for key, value in self._tokens.items():
            key_fp = key_fingerprint(key)
            if key_fp in seen:
                logger.warning("Tokens %r and %r share fingerprint %s",
                               seen[key_fp], key, format_fingerprint(key_fp))
            seen[key_fp] = key
            entries.append((key_fp, value))

        data = build_container(entries)
        logger.debug("Compiled %r into %d bytes", self, len(data))
        return data

    @classmethod
    def decompile(cls, data: bytes, hints: Hints = None, name: Optional[str] = None) -> "Language":
        """
        Decompile a captions container (.dat) into a Language.

        Args:
            data: Container bytes
            hints: Hint maps tried in order to turn fingerprints back into
                names. Unresolved fingerprints stay integer keys.
            name: Name for the resulting Language

        Raises:
            FormatError: if the magic, version or layout is invalid
        """
        chain = HintChain.coerce(hints)
        header, entries = read_container(data)

        tokens = {}
        resolved = 0
        for entry in entries:
            text = read_string(data, header, entry)
            key = chain.resolve(entry.fingerprint)
            if isinstance(key, str):
                resolved += 1
            tokens[key] = text

        logger.debug("Decompiled %d tokens, %d resolved by %r", len(entries), resolved, chain)
        return cls(tokens, name)

    # =========================================================================
    # Caption Script
    # =========================================================================

    @classmethod
    def parse(cls, tree: ScriptSection) -> "Language":
        """
        Build a Language from a parsed caption script.

        Reads the optional "language" value of the lang section as the name
        and every key/value pair of lang/tokens as a token. Nested sections
        inside tokens are skipped.

        Raises:
            ScriptTreeError: if the lang or tokens section is missing
        """
        lang = tree.section('lang')
        name = lang.scalar('language', None)
        tokens = {pair.key: pair.value for pair in pairs(lang.section('tokens'))}
        return cls(tokens, name)
