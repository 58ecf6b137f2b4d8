"""
Caption Key Hashing
===================

Caption tokens are stored in the container under a 32-bit fingerprint of
their name rather than the name itself. The fingerprint is a standard CRC-32
(poly 0x04C11DB7, reflected, init/xorout 0xFFFFFFFF) over the lower-cased
name, one byte per character.

    fingerprint("hello")  -> 0x3610A686
    fingerprint("Hello")  -> 0x3610A686   (case-folded)

Only characters U+0000..U+00FF have a single-byte form. Anything above that
is rejected with UnhashableKeyError instead of being silently truncated.
"""

import zlib
from typing import Union

from .errors import ConstructionError, UnhashableKeyError

# A token key is either a raw caption name or an already-hashed fingerprint
TokenKey = Union[str, int]

MAX_FINGERPRINT = 0xFFFFFFFF


def _single_byte(text: str) -> bytes:
    try:
        return text.encode('latin-1')
    except UnicodeEncodeError as e:
        bad = text[e.start]
        raise UnhashableKeyError(
            f"Cannot hash {text!r}: character {bad!r} (U+{ord(bad):04X}) "
            f"at index {e.start} is outside the single-byte range"
        ) from None


def fingerprint_exact(text: str) -> int:
    """
    CRC-32 of text without case-folding.

    Args:
        text: Caption name

    Returns:
        Unsigned 32-bit checksum
    """
    return zlib.crc32(_single_byte(text)) & MAX_FINGERPRINT


def fingerprint(text: str) -> int:
    """
    Compute the container fingerprint of a caption name.

    The name is lower-cased before hashing, so names differing only in case
    share a fingerprint.

    Args:
        text: Caption name

    Returns:
        Unsigned 32-bit checksum of the lower-cased name

    Raises:
        UnhashableKeyError: if text contains characters above U+00FF
    """
    return fingerprint_exact(text.lower())


def key_fingerprint(key: TokenKey) -> int:
    """
    Resolve a token key to the fingerprint written into the directory.

    String keys are hashed with fingerprint(); integer keys are taken as
    already-hashed and must fit in an unsigned 32-bit field.
    """
    if isinstance(key, str):
        return fingerprint(key)
    # bool is an int subclass but never a meaningful fingerprint
    if isinstance(key, int) and not isinstance(key, bool):
        if not 0 <= key <= MAX_FINGERPRINT:
            raise ConstructionError(f"Fingerprint out of u32 range: {key}")
        return key
    raise ConstructionError(f"Token key must be str or int, got {type(key).__name__}")


def format_fingerprint(value: int) -> str:
    """Format a fingerprint for log output, e.g. "0x3610A686"."""
    return f"0x{value:08X}"
