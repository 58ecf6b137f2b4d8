"""
Exceptions raised by the VCCD captions codec.

Every error derives from VCCDError, and additionally from the builtin
exception a caller would naturally expect (TypeError for bad construction
input, ValueError for bad data), so existing ``except ValueError`` handlers
keep working.
"""


class VCCDError(Exception):
    """Base class for all captions codec errors."""


class ConstructionError(VCCDError, TypeError):
    """Token collection is missing, has an unsupported shape, or holds a bad key."""


class UnhashableKeyError(VCCDError, ValueError):
    """Text contains characters that have no single-byte encoding."""


class FormatError(VCCDError, ValueError):
    """Buffer is not a valid VCCD container."""


class UnsupportedVersionError(FormatError):
    """Container declares a version other than 1."""


class TruncatedContainerError(FormatError):
    """Buffer ends before the header, directory or a string it references."""


class BlockOverflowError(VCCDError, ValueError):
    """A single string is too large to fit in an empty block."""


class ScriptTreeError(VCCDError, KeyError):
    """A required section is missing from a parsed caption script."""

    def __str__(self):
        # KeyError repr()s its argument; keep the plain message
        return str(self.args[0]) if self.args else ""
