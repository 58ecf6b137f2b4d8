"""
VCCD Closed Captions Codec

Compile and decompile Source engine closed-caption containers
(closecaption_<language>.dat).

Usage:
    from vccd import Language, hints_from_strings

    lang = Language({"npc.hello": "Hello there."}, "english")
    data = lang.compile()

    # Without hints, keys come back as integer fingerprints
    Language.decompile(data).tokens      # {0x........: "Hello there."}

    # With hints, known names are recovered
    Language.decompile(data, [hints_from_strings(["npc.hello"])])
"""

from .container import (
    BLOCK_SIZE,
    MAGIC,
    VERSION,
    ContainerHeader,
    DirectoryEntry,
    decode_str16,
    encode_str16,
    read_container,
)
from .errors import (
    BlockOverflowError,
    ConstructionError,
    FormatError,
    ScriptTreeError,
    TruncatedContainerError,
    UnhashableKeyError,
    UnsupportedVersionError,
    VCCDError,
)
from .hashing import fingerprint, fingerprint_exact
from .hints import HintChain, hints_from_script_tree, hints_from_strings
from .language import Language
from .script_tree import MappingSection, ScriptPair, ScriptSection

__version__ = "0.1.0"
__all__ = [
    # Language
    "Language",
    # Hashing
    "fingerprint",
    "fingerprint_exact",
    # Hints
    "HintChain",
    "hints_from_script_tree",
    "hints_from_strings",
    # Caption script adapter
    "ScriptSection",
    "ScriptPair",
    "MappingSection",
    # Container layout
    "MAGIC",
    "VERSION",
    "BLOCK_SIZE",
    "ContainerHeader",
    "DirectoryEntry",
    "read_container",
    "encode_str16",
    "decode_str16",
    # Errors
    "VCCDError",
    "ConstructionError",
    "UnhashableKeyError",
    "FormatError",
    "UnsupportedVersionError",
    "TruncatedContainerError",
    "BlockOverflowError",
    "ScriptTreeError",
]
