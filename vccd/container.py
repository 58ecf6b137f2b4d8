"""
VCCD Container Layout
=====================

Binary layout of compiled closed-caption files (closecaption_<language>.dat).

File Layout:
    Header:    24-byte fixed core + directory, zero-padded to a multiple of 512
    Blocks:    block_count x 8192-byte blocks of UTF-16LE strings

Header Structure (little-endian):
-------------------------------
| Offset | Size | Field           | Notes                                 |
|--------|------|-----------------|---------------------------------------|
| 0x00   | 4    | magic           | ASCII "VCCD"                          |
| 0x04   | 4    | version         | Always 1                              |
| 0x08   | 4    | block_count     | Number of data blocks                 |
| 0x0C   | 4    | block_size      | 8192                                  |
| 0x10   | 4    | directory_count | One entry per token                   |
| 0x14   | 4    | header_length   | Offset of block 0, multiple of 512    |
| 0x18   | 12*n | directory       | DirectoryEntry records                |

Directory Entry (12 bytes):
--------------------------
| Offset | Size | Field       |
|--------|------|-------------|
| 0x00   | 4    | fingerprint |
| 0x04   | 4    | block_index |
| 0x08   | 2    | offset      |
| 0x0A   | 2    | length      |

A string's absolute position is
    header_length + block_index * block_size + offset
and its bytes never cross into the next block.
"""

import logging
import struct
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .errors import (
    BlockOverflowError,
    FormatError,
    TruncatedContainerError,
    UnsupportedVersionError,
)
from .hashing import format_fingerprint

logger = logging.getLogger(__name__)


# =============================================================================
# Format Constants
# =============================================================================

MAGIC = b'VCCD'
VERSION = 1

HEADER_SIZE = 24                # Fixed header core, before the directory
DIRECTORY_ENTRY_SIZE = 4 + 4 + 2 + 2
BLOCK_SIZE = 8192
HEADER_ALIGNMENT = 512

HEADER_FORMAT = '<4s5I'
DIRECTORY_ENTRY_FORMAT = '<IIHH'
BLOCK_COUNT_OFFSET = 8          # Patched once all blocks are allocated


# =============================================================================
# Records
# =============================================================================

@dataclass(frozen=True)
class ContainerHeader:
    """Fixed 24-byte header of a VCCD container."""
    magic: bytes
    version: int
    block_count: int
    block_size: int
    directory_count: int
    header_length: int

    @property
    def total_length(self) -> int:
        return self.header_length + self.block_size * self.block_count


@dataclass(frozen=True)
class DirectoryEntry:
    """Location of one token's string inside the block area."""
    fingerprint: int
    block_index: int
    offset: int
    length: int

    def file_offset(self, header_length: int, block_size: int) -> int:
        """Absolute byte offset of the string within the container."""
        return self.block_index * block_size + header_length + self.offset

    def pack(self) -> bytes:
        return struct.pack(DIRECTORY_ENTRY_FORMAT, self.fingerprint, self.block_index,
                           self.offset, self.length)

    def __repr__(self):
        return (f"DirectoryEntry(fingerprint={format_fingerprint(self.fingerprint)}, "
                f"block={self.block_index}, offset=0x{self.offset:04X}, length={self.length})")


def header_length_for(count: int) -> int:
    """Header length for a directory of count entries, rounded up to 512."""
    raw = HEADER_SIZE + count * DIRECTORY_ENTRY_SIZE
    return -(-raw // HEADER_ALIGNMENT) * HEADER_ALIGNMENT


# =============================================================================
# UTF-16 Strings
# =============================================================================

def encode_str16(text: str) -> bytes:
    """
    Encode a caption string as UTF-16LE code units plus a null terminator.

    Lone surrogates are passed through as code units.
    """
    return text.encode('utf-16-le', 'surrogatepass') + b'\x00\x00'


def decode_str16(data: bytes) -> str:
    """
    Decode UTF-16LE code units, stopping at the first null code unit.

    A trailing odd byte is ignored. With no null present the whole buffer is
    decoded.
    """
    usable = len(data) - (len(data) % 2)
    end = usable
    for i in range(0, usable, 2):
        if data[i] == 0 and data[i + 1] == 0:
            end = i
            break
    return bytes(data[:end]).decode('utf-16-le', 'surrogatepass')


# =============================================================================
# Block Allocation
# =============================================================================

def needs_new_block(cursor: Optional[int], length: int, block_size: int = BLOCK_SIZE) -> bool:
    """
    Decide whether a string of length bytes must start a new block.

    cursor is the write position in the open block, or None when no block
    has been opened yet. A string that would reach the end of the block
    exactly also moves on, matching the game's caption compiler.
    """
    return cursor is None or cursor + length >= block_size


class BlockAllocator:
    """
    Packs encoded strings into fixed-size blocks.

    Tracks the open block and its write cursor. place() returns where a
    string landed; blocks() returns the zero-padded block area.
    """

    def __init__(self, block_size: int = BLOCK_SIZE):
        self.block_size = block_size
        self._blocks: List[bytearray] = []
        self.cursor: Optional[int] = None

    @property
    def block_count(self) -> int:
        return len(self._blocks)

    def place(self, data: bytes) -> Tuple[int, int]:
        """
        Append data to the open block, opening a new one if it does not fit.

        Returns:
            Tuple of (block_index, offset)

        Raises:
            BlockOverflowError: if data can never fit, even in an empty block
        """
        length = len(data)
        if length >= self.block_size:
            raise BlockOverflowError(
                f"Encoded string is {length} bytes; must be under the "
                f"{self.block_size}-byte block size"
            )

        if needs_new_block(self.cursor, length, self.block_size):
            self._blocks.append(bytearray(self.block_size))
            self.cursor = 0
            logger.debug("Opened block %d", len(self._blocks) - 1)

        block_index = len(self._blocks) - 1
        offset = self.cursor
        self._blocks[block_index][offset:offset + length] = data
        self.cursor += length
        return block_index, offset

    def blocks(self) -> bytes:
        return b''.join(bytes(block) for block in self._blocks)


# =============================================================================
# Build / Read
# =============================================================================

def build_container(entries: Iterable[Tuple[int, str]]) -> bytes:
    """
    Lay out a complete VCCD container.

    Args:
        entries: (fingerprint, text) pairs in directory order

    Returns:
        Container bytes: padded header followed by all blocks

    Raises:
        BlockOverflowError: if any string is too long for a block
    """
    entries = list(entries)
    header_length = header_length_for(len(entries))
    header = bytearray(header_length)

    struct.pack_into(HEADER_FORMAT, header, 0,
        MAGIC,               # Magic
        VERSION,             # Version
        0,                   # Block count (patched below)
        BLOCK_SIZE,          # Block size
        len(entries),        # Directory count
        header_length,       # Header length / offset of block 0
    )

    allocator = BlockAllocator(BLOCK_SIZE)
    pos = HEADER_SIZE
    for value, text in entries:
        encoded = encode_str16(text)
        block_index, offset = allocator.place(encoded)
        entry = DirectoryEntry(value, block_index, offset, len(encoded))
        header[pos:pos + DIRECTORY_ENTRY_SIZE] = entry.pack()
        pos += DIRECTORY_ENTRY_SIZE

    struct.pack_into('<I', header, BLOCK_COUNT_OFFSET, allocator.block_count)

    logger.debug("Built container: %d entries, header %d bytes, %d blocks",
                 len(entries), header_length, allocator.block_count)
    return bytes(header) + allocator.blocks()


def read_header(data: bytes) -> ContainerHeader:
    """
    Parse and validate the fixed header.

    Raises:
        FormatError: if the magic does not match
        UnsupportedVersionError: if the version is not 1
        TruncatedContainerError: if data is shorter than the fixed header
    """
    if len(data) < HEADER_SIZE:
        raise TruncatedContainerError(
            f"Container is {len(data)} bytes; need at least {HEADER_SIZE} for the header"
        )

    header = ContainerHeader(*struct.unpack_from(HEADER_FORMAT, data, 0))
    if header.magic != MAGIC:
        raise FormatError(f"Did not match VCCD magic (got {header.magic!r})")
    if header.version != VERSION:
        raise UnsupportedVersionError(f"Did not match version {VERSION} (got {header.version})")
    return header


def read_container(data: bytes) -> Tuple[ContainerHeader, List[DirectoryEntry]]:
    """
    Parse the header and directory of a container without decoding strings.

    Args:
        data: Complete container bytes

    Returns:
        Tuple of (ContainerHeader, list of DirectoryEntry in file order)
    """
    header = read_header(data)

    directory_end = HEADER_SIZE + header.directory_count * DIRECTORY_ENTRY_SIZE
    if directory_end > len(data):
        raise TruncatedContainerError(
            f"Directory of {header.directory_count} entries ends at {directory_end}, "
            f"past end of {len(data)}-byte container"
        )

    entries = [
        DirectoryEntry(*struct.unpack_from(DIRECTORY_ENTRY_FORMAT, data, pos))
        for pos in range(HEADER_SIZE, directory_end, DIRECTORY_ENTRY_SIZE)
    ]
    logger.debug("Read container: %d entries, %d blocks of %d bytes, header %d bytes",
                 header.directory_count, header.block_count, header.block_size,
                 header.header_length)
    return header, entries


def read_string(data: bytes, header: ContainerHeader, entry: DirectoryEntry) -> str:
    """Read and decode the string a directory entry points at."""
    start = entry.file_offset(header.header_length, header.block_size)
    end = start + entry.length
    if end > len(data):
        raise TruncatedContainerError(
            f"String for {format_fingerprint(entry.fingerprint)} spans "
            f"0x{start:X}-0x{end:X}, past end of {len(data)}-byte container"
        )
    return decode_str16(data[start:end])
