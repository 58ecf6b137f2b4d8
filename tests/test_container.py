import struct

import pytest

from vccd import (
    BLOCK_SIZE,
    BlockOverflowError,
    FormatError,
    TruncatedContainerError,
    UnsupportedVersionError,
    decode_str16,
    encode_str16,
    fingerprint,
    read_container,
)
from vccd.container import (
    BlockAllocator,
    DirectoryEntry,
    build_container,
    header_length_for,
    needs_new_block,
    read_header,
    read_string,
)


# =============================================================================
# Strings
# =============================================================================

def test_encode_str16_appends_null():
    assert encode_str16("Hi") == b"H\x00i\x00\x00\x00"
    assert encode_str16("") == b"\x00\x00"


def test_encode_str16_uses_code_units():
    # non-BMP character becomes a surrogate pair
    assert len(encode_str16("\U0001F600")) == 6


def test_decode_str16_stops_at_null():
    assert decode_str16(b"H\x00i\x00\x00\x00j\x00u\x00") == "Hi"


def test_decode_str16_without_null_uses_everything():
    assert decode_str16(b"H\x00i\x00") == "Hi"


def test_decode_str16_ignores_trailing_odd_byte():
    assert decode_str16(b"H\x00i") == "H"


def test_decode_str16_does_not_stop_on_zero_high_byte():
    # "Ā" is 00 01 little-endian: a zero byte but not a null code unit
    assert decode_str16("Āx".encode("utf-16-le")) == "Āx"


# =============================================================================
# Header
# =============================================================================

@pytest.mark.parametrize("count, expected", [
    (0, 512),
    (1, 512),
    (40, 512),      # 24 + 480 = 504
    (41, 1024),     # 24 + 492 = 516
    (1000, 12288),  # 24 + 12000 = 12024
])
def test_header_length_for(count, expected):
    assert header_length_for(count) == expected
    assert expected % 512 == 0
    assert expected >= 24 + 12 * count


def test_hello_world_layout():
    data = build_container([(fingerprint("hello"), "World")])

    assert data[:8] == bytes.fromhex("5643434401000000")
    assert struct.unpack_from("<5I", data, 4) == (1, 1, 8192, 1, 512)
    assert data[24:36] == struct.pack("<IIHH", 0x3610A686, 0, 0, 12)
    assert data[36:512] == bytes(476)
    assert data[512:524] == "World\x00".encode("utf-16-le")
    assert len(data) == 512 + 8192


def test_empty_container():
    data = build_container([])
    header, entries = read_container(data)
    assert len(data) == 512
    assert header.block_count == 0
    assert header.directory_count == 0
    assert entries == []


# =============================================================================
# Block allocation
# =============================================================================

def test_needs_new_block_predicate():
    assert needs_new_block(None, 2)
    assert not needs_new_block(0, 8190)
    assert needs_new_block(0, 8192)
    assert needs_new_block(6144, 2048)      # would end exactly at the boundary
    assert not needs_new_block(6138, 2046)
    assert needs_new_block(10, 10, block_size=20)


def test_allocator_places_strings_back_to_back():
    allocator = BlockAllocator()
    assert allocator.place(b"a\x00\x00\x00") == (0, 0)
    assert allocator.place(b"b\x00\x00\x00") == (0, 4)
    assert allocator.block_count == 1
    assert len(allocator.blocks()) == BLOCK_SIZE


def test_allocator_opens_block_instead_of_spanning():
    allocator = BlockAllocator(block_size=16)
    assert allocator.place(bytes(10)) == (0, 0)
    assert allocator.place(bytes(6)) == (1, 0)   # 10 + 6 reaches 16
    assert allocator.place(bytes(4)) == (1, 6)
    assert allocator.block_count == 2
    assert len(allocator.blocks()) == 32


def test_allocator_rejects_oversized_string():
    allocator = BlockAllocator()
    with pytest.raises(BlockOverflowError, match="8192 bytes"):
        allocator.place(bytes(8192))
    assert allocator.block_count == 0


def test_strings_never_span_blocks():
    # 1023 chars -> 2048 bytes; the fourth would end exactly at 8192
    texts = [chr(ord("a") + i) * 1023 for i in range(4)]
    data = build_container([(i, text) for i, text in enumerate(texts)])
    header, entries = read_container(data)

    assert header.block_count == 2
    assert [(e.block_index, e.offset) for e in entries] == [(0, 0), (0, 2048), (0, 4096), (1, 0)]
    for entry in entries:
        assert entry.offset + entry.length <= header.block_size


def test_strings_that_fit_share_a_block():
    texts = ["x" * 1022] * 4    # 4 x 2046 = 8184 bytes
    data = build_container([(i, text) for i, text in enumerate(texts)])
    header, entries = read_container(data)
    assert header.block_count == 1
    assert entries[-1].offset == 3 * 2046


def test_largest_string_fills_fresh_block():
    data = build_container([(1, "a"), (2, "y" * 4094)])   # 8190 bytes
    header, entries = read_container(data)
    assert header.block_count == 2
    assert entries[1] == DirectoryEntry(2, 1, 0, 8190)


def test_build_rejects_oversized_string():
    with pytest.raises(BlockOverflowError):
        build_container([(1, "z" * 4095)])    # 8192 bytes with terminator


# =============================================================================
# Reading
# =============================================================================

def test_read_container_directory(hello_container):
    header, entries = read_container(hello_container)

    assert header.magic == b"VCCD"
    assert header.version == 1
    assert header.total_length == len(hello_container)
    assert entries == [DirectoryEntry(fingerprint("hello"), 0, 0, 12)]
    assert entries[0].file_offset(header.header_length, header.block_size) == 512
    assert read_string(hello_container, header, entries[0]) == "World"


def test_read_header_rejects_bad_magic(hello_container):
    data = b"XCCD" + hello_container[4:]
    with pytest.raises(FormatError, match="magic"):
        read_header(data)


@pytest.mark.parametrize("version", [0, 2])
def test_read_header_rejects_other_versions(hello_container, version):
    data = hello_container[:4] + struct.pack("<I", version) + hello_container[8:]
    with pytest.raises(UnsupportedVersionError, match=str(version)):
        read_header(data)


def test_read_header_rejects_short_buffer(hello_container):
    with pytest.raises(TruncatedContainerError):
        read_header(hello_container[:20])


def test_read_container_rejects_truncated_directory():
    data = bytearray(build_container([]))
    struct.pack_into("<I", data, 16, 100)
    with pytest.raises(TruncatedContainerError, match="100 entries"):
        read_container(bytes(data))


def test_read_string_rejects_truncated_block(hello_container):
    data = hello_container[:520]
    header, entries = read_container(data)
    with pytest.raises(TruncatedContainerError):
        read_string(data, header, entries[0])


def test_format_errors_are_value_errors(hello_container):
    with pytest.raises(ValueError):
        read_header(b"NOPE" + hello_container[4:])
