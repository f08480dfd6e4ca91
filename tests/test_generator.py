import pytest

from hexbin.base import InvalidParameters
from hexbin.generator import SEGMENT_NONE
from hexbin.generator import GenerationConfig
from hexbin.generator import binary_to_hex
from hexbin.generator import generate_records
from hexbin.parser import hex_to_binary
from hexbin.records import IhexTag
from hexbin.records import compute_checksum
from hexbin.records import decode_line


def _tags(text):
    return [decode_line(line).tag for line in text.splitlines()]


class TestGenerationConfig:

    def test___init__(self):
        config = GenerationConfig()
        assert config.base_address == 0
        assert config.bytes_per_line == 16

        config = GenerationConfig(0xFFFFFFFF, 255)
        assert config.base_address == 0xFFFFFFFF
        assert config.bytes_per_line == 255

    def test___init___raises_base_address(self):
        for base_address in (-1, 0x100000000):
            with pytest.raises(InvalidParameters, match='base address out of range'):
                GenerationConfig(base_address, 16)

        for base_address in ('0x1000', 1.5, None, True):
            with pytest.raises(InvalidParameters, match='base address must be an integer'):
                GenerationConfig(base_address, 16)

    def test___init___raises_bytes_per_line(self):
        for bytes_per_line in (0, -16, 256):
            with pytest.raises(InvalidParameters, match='bytes per line out of range'):
                GenerationConfig(0, bytes_per_line)

        for bytes_per_line in ('16', 16.0, None, False):
            with pytest.raises(InvalidParameters, match='bytes per line must be an integer'):
                GenerationConfig(0, bytes_per_line)

    def test___eq__(self):
        assert GenerationConfig(1, 16) == GenerationConfig(1, 16)
        assert GenerationConfig(1, 16) != GenerationConfig(1, 32)
        assert GenerationConfig(1, 16) != GenerationConfig(2, 16)

    def test___repr__(self):
        text = repr(GenerationConfig(0x08000000, 32))
        assert text == '<GenerationConfig base_address:=0x08000000 bytes_per_line:=32>'

    def test_check_size(self):
        GenerationConfig(0xFFFFFFF0).check_size(0x10)
        with pytest.raises(InvalidParameters, match='32-bit address space'):
            GenerationConfig(0xFFFFFFF0).check_size(0x11)


def test_segment_none():
    assert not 0 <= SEGMENT_NONE <= 0xFFFF


def test_generate_records():
    config = GenerationConfig(0x08000000, 4)
    records = list(generate_records(b'abcdefghij', config))
    assert [record.tag for record in records] == [
        IhexTag.EXTENDED_LINEAR_ADDRESS,
        IhexTag.DATA,
        IhexTag.DATA,
        IhexTag.DATA,
        IhexTag.END_OF_FILE,
    ]
    assert records[0].data_to_int() == 0x0800
    assert [record.address for record in records[1:4]] == [0, 4, 8]
    assert [record.data for record in records[1:4]] == [b'abcd', b'efgh', b'ij']


def test_binary_to_hex_example():
    text = binary_to_hex(b'\x02\x33\x7A', 0x0030)
    assert text == (
        ':020000040000FA\n'
        ':0300300002337A1E\n'
        ':00000001FF\n'
    )


def test_binary_to_hex_empty():
    assert binary_to_hex(b'') == ':00000001FF\n'
    assert binary_to_hex(b'', 0x08000000, 32) == ':00000001FF\n'


def test_binary_to_hex_defaults():
    text = binary_to_hex(bytes(range(40)))
    lines = text.splitlines()
    assert len(lines) == 1 + 3 + 1
    assert lines[1].startswith(':10000000')
    assert lines[2].startswith(':10001000')
    assert lines[3].startswith(':08002000')


def test_binary_to_hex_bytearray():
    assert binary_to_hex(bytearray(b'abc')) == binary_to_hex(b'abc')
    assert binary_to_hex(memoryview(b'abc')) == binary_to_hex(b'abc')


def test_binary_to_hex_uppercase_lf():
    text = binary_to_hex(bytes(range(0xF0, 0x100)), 0xABCD)
    assert text == text.upper()
    assert '\r' not in text
    assert text.endswith('\n')


def test_binary_to_hex_checksums():
    text = binary_to_hex(bytes(range(256)) * 3, 0x1234, 32)
    for line in text.splitlines():
        bytestr = bytes.fromhex(line[1:])
        assert compute_checksum(bytestr[:-1]) == bytestr[-1]


def test_binary_to_hex_segment_crossing():
    # 0x0000FFF0 .. 0x0001000F, lines aligned to the 64 KiB boundary
    text = binary_to_hex(b'\xAA' * 0x20, 0xFFF0, 16)
    assert _tags(text) == [
        IhexTag.EXTENDED_LINEAR_ADDRESS,
        IhexTag.DATA,
        IhexTag.EXTENDED_LINEAR_ADDRESS,
        IhexTag.DATA,
        IhexTag.END_OF_FILE,
    ]
    lines = text.splitlines()
    assert lines[0] == ':020000040000FA'
    assert lines[2] == ':020000040001F9'
    assert lines[3].startswith(':10000000')


def test_binary_to_hex_segment_crossing_once():
    text = binary_to_hex(b'\x00' * 0x20000, 0x8000, 32)
    tags = _tags(text)
    assert tags.count(IhexTag.EXTENDED_LINEAR_ADDRESS) == 3
    assert tags.count(IhexTag.DATA) == 0x20000 // 32
    assert tags[-1] == IhexTag.END_OF_FILE


def test_binary_to_hex_segment_crossing_within_line():
    # a line straddling the boundary keeps the segment of its first byte
    text = binary_to_hex(b'\x55' * 0x18, 0xFFF8, 16)
    lines = text.splitlines()
    assert lines[0] == ':020000040000FA'
    assert lines[1].startswith(':10FFF800')
    assert lines[2] == ':020000040001F9'
    assert lines[3].startswith(':08000800')


def test_binary_to_hex_raises():
    with pytest.raises(InvalidParameters):
        binary_to_hex(b'abc', -1)
    with pytest.raises(InvalidParameters):
        binary_to_hex(b'abc', 0, 0)
    with pytest.raises(InvalidParameters):
        binary_to_hex(b'abc', 0, 256)
    with pytest.raises(InvalidParameters, match='32-bit address space'):
        binary_to_hex(b'abc', 0xFFFFFFFE)


def test_round_trip_zero_base():
    vector = [
        (b'\x00', 16),
        (bytes(range(256)), 16),
        (bytes(range(256)) * 300, 32),
        (b'\xFF\x00' * 17, 7),
        (b'x' * 255, 255),
    ]
    for data, bytes_per_line in vector:
        image = hex_to_binary(binary_to_hex(data, 0, bytes_per_line))
        assert image.min_address == 0
        assert image.data == data


def test_round_trip_with_base():
    vector = [
        (b'abc', 0x08000000, 16),
        (bytes(range(256)) * 300, 0x00026000, 32),
        (b'\x12\x34' * 100, 0xFFFF00, 16),
        (b'z', 0xFFFFFFFF, 16),
    ]
    for data, base_address, bytes_per_line in vector:
        image = hex_to_binary(binary_to_hex(data, base_address, bytes_per_line))
        assert image.min_address == base_address
        assert image.max_address == base_address + len(data) - 1
        assert image.data == data
