# Copyright (c) 2013-2025, Andrea Zoppi
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

r"""Intel HEX records.

Encoding and decoding of single Intel HEX record lines.

See Also:
    `<https://en.wikipedia.org/wiki/Intel_HEX>`_
"""

import enum
import sys
from typing import IO
from typing import Mapping
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import Type
from typing import Union

from .base import AnyBytes
from .base import AnyText
from .base import ChecksumMismatch
from .base import EllipsisType
from .base import MalformedLine
from .base import colorize_tokens
from .utils import hexlify
from .utils import unhexlify

LINE_MIN_LENGTH: int = 11
r"""Shortest line worth decoding, start marker included."""


class IhexTag(enum.IntEnum):
    r"""Intel HEX tag."""

    DATA = 0
    r"""Binary data."""

    END_OF_FILE = 1
    r"""End Of File."""

    EXTENDED_SEGMENT_ADDRESS = 2
    r"""Extended Segment Address."""

    START_SEGMENT_ADDRESS = 3
    r"""Start Segment Address."""

    EXTENDED_LINEAR_ADDRESS = 4
    r"""Extended Linear Address."""

    START_LINEAR_ADDRESS = 5
    r"""Start Linear Address."""

    def is_eof(self) -> bool:
        r"""Tells whether this is an End Of File record tag.

        Returns:
            bool: This is an End Of File record tag.

        Examples:
            >>> from hexbin.records import IhexTag
            >>> IhexTag.END_OF_FILE.is_eof()
            True
            >>> IhexTag.DATA.is_eof()
            False
        """

        return self == self.END_OF_FILE

    def is_extension(self) -> bool:
        r"""Tells whether this is an Extended Address record tag.

        Returns:
            bool: This is an Extended Address record tag.

        Examples:
            >>> from hexbin.records import IhexTag
            >>> IhexTag.EXTENDED_LINEAR_ADDRESS.is_extension()
            True
            >>> IhexTag.EXTENDED_SEGMENT_ADDRESS.is_extension()
            True
            >>> IhexTag.DATA.is_extension()
            False
        """

        return ((self == self.EXTENDED_SEGMENT_ADDRESS) or
                (self == self.EXTENDED_LINEAR_ADDRESS))

    def is_start(self) -> bool:
        r"""Tells whether this is a Start Address record tag.

        Returns:
            bool: This is a Start Address record tag.

        Examples:
            >>> from hexbin.records import IhexTag
            >>> IhexTag.START_LINEAR_ADDRESS.is_start()
            True
            >>> IhexTag.START_SEGMENT_ADDRESS.is_start()
            True
            >>> IhexTag.DATA.is_start()
            False
        """

        return ((self == self.START_SEGMENT_ADDRESS) or
                (self == self.START_LINEAR_ADDRESS))


AnyTag = Union[IhexTag, int]


def coerce_tag(value: int) -> AnyTag:
    r"""Converts a record type byte into a tag.

    Known record types become :class:`IhexTag` members, unknown ones are
    kept as plain integers.

    Examples:
        >>> coerce_tag(4)
        <IhexTag.EXTENDED_LINEAR_ADDRESS: 4>
        >>> coerce_tag(0x42)
        66
    """

    try:
        return IhexTag(value)
    except ValueError:
        return value


def compute_checksum(bytestr: Union[AnyBytes, Sequence[int]]) -> int:
    r"""Computes the Intel HEX checksum.

    It is the two's complement of the least significant byte of the sum of
    all the record bytes before the checksum itself.

    Args:
        bytestr (bytes):
            Record bytes, checksum excluded.

    Returns:
        int: Checksum byte.

    Examples:
        >>> compute_checksum(bytes.fromhex('0300300002337A'))
        30
        >>> compute_checksum(b'')
        0
    """

    return (0x100 - (sum(bytestr) & 0xFF)) & 0xFF


class IhexRecord:
    r"""Intel HEX record object.

    Attributes:
        tag (:class:`IhexTag` or int):
            Record type; unknown types are kept as plain integers.

        address (int):
            16-bit address field.

        data (bytes):
            Record payload.

        count (int):
            Byte count field.

        checksum (int):
            Checksum field.

        coords (int couple):
            Line index and character offset of a parsed record; debug only.

        source (str):
            Parsed line, verbatim, without line terminator; debug only.

    Args:
        tag (:class:`IhexTag` or int):
            See :attr:`tag` attribute.

        address (int):
            See :attr:`address` attribute.

        data (bytes):
            See :attr:`data` attribute.

        count (int):
            See :attr:`count` attribute.
            ``Ellipsis`` initializes :attr:`count` via :meth:`compute_count`.

        checksum (int):
            See :attr:`checksum` attribute.
            ``Ellipsis`` initializes :attr:`checksum` via
            :meth:`compute_checksum`.

        validate (bool):
            If true, :meth:`validate` is called upon initialization.
    """

    Tag: Type[IhexTag] = IhexTag

    EQUALITY_KEYS: Sequence[str] = [
        'address',
        'checksum',
        'count',
        'data',
        'tag',
    ]

    def __init__(
        self,
        tag: AnyTag,
        address: int = 0,
        data: AnyBytes = b'',
        count: Union[int, EllipsisType] = Ellipsis,
        checksum: Union[int, EllipsisType] = Ellipsis,
        coords: Tuple[int, int] = (-1, -1),
        source: Optional[str] = None,
        validate: bool = True,
    ):

        self.tag: AnyTag = coerce_tag(tag.__index__())
        self.address: int = address.__index__()
        self.data: bytes = bytes(data)
        self.coords: Tuple[int, int] = coords
        self.source: Optional[str] = source

        if count is Ellipsis:
            count = self.compute_count()
        self.count: int = count.__index__()

        if checksum is Ellipsis:
            checksum = self.compute_checksum()
        self.checksum: int = checksum.__index__()

        if validate:
            self.validate()

    def __bytes__(self) -> bytes:

        return bytes([self.count & 0xFF,
                      (self.address >> 8) & 0xFF,
                      self.address & 0xFF,
                      self.tag & 0xFF]) + self.data

    def __eq__(self, other: object) -> bool:

        for key in self.EQUALITY_KEYS:
            if not hasattr(other, key):
                return False
            if getattr(self, key) != getattr(other, key):
                return False
        return True

    def __ne__(self, other: object) -> bool:

        return not self == other

    def __repr__(self) -> str:

        return (f'<{self.__class__.__name__} tag:={self.tag!r} '
                f'address:=0x{self.address:04X} count:={self.count} '
                f'data:={self.data!r} checksum:=0x{self.checksum:02X}>')

    def __str__(self) -> str:

        return self.to_line()

    def compute_checksum(self) -> int:

        return compute_checksum(bytes(self))

    def compute_count(self) -> int:

        return len(self.data)

    @classmethod
    def create_data(
        cls,
        address: int,
        data: AnyBytes,
    ) -> 'IhexRecord':
        r"""Creates a Data record.

        Args:
            address (int):
                Lower 16 bits of the data address.

            data (bytes):
                Record payload, up to 255 bytes.

        Returns:
            :class:`IhexRecord`: Data record object.

        Examples:
            >>> from hexbin.records import IhexRecord
            >>> str(IhexRecord.create_data(0x0030, b'\x02\x33\x7A'))
            ':0300300002337A1E\n'
        """

        address = address.__index__()
        if not 0 <= address <= 0xFFFF:
            raise ValueError('address overflow')

        if len(data) > 0xFF:
            raise ValueError('data size overflow')

        return cls(cls.Tag.DATA, address=address, data=data)

    @classmethod
    def create_end_of_file(cls) -> 'IhexRecord':
        r"""Creates an End Of File record.

        Returns:
            :class:`IhexRecord`: End Of File record object.

        Examples:
            >>> from hexbin.records import IhexRecord
            >>> str(IhexRecord.create_end_of_file())
            ':00000001FF\n'
        """

        return cls(cls.Tag.END_OF_FILE)

    @classmethod
    def create_extended_linear_address(cls, extension: int) -> 'IhexRecord':
        r"""Creates an Extended Linear Address record.

        Args:
            extension (int):
                Upper 16 bits of the following data addresses.

        Returns:
            :class:`IhexRecord`: Extended Linear Address record object.

        Examples:
            >>> from hexbin.records import IhexRecord
            >>> str(IhexRecord.create_extended_linear_address(0x1234))
            ':020000041234B4\n'
        """

        extension = extension.__index__()
        if not 0 <= extension <= 0xFFFF:
            raise ValueError('extension overflow')

        data = extension.to_bytes(2, byteorder='big')
        return cls(cls.Tag.EXTENDED_LINEAR_ADDRESS, data=data)

    def data_to_int(self) -> int:
        r"""Interprets the payload as a big-endian unsigned integer."""

        return int.from_bytes(self.data, byteorder='big')

    @classmethod
    def parse(
        cls,
        line: AnyText,
        row: int = -1,
    ) -> Optional['IhexRecord']:
        r"""Parses a record line.

        Lines which are empty, too short, or without the ``:`` start marker
        are not records: ``None`` is returned for them.

        Args:
            line (str):
                Line to parse; trailing whitespace and line terminators are
                ignored.

            row (int):
                Line index, stored into :attr:`coords`.

        Returns:
            :class:`IhexRecord`: Parsed record, or ``None`` if skipped.

        Raises:
            :class:`MalformedLine`: Invalid hexadecimal digits, or byte count
                not matching the payload.

            :class:`ChecksumMismatch`: Wrong checksum.

        Examples:
            >>> from hexbin.records import IhexRecord
            >>> record = IhexRecord.parse(':0300300002337A1E')
            >>> record.address, record.data, record.checksum
            (48, b'\x023z', 30)
            >>> IhexRecord.parse('; comment') is None
            True
        """

        if not isinstance(line, str):
            line = bytes(line).decode('ascii', errors='replace')

        source = line.rstrip()
        if len(source) < LINE_MIN_LENGTH or not source.startswith(':'):
            return None

        try:
            bytestr = unhexlify(source[1:])
        except ValueError:
            raise MalformedLine(source, 'invalid hexadecimal digits') from None

        checksum = bytestr[-1]
        expected = compute_checksum(bytestr[:-1])
        if checksum != expected:
            raise ChecksumMismatch(source, expected=expected, actual=checksum)

        count = bytestr[0]
        data = bytestr[4:-1]
        if count != len(data):
            raise MalformedLine(source, 'byte count mismatch')

        record = cls(bytestr[3],
                     address=((bytestr[1] << 8) | bytestr[2]),
                     data=data,
                     count=count,
                     checksum=checksum,
                     coords=(row, 0),
                     source=source,
                     validate=False)
        return record

    def print(
        self,
        stream: Optional[IO] = None,
        color: bool = False,
        end: str = '\n',
    ) -> 'IhexRecord':
        r"""Prints a record.

        The record is converted into tokens (eventually colorized) then joined
        and written onto a text stream (*stdout* by default).

        Args:
            stream (text IO):
                The stream where the record tokens are printed.
                If ``None``, *stdout* is selected.

            color (bool):
                Tokens are colorized before printing.

            end (str):
                Line terminator.

        Returns:
            :class:`IhexRecord`: *self*.
        """

        if stream is None:
            stream = sys.stdout
        tokens = self.to_tokens(end=end)
        if color:
            tokens = colorize_tokens(tokens)
        stream.writelines(tokens.values())
        return self

    def to_line(self, end: str = '\n') -> str:
        r"""Serializes the record into a text line.

        Args:
            end (str):
                Line terminator.

        Returns:
            str: Record line, uppercase hexadecimal.
        """

        return ''.join(self.to_tokens(end=end).values())

    def to_tokens(self, end: str = '\n') -> Mapping[str, str]:

        return {
            'begin': ':',
            'count': f'{self.count & 0xFF:02X}',
            'address': f'{self.address & 0xFFFF:04X}',
            'tag': f'{self.tag & 0xFF:02X}',
            'data': hexlify(self.data),
            'checksum': f'{self.checksum & 0xFF:02X}',
            'end': end,
        }

    def validate(
        self,
        checksum: bool = True,
        count: bool = True,
    ) -> 'IhexRecord':
        r"""Validates consistency of the record fields.

        Args:
            checksum (bool):
                Checks the checksum against :meth:`compute_checksum`.

            count (bool):
                Checks the count against :meth:`compute_count`.

        Returns:
            :class:`IhexRecord`: *self*.

        Raises:
            ValueError: Invalid field value.
        """

        if not 0 <= self.address <= 0xFFFF:
            raise ValueError('address overflow')

        if not 0 <= self.tag <= 0xFF:
            raise ValueError('tag overflow')

        if not 0 <= self.count <= 0xFF:
            raise ValueError('count overflow')

        if not 0 <= self.checksum <= 0xFF:
            raise ValueError('checksum overflow')

        data_size = len(self.data)
        if data_size > 0xFF:
            raise ValueError('data size overflow')

        if count and self.count != self.compute_count():
            raise ValueError('wrong count')

        if checksum and self.checksum != self.compute_checksum():
            raise ValueError('wrong checksum')

        tag = self.tag
        if isinstance(tag, IhexTag):
            if tag.is_extension():
                if data_size != 2:
                    raise ValueError('extension data size overflow')

            elif tag.is_start():
                if data_size != 4:
                    raise ValueError('start address data size overflow')

            elif tag.is_eof():
                if data_size:
                    raise ValueError('unexpected data')

        return self


def decode_line(line: AnyText, row: int = -1) -> Optional[IhexRecord]:
    r"""Decodes one Intel HEX line.

    Args:
        line (str):
            Line of text.

        row (int):
            Line index, for diagnostics.

    Returns:
        :class:`IhexRecord`: Decoded record, or ``None`` if the line is not
        a record (blank, comment, too short).

    Raises:
        :class:`MalformedLine`: Undecodable record line.

        :class:`ChecksumMismatch`: Wrong checksum.

    Examples:
        >>> from hexbin.records import decode_line
        >>> record = decode_line(':0300300002337A1E\n')
        >>> record.count, hex(record.address), record.tag, list(record.data)
        (3, '0x30', <IhexTag.DATA: 0>, [2, 51, 122])
    """

    return IhexRecord.parse(line, row=row)


def encode_line(
    address: int,
    record_type: int,
    data: Union[AnyBytes, Sequence[int]] = b'',
) -> str:
    r"""Encodes one Intel HEX line.

    Args:
        address (int):
            16-bit address field.

        record_type (int):
            Record type byte.

        data (bytes):
            Payload, up to 255 bytes.

    Any record type is accepted with any payload; the payload size rules of
    the specific record types are enforced by the ``IhexRecord.create_*``
    factories only.

    Returns:
        str: Checksummed record line, with ``\n`` terminator.

    Raises:
        ValueError: Address, record type or payload size out of range.

    Examples:
        >>> from hexbin.records import encode_line
        >>> encode_line(0, 0x04, [0x08, 0x00])
        ':020000040800F2\n'
        >>> encode_line(0, 0x01)
        ':00000001FF\n'
        >>> encode_line(0, 0x03)
        ':00000003FD\n'
    """

    data = bytes(data)

    if not 0 <= address <= 0xFFFF:
        raise ValueError('address overflow')

    if not 0 <= record_type <= 0xFF:
        raise ValueError('tag overflow')

    if len(data) > 0xFF:
        raise ValueError('data size overflow')

    record = IhexRecord(record_type, address=address, data=data, validate=False)
    return record.to_line()
