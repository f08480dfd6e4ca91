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

r"""Intel HEX to binary image conversion."""

import logging
import re
from typing import Iterator
from typing import Optional

from bytesparse import Memory

from .base import PADDING_BYTE
from .base import AnyBytes
from .base import AnyText
from .base import MalformedLine
from .base import NoDataRecords
from .records import IhexRecord
from .records import IhexTag
from .records import decode_line

_logger = logging.getLogger(__name__)

LINE_SPLIT_REGEX = re.compile(r'\r?\n')


class BinaryImage:
    r"""Contiguous memory image.

    Attributes:
        min_address (int):
            Address of the first byte.

        data (bytes):
            Image content; addresses never written hold the padding byte.

    Examples:
        >>> from hexbin.parser import BinaryImage
        >>> image = BinaryImage(0x100, b'abc')
        >>> image.min_address, image.max_address, image.size
        (256, 258, 3)
    """

    def __init__(self, min_address: int, data: AnyBytes):

        self.min_address: int = min_address.__index__()
        self.data: bytes = bytes(data)

    def __bytes__(self) -> bytes:

        return self.data

    def __eq__(self, other: object) -> bool:

        if not isinstance(other, BinaryImage):
            return NotImplemented
        return self.min_address == other.min_address and self.data == other.data

    def __len__(self) -> int:

        return len(self.data)

    def __repr__(self) -> str:

        return (f'<{self.__class__.__name__} '
                f'min_address:=0x{self.min_address:08X} '
                f'max_address:=0x{self.max_address:08X} size:={self.size}>')

    @classmethod
    def from_memory(
        cls,
        memory: Memory,
        fill: int = PADDING_BYTE,
        start: Optional[int] = None,
        endex: Optional[int] = None,
    ) -> 'BinaryImage':
        r"""Reconciles a sparse memory into a contiguous image.

        The image spans from `start` to `endex`, by default from the first to
        the last written address; any hole is flooded with `fill`.

        Args:
            memory (:class:`bytesparse.Memory`):
                Sparse memory, with at least one byte written.

            fill (int):
                Padding byte value.

            start (int):
                Inclusive start address; ``None`` means :attr:`memory.start`.

            endex (int):
                Exclusive end address; ``None`` means :attr:`memory.endex`.

        Returns:
            :class:`BinaryImage`: Contiguous image.

        Examples:
            >>> from bytesparse import Memory
            >>> from hexbin.parser import BinaryImage
            >>> memory = Memory.from_blocks([[5, b'ab'], [9, b'yz']])
            >>> BinaryImage.from_memory(memory).data
            b'ab\xff\xffyz'
        """

        if start is None:
            start = memory.start
        if endex is None:
            endex = memory.endex
        flooded = memory.extract(start=start, endex=endex, pattern=fill)
        return cls(start, flooded.to_bytes())

    @property
    def max_address(self) -> int:
        r"""int: Address of the last byte (inclusive)."""

        return self.min_address + len(self.data) - 1

    @property
    def size(self) -> int:
        r"""int: Image size, in bytes."""

        return len(self.data)


def parse_records(text: AnyText) -> Iterator[IhexRecord]:
    r"""Parses the records of an Intel HEX text.

    Lines which are not records are skipped.
    Parsing stops right after the first End Of File record; any following
    lines are never decoded.

    Args:
        text (str):
            Intel HEX text; bytes are decoded as ASCII.

    Yields:
        :class:`IhexRecord`: Parsed records, in file order.

    Raises:
        :class:`MalformedLine`: Undecodable record line.

        :class:`ChecksumMismatch`: Wrong checksum.

    Examples:
        >>> from hexbin.parser import parse_records
        >>> text = ':0100000041BE\n:00000001FF\n:garbage\n'
        >>> [record.tag for record in parse_records(text)]
        [<IhexTag.DATA: 0>, <IhexTag.END_OF_FILE: 1>]
    """

    if not isinstance(text, str):
        text = bytes(text).decode('ascii', errors='replace')

    for row, line in enumerate(LINE_SPLIT_REGEX.split(text)):
        record = decode_line(line, row=row)
        if record is None:
            continue

        yield record

        if record.tag == IhexTag.END_OF_FILE:
            _logger.debug('end of file at line %d', row + 1)
            break


class AddressSpace:
    r"""Address space built while loading Intel HEX records.

    Attributes:
        memory (:class:`bytesparse.Memory`):
            Sparse memory holding the data record bytes.

        extension (int):
            Current Extended Linear Address, the upper 16 bits of the
            absolute address of the following data records.

        min_address (int):
            Lowest absolute address of any data record, or ``None``.

        max_address (int):
            Highest absolute address covered by any data record, or ``None``.
            A zero-length data record at `a` covers up to ``a - 1``.
    """

    def __init__(self):

        self.memory: Memory = Memory()
        self.extension: int = 0
        self.min_address: Optional[int] = None
        self.max_address: Optional[int] = None

    def apply(self, record: IhexRecord) -> None:
        r"""Applies a record to the address space.

        Args:
            record (:class:`IhexRecord`):
                Record to apply; non-data records other than Extended Linear
                Address are ignored.

        Raises:
            :class:`MalformedLine`: Extended Linear Address payload not
                2 bytes long.
        """

        tag = record.tag

        if tag == IhexTag.DATA:
            address = (self.extension << 16) | record.address
            data = record.data
            if data:
                self.memory.write(address, data)

            last = address + len(data) - 1
            if self.min_address is None:
                self.min_address = address
                self.max_address = last
            else:
                self.min_address = min(self.min_address, address)
                self.max_address = max(self.max_address, last)

        elif tag == IhexTag.EXTENDED_LINEAR_ADDRESS:
            if len(record.data) != 2:
                raise MalformedLine(record.source, 'extension data size overflow')
            self.extension = record.data_to_int()
            _logger.debug('extended linear address 0x%04X', self.extension)

        elif tag != IhexTag.END_OF_FILE:
            _logger.debug('ignoring record type 0x%02X at line %d',
                          tag, record.coords[0] + 1)

    def to_image(self, fill: int = PADDING_BYTE) -> BinaryImage:
        r"""Reconciles the address space into a contiguous image.

        Args:
            fill (int):
                Padding byte value.

        Returns:
            :class:`BinaryImage`: Image spanning from :attr:`min_address` to
            :attr:`max_address`.

        Raises:
            :class:`NoDataRecords`: No data bytes were written.
        """

        if not self.memory:
            raise NoDataRecords()

        return BinaryImage.from_memory(self.memory, fill=fill,
                                       start=self.min_address,
                                       endex=(self.max_address + 1))


def load_address_space(text: AnyText) -> AddressSpace:
    r"""Loads Intel HEX records into an address space.

    Data records are written at their absolute address, made of the last
    Extended Linear Address as the upper 16 bits and the record address as
    the lower 16 bits.
    Later records overwrite earlier ones at the same addresses.

    Segment and start address records are ignored, as well as unknown
    record types.

    Args:
        text (str):
            Intel HEX text.

    Returns:
        :class:`AddressSpace`: Loaded address space, possibly empty.

    Raises:
        :class:`MalformedLine`: Undecodable record line, or Extended Linear
            Address payload not 2 bytes long.

        :class:`ChecksumMismatch`: Wrong checksum.
    """

    space = AddressSpace()
    for record in parse_records(text):
        space.apply(record)
    return space


def load_memory(text: AnyText) -> Memory:
    r"""Loads Intel HEX data records into a sparse memory.

    See :func:`load_address_space` for the loading rules.

    Args:
        text (str):
            Intel HEX text.

    Returns:
        :class:`bytesparse.Memory`: Sparse memory, possibly empty.
    """

    return load_address_space(text).memory


def hex_to_binary(
    text: AnyText,
    fill: int = PADDING_BYTE,
) -> BinaryImage:
    r"""Converts Intel HEX text into a contiguous binary image.

    Args:
        text (str):
            Intel HEX text; bytes are decoded as ASCII.

        fill (int):
            Byte value for the addresses not written by any data record.

    Returns:
        :class:`BinaryImage`: Image spanning from the lowest to the highest
        data record address.

    Raises:
        :class:`MalformedLine`: Undecodable record line.

        :class:`ChecksumMismatch`: Wrong checksum.

        :class:`NoDataRecords`: No data bytes found.

    Examples:
        >>> from hexbin.parser import hex_to_binary
        >>> text = ':0100000041BE\n:0100100042AD\n:00000001FF\n'
        >>> image = hex_to_binary(text)
        >>> image.size, image.data[:1], image.data[-1:]
        (17, b'A', b'B')
    """

    image = load_address_space(text).to_image(fill=fill)
    _logger.debug('image 0x%08X..0x%08X, %d bytes',
                  image.min_address, image.max_address, image.size)
    return image
