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

r"""Binary image to Intel HEX conversion."""

import logging
import operator
from typing import Any
from typing import Iterator

from .base import ADDRESS_MAX
from .base import AnyBytes
from .base import InvalidParameters
from .records import IhexRecord
from .utils import chop

_logger = logging.getLogger(__name__)

SEGMENT_NONE: int = -1
r"""Segment sentinel, forcing an Extended Linear Address record first."""


def _check_index(value: Any, name: str) -> int:

    if isinstance(value, bool):
        raise InvalidParameters(f'{name} must be an integer: {value!r}')
    try:
        return operator.index(value)
    except TypeError:
        raise InvalidParameters(f'{name} must be an integer: {value!r}') from None


class GenerationConfig:
    r"""Intel HEX generation parameters.

    Args:
        base_address (int):
            Address of the first buffer byte, within the 32-bit space.

        bytes_per_line (int):
            Maximum data record payload size, from 1 to 255.

    Raises:
        :class:`InvalidParameters`: Invalid parameter value.

    Examples:
        >>> from hexbin.generator import GenerationConfig
        >>> GenerationConfig(0x08000000, 32)
        <GenerationConfig base_address:=0x08000000 bytes_per_line:=32>
    """

    def __init__(
        self,
        base_address: int = 0,
        bytes_per_line: int = 16,
    ):

        base_address = _check_index(base_address, 'base address')
        if not 0 <= base_address <= ADDRESS_MAX:
            raise InvalidParameters(f'base address out of range: {base_address!r}')

        bytes_per_line = _check_index(bytes_per_line, 'bytes per line')
        if not 0 < bytes_per_line <= 0xFF:
            raise InvalidParameters(f'bytes per line out of range: {bytes_per_line!r}')

        self.base_address: int = base_address
        self.bytes_per_line: int = bytes_per_line

    def __eq__(self, other: object) -> bool:

        if not isinstance(other, GenerationConfig):
            return NotImplemented
        return (self.base_address == other.base_address and
                self.bytes_per_line == other.bytes_per_line)

    def __repr__(self) -> str:

        return (f'<{self.__class__.__name__} '
                f'base_address:=0x{self.base_address:08X} '
                f'bytes_per_line:={self.bytes_per_line}>')

    def check_size(self, size: int) -> None:
        r"""Checks that `size` bytes fit the address space from the base.

        Raises:
            :class:`InvalidParameters`: Address space overflow.
        """

        if self.base_address + size > ADDRESS_MAX + 1:
            raise InvalidParameters('data exceeds the 32-bit address space')


def generate_records(
    buffer: AnyBytes,
    config: GenerationConfig,
) -> Iterator[IhexRecord]:
    r"""Generates the Intel HEX records of a contiguous buffer.

    The buffer is split into data records of :attr:`GenerationConfig.bytes_per_line`
    bytes at most.
    An Extended Linear Address record precedes the first data record, and
    then any data record whose upper 16 address bits differ from those of
    the previous one.
    An End Of File record terminates the sequence.

    Args:
        buffer (bytes):
            Contiguous data.

        config (:class:`GenerationConfig`):
            Generation parameters.

    Yields:
        :class:`IhexRecord`: Records, in file order.
    """

    Record = IhexRecord
    base_address = config.base_address
    current_segment = SEGMENT_NONE
    offset = 0

    for chunk in chop(buffer, config.bytes_per_line):
        address = base_address + offset
        segment = (address >> 16) & 0xFFFF

        if segment != current_segment:
            _logger.debug('segment 0x%04X at offset 0x%X', segment, offset)
            yield Record.create_extended_linear_address(segment)
            current_segment = segment

        yield Record.create_data(address & 0xFFFF, chunk)
        offset += len(chunk)

    yield Record.create_end_of_file()


def binary_to_hex(
    buffer: AnyBytes,
    base_address: int = 0,
    bytes_per_line: int = 16,
) -> str:
    r"""Converts a contiguous binary buffer into Intel HEX text.

    Args:
        buffer (bytes):
            Contiguous data; may be empty.

        base_address (int):
            Address of the first buffer byte.

        bytes_per_line (int):
            Maximum data record payload size.

    Returns:
        str: Intel HEX text, one ``\n`` terminated record per line.

    Raises:
        :class:`InvalidParameters`: Invalid base address or line length.

    Examples:
        >>> from hexbin.generator import binary_to_hex
        >>> print(binary_to_hex(b'\x02\x33\x7A', 0x0030), end='')
        :020000040000FA
        :0300300002337A1E
        :00000001FF
        >>> binary_to_hex(b'')
        ':00000001FF\n'
    """

    config = GenerationConfig(base_address, bytes_per_line)
    buffer = memoryview(buffer).cast('B')
    config.check_size(len(buffer))

    lines = [record.to_line() for record in generate_records(buffer, config)]
    _logger.debug('generated %d records for %d bytes', len(lines), len(buffer))
    return ''.join(lines)
