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

r"""Conversion presets.

Well-known flash base addresses and the supported data record lengths,
resolved into plain integers for :func:`hexbin.generator.binary_to_hex`.
"""

from typing import Any
from typing import Mapping
from typing import Sequence
from typing import Tuple

from .base import ADDRESS_MAX
from .base import InvalidParameters
from .utils import parse_hex

BASE_ADDRESS_PRESETS: Mapping[str, Tuple[str, int]] = {
    'stm32': ('STM32 Flash', 0x08000000),
    'esp32': ('ESP32 App', 0x00010000),
    'avr': ('AVR ATmega / 8-bit', 0x00000000),
    'nrf52': ('nRF52 App', 0x00026000),
}
r"""Base address presets.

This is an ordered mapping, where the first item is the default."""

DEFAULT_PRESET: str = next(iter(BASE_ADDRESS_PRESETS))

LINE_LENGTHS: Sequence[int] = (16, 32)
r"""Supported data record lengths, in bytes."""

DEFAULT_LINE_LENGTH: int = LINE_LENGTHS[0]


def preset_label(key: str) -> str:
    r"""Human readable preset label.

    Examples:
        >>> preset_label('stm32')
        'STM32 Flash (0x08000000)'
    """

    description, address = BASE_ADDRESS_PRESETS[key]
    return f'{description} (0x{address:08X})'


def parse_base_address(value: Any) -> int:
    r"""Resolves a base address.

    Args:
        value:
            Either a preset key (case-insensitive), a hexadecimal string
            optionally prefixed by ``0x``, or a non-negative integer.

    Returns:
        int: Base address.

    Raises:
        :class:`InvalidParameters`: Unparseable or out-of-range address.

    Examples:
        >>> parse_base_address('esp32')
        65536
        >>> parse_base_address('0x8000')
        32768
        >>> parse_base_address('26000')
        155648
    """

    if isinstance(value, str):
        key = value.strip().lower()
        if key in BASE_ADDRESS_PRESETS:
            return BASE_ADDRESS_PRESETS[key][1]

    if value is None or isinstance(value, bool):
        raise InvalidParameters(f'Invalid base address: {value!r}')

    try:
        address = parse_hex(value)
    except (ValueError, TypeError, AttributeError):
        raise InvalidParameters(f"Invalid base address format: {value!r}. Use '0x...' or '...'.") from None

    if not 0 <= address <= ADDRESS_MAX:
        raise InvalidParameters(f'Base address out of range: {value!r}')
    return address


def parse_line_length(value: Any, strict: bool = True) -> int:
    r"""Resolves a data record length.

    Args:
        value:
            Integer, or decimal string.

        strict (bool):
            Only values within :data:`LINE_LENGTHS` are accepted; otherwise
            any value from 1 to 255.

    Returns:
        int: Data record length.

    Raises:
        :class:`InvalidParameters`: Invalid length.

    Examples:
        >>> parse_line_length('32')
        32
        >>> parse_line_length(8, strict=False)
        8
    """

    if isinstance(value, bool):
        raise InvalidParameters(f'Invalid line length: {value!r}')

    try:
        length = int(value, 10) if isinstance(value, str) else value.__index__()
    except (ValueError, TypeError, AttributeError):
        raise InvalidParameters(f'Invalid line length: {value!r}') from None

    if strict:
        if length not in LINE_LENGTHS:
            raise InvalidParameters(f'Line length must be one of {tuple(LINE_LENGTHS)}: {value!r}')
    elif not 0 < length <= 0xFF:
        raise InvalidParameters(f'Line length out of range: {value!r}')

    return length
