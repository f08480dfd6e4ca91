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

r"""Generic utility functions."""

import binascii
import re
from typing import Any
from typing import Iterator
from typing import Optional
from typing import Union

from .base import AnyBytes

HEX_REGEX = re.compile(r'^\s*(?P<prefix>(0x)?)(?P<value>[0-9a-f]+)\s*$', re.IGNORECASE)


def chop(
    vector: AnyBytes,
    window: int,
) -> Iterator[AnyBytes]:
    r"""Chops a vector.

    Iterates through the vector grouping its items into windows.

    Args:
        vector (items):
            Vector to chop.

        window (int):
            Window length.

    Yields:
        list or items: `vector` slices of up to `window` elements.

    Examples:
        >>> list(chop(b'ABCDEFG', 2))
        [b'AB', b'CD', b'EF', b'G']

        >>> b':'.join(chop(b'ABCDEFG', 2))
        b'AB:CD:EF:G'
    """
    window = int(window)
    if window <= 0:
        raise ValueError('non-positive window')

    for i in range(0, len(vector), window):
        yield vector[i:(i + window)]


def hexlify(
    bytestr: AnyBytes,
    upper: bool = True,
) -> str:
    r"""Converts raw bytes into a hexadecimal string.

    Args:
        bytestr (bytes):
            Source byte string.

        upper (bool):
            Uppercase hexadecimal string.

    Returns:
        str: Hexadecimal string.

    Examples:
        >>> from hexbin.utils import hexlify
        >>> hexlify(b'\xAA\xBB\xCC')
        'AABBCC'
        >>> hexlify(b'\xAA\xBB\xCC', upper=False)
        'aabbcc'
    """

    hexstr = binascii.hexlify(bytestr).decode('ascii')

    if upper:
        hexstr = hexstr.upper()

    return hexstr


def unhexlify(hexstr: Union[str, AnyBytes]) -> bytes:
    r"""Converts a hexadecimal string into raw bytes.

    Args:
        hexstr (str):
            Source hexadecimal string, with an even number of digits.

    Returns:
        bytes: Raw byte string.

    Raises:
        ValueError: Non-hexadecimal digits, or odd digit count.

    Examples:
        >>> from hexbin.utils import unhexlify
        >>> unhexlify('AABBCC')
        b'\xaa\xbb\xcc'
        >>> unhexlify(b'aabbcc')
        b'\xaa\xbb\xcc'
    """

    if isinstance(hexstr, str):
        try:
            hexstr = hexstr.encode('ascii')
        except UnicodeEncodeError:
            raise ValueError('non-hexadecimal digit found') from None

    try:
        bytestr = binascii.unhexlify(hexstr)
    except binascii.Error as exc:
        raise ValueError(str(exc)) from None
    return bytestr


def parse_hex(
    value: Union[str, Any],
) -> Optional[int]:
    r"""Parses a hexadecimal integer.

    Args:
        value:
            A generic object to convert to integer.
            In case `value` is a :obj:`str` (case-insensitive), it is always
            read as hexadecimal, optionally prefixed with ``0x``.
            A ``None`` value evaluates as ``None``.
            Any other object must support :meth:`__index__`.

    Returns:
        int: None if `value` is ``None``, its integer conversion otherwise.

    Examples:
        >>> parse_hex('0x08000000')
        134217728

        >>> parse_hex('26000')
        155648

        >>> parse_hex(None) is None
        True

        >>> parse_hex(123)
        123
    """
    if value is None:
        return None

    elif isinstance(value, str):
        m = HEX_REGEX.match(value)
        if not m:
            raise ValueError(f'invalid syntax: {value!r}')
        return int(m.group('value'), 16)

    else:
        return value.__index__()
