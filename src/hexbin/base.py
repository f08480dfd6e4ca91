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

r"""Base types, constants and errors."""

from typing import Any
from typing import Mapping
from typing import Optional
from typing import Type
from typing import Union

import colorama

try:
    from typing import TypeAlias
except ImportError:  # pragma: no cover
    TypeAlias = Any  # Python < 3.10

AnyBytes: TypeAlias = Union[bytes, bytearray, memoryview]
AnyText: TypeAlias = Union[str, bytes, bytearray, memoryview]
EllipsisType: TypeAlias = Type['Ellipsis']

PADDING_BYTE: int = 0xFF
r"""Fill value for addresses never written (erased flash)."""

ADDRESS_MAX: int = 0xFFFFFFFF
r"""Highest address of the 32-bit linear address space."""

TOKEN_COLOR_CODES: Mapping[str, str] = {
    '':         colorama.Style.RESET_ALL,
    '<':        colorama.Style.RESET_ALL,
    '>':        colorama.Style.RESET_ALL,
    'address':  colorama.Fore.RED,
    'begin':    colorama.Fore.YELLOW,
    'checksum': colorama.Fore.MAGENTA,
    'count':    colorama.Fore.BLUE,
    'data':     colorama.Fore.CYAN,
    'dataalt':  colorama.Fore.LIGHTCYAN_EX,
    'end':      colorama.Style.RESET_ALL,
    'tag':      colorama.Fore.GREEN,
}
r"""ANSI color codes for each possible token type."""


def colorize_tokens(
    tokens: Mapping[str, str],
    altdata: bool = True,
) -> Mapping[str, str]:
    r"""Prepends ANSI color codes to record field tokens.

    For each token within `tokens`, its key is used to look up the ANSI color
    code from :data:`TOKEN_COLOR_CODES`.
    Empty tokens are dropped.

    Args:
        tokens (dict):
            A mapping of each token key name to token string.

        altdata (bool):
            If true, it alternates each byte (two hex digits) between the ANSI
            color codes mapped with keys ``data`` (even byte index) and
            ``dataalt`` (odd byte index).
            If false, only the ``data`` code is prepended.

    Returns:
        dict: `tokens` with prepended ANSI color codes.

    Examples:
        >>> from hexbin.base import colorize_tokens
        >>> from hexbin.records import IhexRecord
        >>> tokens = IhexRecord.create_end_of_file().to_tokens()
        >>> colorize_tokens(tokens)['tag']
        '\x1b[32m01'
    """

    codes = TOKEN_COLOR_CODES
    colorized = {}
    colorized.setdefault('<', codes['<'])

    for key, value in tokens.items():
        if key not in codes:
            key = ''
        if value:
            code = codes[key]

            if key == 'data' and altdata:
                altcode = codes['dataalt']
                pieces = []

                for i in range(0, len(value), 2):
                    pieces.append(altcode if i & 2 else code)
                    pieces.append(value[i:(i + 2)])

                colorized[key] = ''.join(pieces)
            else:
                colorized[key] = code + value

    colorized.setdefault('>', codes['>'])
    return colorized


class ConversionError(ValueError):
    r"""Conversion failure.

    Root of all the errors raised by the conversion functions.
    Any of them aborts the whole conversion, without partial output.
    """


class MalformedLine(ConversionError):
    r"""A start-marked line cannot be decoded.

    Args:
        line (str):
            The offending line, verbatim.

        reason (str):
            Short description of the decoding failure.
    """

    def __init__(self, line: str, reason: str = 'malformed line'):

        super().__init__(f'{reason} in line: {line}')
        self.line: str = line
        self.reason: str = reason


class ChecksumMismatch(ConversionError):
    r"""Record checksum disagrees with the computed one.

    Args:
        line (str):
            The offending line, verbatim.

        expected (int):
            Checksum computed over the record bytes.

        actual (int):
            Checksum byte carried by the record.
    """

    def __init__(
        self,
        line: str,
        expected: Optional[int] = None,
        actual: Optional[int] = None,
    ):

        super().__init__(f'Checksum error in line: {line}')
        self.line: str = line
        self.expected: Optional[int] = expected
        self.actual: Optional[int] = actual


class NoDataRecords(ConversionError):
    r"""The HEX file does not contain any data records."""

    def __init__(self, message: str = 'The HEX file does not contain any data records (type 00).'):

        super().__init__(message)


class InvalidParameters(ConversionError):
    r"""Invalid conversion parameters (base address, line length)."""
