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

"""
Module that contains the command line app.

Why does this file exist, and why not put this in __main__?

  You might be tempted to import things from __main__ later, but that will cause
  problems: the code will get executed twice:

  - When you run `python -m hexbin` python will execute
    ``__main__.py`` as a script. That means there won't be any
    ``hexbin.__main__`` in ``sys.modules``.
  - When you import __main__ it will get executed again (as a module) because
    there's no ``hexbin.__main__`` in ``sys.modules``.

  Also see (1) from https://click.palletsprojects.com/en/stable/setuptools/#setuptools-integration
"""

import logging
import os
from typing import Optional

import click

from .__init__ import __version__
from .base import PADDING_BYTE
from .base import ConversionError
from .generator import binary_to_hex
from .parser import hex_to_binary
from .parser import parse_records
from .presets import BASE_ADDRESS_PRESETS
from .presets import DEFAULT_LINE_LENGTH
from .presets import DEFAULT_PRESET
from .presets import LINE_LENGTHS
from .presets import parse_base_address
from .presets import parse_line_length
from .presets import preset_label
from .utils import parse_hex

_logger = logging.getLogger(__name__)


class BaseAddressParamType(click.ParamType):
    name = 'address'

    def convert(self, value, param, ctx):
        try:
            return parse_base_address(value)
        except ValueError as exc:
            self.fail(str(exc), param, ctx)


class ByteIntParamType(click.ParamType):
    name = 'byte'

    def convert(self, value, param, ctx):
        try:
            b = parse_hex(value)
            if not 0 <= b <= 255:
                raise ValueError()
            return b
        except ValueError:
            self.fail(f'invalid byte: {value!r}', param, ctx)


class LineLengthParamType(click.ParamType):
    name = 'width'

    def convert(self, value, param, ctx):
        try:
            return parse_line_length(value)
        except ValueError as exc:
            self.fail(str(exc), param, ctx)


BASE_ADDRESS = BaseAddressParamType()
BYTE_INT = ByteIntParamType()
LINE_LENGTH = LineLengthParamType()

FILE_PATH_IN = click.Path(dir_okay=False, allow_dash=True, readable=True, exists=True)
FILE_PATH_OUT = click.Path(dir_okay=False, allow_dash=True, writable=True)


# ----------------------------------------------------------------------------

def default_output_path(
    input_path: Optional[str],
    extension: str,
) -> Optional[str]:
    r"""Output path made by replacing the input file extension.

    Standard input maps to standard output (``None``).
    """

    if input_path is None:
        return None
    root, _ = os.path.splitext(input_path)
    return root + extension


def print_version(ctx, _, value):

    if not value or ctx.resilient_parsing:
        return

    click.echo(str(__version__))
    ctx.exit()


# ----------------------------------------------------------------------------

class ConversionCtxMgr:

    def __init__(
        self,
        input_path: str,
        output_path: Optional[str],
        output_extension: str,
    ):

        if input_path == '-':
            input_path = None

        if not output_path:
            output_path = default_output_path(input_path, output_extension)
        if output_path == '-':
            output_path = None

        self.input_path: Optional[str] = input_path
        self.input_data: Optional[bytes] = None

        self.output_path: Optional[str] = output_path
        self.output_data: Optional[bytes] = None

    def __enter__(self) -> 'ConversionCtxMgr':

        with click.open_file(self.input_path or '-', 'rb') as stream:
            self.input_data = stream.read()
        _logger.debug('read %d bytes from %s', len(self.input_data), self.input_path or '<stdin>')
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:

        if exc_type is None:
            with click.open_file(self.output_path or '-', 'wb') as stream:
                stream.write(self.output_data)
            _logger.debug('wrote %d bytes to %s', len(self.output_data), self.output_path or '<stdout>')

        elif issubclass(exc_type, ConversionError):
            raise click.ClickException(str(exc_val)) from exc_val


# ============================================================================

@click.group()
@click.option('-V', '--version', is_flag=True, is_eager=True,
              expose_value=False, callback=print_version, help="""
    Prints the package version number.
""")
@click.option('-v', '--verbose', is_flag=True, help="""
    Logs conversion details onto standard error.
""")
def main(verbose: bool) -> None:
    """
    Converts between Intel HEX record files and raw binary images.

    Being built with `Click <https://click.palletsprojects.com/en/stable/>`_, all the
    commands follow POSIX-like syntax rules, as well as reserving the virtual
    file path ``-`` for command chaining via standard output/input buffering.
    """

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(name)s: %(message)s')


# ----------------------------------------------------------------------------

@main.command()
@click.option('-f', '--fill', type=BYTE_INT, default=f'{PADDING_BYTE:02X}', show_default=True, help="""
    Byte value flooding the addresses not covered by data records.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('outfile', type=FILE_PATH_OUT, required=False)
def hex2bin(
    fill: int,
    infile: str,
    outfile: Optional[str],
) -> None:
    r"""Converts an Intel HEX file into a binary image.

    The image spans from the lowest to the highest address carried by data
    records.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.

    ``OUTFILE`` is the path of the output file.
    Set to ``-`` to write to standard output.
    Leave empty to replace the ``INFILE`` extension with ``.bin``.
    """

    with ConversionCtxMgr(infile, outfile, '.bin') as ctx:
        image = hex_to_binary(ctx.input_data, fill=fill)
        ctx.output_data = image.data

    click.echo('HEX to BIN conversion successful!', err=True)


# ----------------------------------------------------------------------------

@main.command()
@click.option('-b', '--base', type=BASE_ADDRESS, default=DEFAULT_PRESET, show_default=True, help=f"""
    Base address of the binary image: either a hexadecimal value
    (optionally ``0x`` prefixed) or a preset name among:
    {', '.join(BASE_ADDRESS_PRESETS)}.
""")
@click.option('-w', '--width', type=LINE_LENGTH, default=str(DEFAULT_LINE_LENGTH), show_default=True, help=f"""
    Data bytes per record, one of: {', '.join(map(str, LINE_LENGTHS))}.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('outfile', type=FILE_PATH_OUT, required=False)
def bin2hex(
    base: int,
    width: int,
    infile: str,
    outfile: Optional[str],
) -> None:
    r"""Converts a binary image into an Intel HEX file.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.

    ``OUTFILE`` is the path of the output file.
    Set to ``-`` to write to standard output.
    Leave empty to replace the ``INFILE`` extension with ``.hex``.
    """

    with ConversionCtxMgr(infile, outfile, '.hex') as ctx:
        text = binary_to_hex(ctx.input_data, base_address=base, bytes_per_line=width)
        ctx.output_data = text.encode('ascii')

    click.echo('BIN to HEX conversion successful!', err=True)


# ----------------------------------------------------------------------------

@main.command()
@click.option('--color/--no-color', default=False, show_default=True, help="""
    Colorizes record fields with ANSI codes.
""")
@click.argument('infile', type=FILE_PATH_IN)
def dump(
    color: bool,
    infile: str,
) -> None:
    r"""Prints the records of an Intel HEX file.

    Non-record lines are omitted, and so is anything after the End Of File
    record.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    with click.open_file(infile, 'rb') as stream:
        data = stream.read()

    try:
        records = list(parse_records(data))
    except ConversionError as exc:
        raise click.ClickException(str(exc)) from exc

    for record in records:
        record.print(color=color)


# ----------------------------------------------------------------------------

@main.command()
def presets() -> None:
    r"""Lists the base address presets."""

    for key in BASE_ADDRESS_PRESETS:
        click.echo(f'{key:<8} {preset_label(key)}')
