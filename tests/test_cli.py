import runpy
import sys
from pathlib import Path
from typing import cast as _cast

import pytest
from click.core import Command
from click.testing import CliRunner

from hexbin import __version__ as _version
from hexbin.cli import *

main = _cast(Command, main)  # suppress warnings

WIKIPEDIA_TEXT = (
    ':10010000214601360121470136007EFE09D2190140\n'
    ':100110002146017E17C20001FF5F16002148011928\n'
    ':10012000194E79234623965778239EDA3F01B2CAA7\n'
    ':100130003F0156702B5E712B722B732146013421C7\n'
    ':00000001FF\n'
)


@pytest.fixture
def tmppath(tmpdir):
    return Path(str(tmpdir))


def test_dunder_main(monkeypatch):
    monkeypatch.setattr(sys, 'argv', ['hexbin', '--version'])
    with pytest.raises(SystemExit) as info:
        runpy.run_module('hexbin', run_name='__main__')
    assert not info.value.code


def test_default_output_path():
    assert default_output_path(None, '.bin') is None
    assert default_output_path('firmware.hex', '.bin') == 'firmware.bin'
    assert default_output_path('dir.x/firmware', '.hex') == 'dir.x/firmware.hex'
    assert default_output_path('a.b.hex', '.bin') == 'a.b.bin'


class TestConversionCtxMgr:

    def test___init__(self):
        ctx = ConversionCtxMgr('in.hex', 'out.bin', '.bin')
        assert ctx.input_path == 'in.hex'
        assert ctx.output_path == 'out.bin'

    def test___init__no_out(self):
        ctx = ConversionCtxMgr('in.hex', None, '.bin')
        assert ctx.input_path == 'in.hex'
        assert ctx.output_path == 'in.bin'

    def test___init__dash(self):
        ctx = ConversionCtxMgr('-', None, '.bin')
        assert ctx.input_path is None
        assert ctx.output_path is None

        ctx = ConversionCtxMgr('in.hex', '-', '.bin')
        assert ctx.output_path is None


def test_help():
    commands = ('hex2bin', 'bin2hex', 'dump', 'presets')
    runner = CliRunner()

    result = runner.invoke(main, ['--help'])
    assert result.exit_code == 0
    for command in commands:
        assert command in result.output

    for command in commands:
        result = runner.invoke(main, [command, '--help'])
        assert result.exit_code == 0, command


def test_version():
    runner = CliRunner()
    result = runner.invoke(main, ['--version'])
    assert result.exit_code == 0
    assert result.output.strip() == str(_version)


def test_presets():
    runner = CliRunner()
    result = runner.invoke(main, ['presets'])
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert len(lines) == 4
    assert lines[0].startswith('stm32')
    assert 'STM32 Flash (0x08000000)' in lines[0]


def test_hex2bin(tmppath):
    in_path = tmppath / 'firmware.hex'
    in_path.write_text(WIKIPEDIA_TEXT)

    runner = CliRunner()
    result = runner.invoke(main, ['hex2bin', str(in_path)])
    assert result.exit_code == 0, result.output

    out_path = tmppath / 'firmware.bin'
    data = out_path.read_bytes()
    assert len(data) == 64
    assert data[:4] == b'\x21\x46\x01\x36'


def test_hex2bin_outfile_fill(tmppath):
    in_path = tmppath / 'gap.hex'
    in_path.write_text(':0100000041BE\n:0100040042B9\n:00000001FF\n')
    out_path = tmppath / 'image.raw'

    runner = CliRunner()
    args = ['hex2bin', '--fill', '0x00', str(in_path), str(out_path)]
    result = runner.invoke(main, args)
    assert result.exit_code == 0, result.output
    assert out_path.read_bytes() == b'A\x00\x00\x00B'


def test_hex2bin_stdio():
    runner = CliRunner()
    result = runner.invoke(main, ['hex2bin', '-', '-'], input=':0100000041BE\n:00000001FF\n')
    assert result.exit_code == 0
    assert result.stdout_bytes.startswith(b'A')


def test_hex2bin_checksum_error(tmppath):
    in_path = tmppath / 'bad.hex'
    in_path.write_text(':0300300002337A1F\n:00000001FF\n')

    runner = CliRunner()
    result = runner.invoke(main, ['hex2bin', str(in_path)])
    assert result.exit_code == 1
    assert 'Error: Checksum error in line: :0300300002337A1F' in result.output
    assert not (tmppath / 'bad.bin').exists()


def test_hex2bin_no_data(tmppath):
    in_path = tmppath / 'meta.hex'
    in_path.write_text(':020000040800F2\n:00000001FF\n')

    runner = CliRunner()
    result = runner.invoke(main, ['hex2bin', str(in_path)])
    assert result.exit_code == 1
    assert 'does not contain any data records' in result.output
    assert not (tmppath / 'meta.bin').exists()


def test_bin2hex(tmppath):
    in_path = tmppath / 'firmware.bin'
    in_path.write_bytes(b'\x02\x33\x7A')

    runner = CliRunner()
    result = runner.invoke(main, ['bin2hex', '--base', '0x0030', str(in_path)])
    assert result.exit_code == 0, result.output

    out_path = tmppath / 'firmware.hex'
    assert out_path.read_bytes() == (
        b':020000040000FA\n'
        b':0300300002337A1E\n'
        b':00000001FF\n'
    )


def test_bin2hex_default_preset(tmppath):
    in_path = tmppath / 'app.bin'
    in_path.write_bytes(bytes(range(48)))

    runner = CliRunner()
    result = runner.invoke(main, ['bin2hex', '-w', '32', str(in_path)])
    assert result.exit_code == 0, result.output

    lines = (tmppath / 'app.hex').read_text().splitlines()
    assert lines[0] == ':020000040800F2'
    assert lines[1].startswith(':20000000')
    assert lines[2].startswith(':10002000')
    assert lines[3] == ':00000001FF'


def test_bin2hex_named_preset(tmppath):
    in_path = tmppath / 'app.bin'
    in_path.write_bytes(b'a')

    runner = CliRunner()
    result = runner.invoke(main, ['bin2hex', '-b', 'esp32', str(in_path)])
    assert result.exit_code == 0, result.output
    assert (tmppath / 'app.hex').read_bytes() == (
        b':020000040001F9\n'
        b':01000000619E\n'
        b':00000001FF\n'
    )


def test_bin2hex_invalid_options(tmppath):
    in_path = tmppath / 'app.bin'
    in_path.write_bytes(b'abc')

    runner = CliRunner()
    result = runner.invoke(main, ['bin2hex', '-b', 'nowhere', str(in_path)])
    assert result.exit_code == 2
    assert 'Invalid base address' in result.output

    result = runner.invoke(main, ['bin2hex', '-w', '64', str(in_path)])
    assert result.exit_code == 2
    assert 'Line length must be one of' in result.output

    assert not (tmppath / 'app.hex').exists()


def test_round_trip(tmppath):
    data = bytes(range(256)) * 512
    bin_path = tmppath / 'image.bin'
    bin_path.write_bytes(data)
    hex_path = tmppath / 'image.hex'
    out_path = tmppath / 'image_out.bin'

    runner = CliRunner()
    result = runner.invoke(main, ['bin2hex', '-b', 'avr', str(bin_path), str(hex_path)])
    assert result.exit_code == 0, result.output
    result = runner.invoke(main, ['hex2bin', str(hex_path), str(out_path)])
    assert result.exit_code == 0, result.output
    assert out_path.read_bytes() == data


def test_dump(tmppath):
    in_path = tmppath / 'firmware.hex'
    in_path.write_text('; comment\n' + WIKIPEDIA_TEXT.lower() + ':0100000041BE\n')

    runner = CliRunner()
    result = runner.invoke(main, ['dump', str(in_path)])
    assert result.exit_code == 0
    assert result.output == WIKIPEDIA_TEXT


def test_dump_color(tmppath):
    in_path = tmppath / 'eof.hex'
    in_path.write_text(':00000001FF\n')

    runner = CliRunner()
    result = runner.invoke(main, ['dump', '--color', str(in_path)])
    assert result.exit_code == 0
    assert '\x1b[32m01' in result.output


def test_dump_error(tmppath):
    in_path = tmppath / 'bad.hex'
    in_path.write_text(':0300300002337A1F\n')

    runner = CliRunner()
    result = runner.invoke(main, ['dump', str(in_path)])
    assert result.exit_code == 1
    assert 'Checksum error' in result.output


def test_verbose(tmppath):
    in_path = tmppath / 'firmware.hex'
    in_path.write_text(WIKIPEDIA_TEXT)

    runner = CliRunner()
    result = runner.invoke(main, ['--verbose', 'hex2bin', str(in_path)])
    assert result.exit_code == 0
    assert (tmppath / 'firmware.bin').exists()
