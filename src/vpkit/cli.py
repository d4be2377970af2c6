"""
The ``vpkit`` command-line tool: browse, inspect and extract VP archives.

Examples::

    vpkit list data.vp --tree
    vpkit show data.vp data/effects/shockwave.pcx --rgba-out shockwave.rgba
    vpkit extract data.vp data/tables/ships.tbl -o ships.tbl
    vpkit extract-all data.vp ./unpacked
    vpkit pcx-info cockpit.pcx
"""

import logging
import sys

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import List, Optional, Callable, Dict

from vpkit import __version__
from vpkit.cli_utils.console import console
from vpkit.cli_utils.errors import pretty_unhandled, descriptive_errors, fail
from vpkit.cli_utils.logging import init_console_friendly_logging
from vpkit.config import VPKitConfig, ConfigError, load_config
from vpkit.errors import DecodeError
from vpkit.formats import EntryFormat, classify_name
from vpkit.pcx_image import RasterImage, decode_raster, parse_pcx_header
from vpkit.vp_archive import ArchiveEntry
from vpkit.vp_archive.access import VPArchive
from vpkit.vp_archive.extract import extract_entry, extract_all, safe_relative_path


LOG = logging.getLogger(__name__)

HEX_PREVIEW_BYTES = 256


@pretty_unhandled
def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    with descriptive_errors(ConfigError):
        config = load_config(args.config)

    init_console_friendly_logging('DEBUG' if args.verbose else config.log_level)

    with descriptive_errors(DecodeError, OSError):
        args.handler(args, config)

    return 0


def _build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog='vpkit', description="Browse, inspect and extract VP archives.")
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")

    common = ArgumentParser(add_help=False)
    common.add_argument('-v', '--verbose', action='store_true', help="show debug messages")
    common.add_argument('--config', metavar='PATH', help="configuration file to use")

    commands = parser.add_subparsers(dest='command', metavar='COMMAND')
    commands.required = True

    cmd = commands.add_parser('list', parents=[common], help="list the entries of an archive")
    cmd.add_argument('archive', type=Path)
    cmd.add_argument('--tree', action='store_true', help="show entries as an indented tree")
    cmd.set_defaults(handler=_cmd_list)

    cmd = commands.add_parser('cat', parents=[common], help="write the raw contents of an entry to stdout")
    cmd.add_argument('archive', type=Path)
    cmd.add_argument('entry', help="path of the entry within the archive")
    cmd.set_defaults(handler=_cmd_cat)

    cmd = commands.add_parser('show', parents=[common], help="show a preview of an entry")
    cmd.add_argument('archive', type=Path)
    cmd.add_argument('entry', help="path of the entry within the archive")
    cmd.add_argument('--rgba-out', metavar='FILE', type=Path, help="for images, also save the decoded RGBA pixels")
    cmd.add_argument('-f', '--force', action='store_true', help="overwrite output files")
    cmd.set_defaults(handler=_cmd_show)

    cmd = commands.add_parser('extract', parents=[common], help="extract a single file")
    cmd.add_argument('archive', type=Path)
    cmd.add_argument('entry', help="path of the entry within the archive")
    cmd.add_argument('-o', '--output', type=Path, help="output file (default: the entry name, in the current dir)")
    cmd.add_argument('-f', '--force', action='store_true', help="overwrite the output file if it exists")
    cmd.set_defaults(handler=_cmd_extract)

    cmd = commands.add_parser('extract-all', parents=[common], help="extract all files, keeping the directory tree")
    cmd.add_argument('archive', type=Path)
    cmd.add_argument('destination', type=Path)
    cmd.add_argument('-f', '--force', action='store_true', help="overwrite existing files")
    cmd.set_defaults(handler=_cmd_extract_all)

    cmd = commands.add_parser('pcx-info', parents=[common], help="decode a standalone PCX image and describe it")
    cmd.add_argument('image', type=Path)
    cmd.set_defaults(handler=_cmd_pcx_info)

    return parser


def _cmd_list(args: Namespace, _config: VPKitConfig):
    with VPArchive.load(args.archive) as archive:
        _print_listing(archive, tree=args.tree)


def _print_listing(archive: VPArchive, tree: bool):
    entries = archive.entries

    for entry in entries:
        if tree:
            console.print_output('  ' * entry.depth + entry.name + ('/' if entry.is_directory else ''))
        elif entry.is_directory:
            console.print_output(f"{'':>10}  {'':>10}  {entry.path}/")
        else:
            console.print_output(f"{entry.size:>10}  {entry.offset:>10}  {entry.path}")

    n_files = sum(1 for entry in entries if not entry.is_directory)
    console.print_info(f"{n_files} files, {len(entries) - n_files} directories", minor=True)


def _cmd_cat(args: Namespace, _config: VPKitConfig):
    out = getattr(sys.stdout, 'buffer', None)
    if out is None:
        fail("Standard output does not accept binary data")

    with VPArchive.load(args.archive) as archive:
        data = archive.read_entry(_get_file_entry(archive, args.entry))

    console.disable_stdout()
    out.write(data)
    out.flush()


def _cmd_show(args: Namespace, config: VPKitConfig):
    with VPArchive.load(args.archive) as archive:
        entry = _get_file_entry(archive, args.entry)
        data = archive.read_entry(entry)

    entry_format = classify_name(entry.name, config.format_overrides)
    LOG.debug("Showing %s as %s", entry.description(), entry_format.value)

    _SHOW_HANDLERS[entry_format](args, config, entry, data)


def _show_text(_args: Namespace, config: VPKitConfig, _entry: ArchiveEntry, data: bytes):
    lines = data.decode(config.text_encoding, errors='replace').splitlines()

    for line in lines[:config.text_preview_lines]:
        console.print_output(line)

    if len(lines) > config.text_preview_lines:
        console.print_info(f"... {len(lines) - config.text_preview_lines} more lines", minor=True)


def _show_raster(args: Namespace, config: VPKitConfig, entry: ArchiveEntry, data: bytes):
    image = decode_raster(data)

    _print_raster_summary(entry.path, image)

    if args.rgba_out is not None:
        mode = 'wb' if (args.force or config.overwrite) else 'xb'
        with open(args.rgba_out, mode) as f:
            f.write(image.pixels)

        console.print_success(f"Saved {len(image.pixels)} bytes of RGBA data to {args.rgba_out}")


def _show_archive(_args: Namespace, _config: VPKitConfig, entry: ArchiveEntry, data: bytes):
    _print_listing(VPArchive.from_bytes(data, name=entry.path), tree=True)


def _show_unsupported(_args: Namespace, config: VPKitConfig, entry: ArchiveEntry, _data: bytes):
    entry_format = classify_name(entry.name, config.format_overrides)

    console.print_warning(
        f"Previewing {entry_format.value} entries is not supported. Use 'vpkit extract' to save '{entry.path}' instead."
    )


def _show_hex(_args: Namespace, _config: VPKitConfig, entry: ArchiveEntry, data: bytes):
    console.print_info(f"'{entry.path}' is of unknown type, {len(data)} bytes", minor=True)

    for line in hex_dump_lines(data[:HEX_PREVIEW_BYTES]):
        console.print_output(line)


def hex_dump_lines(data: bytes, width: int = 16) -> List[str]:
    lines = []

    for pos in range(0, len(data), width):
        chunk = data[pos:pos + width]
        text = ''.join(chr(b) if 0x20 <= b < 0x7f else '.' for b in chunk)

        lines.append(f"{pos:08x}  {chunk.hex(' '):<{width * 3 - 1}}  {text}")

    return lines


_SHOW_HANDLERS: Dict[EntryFormat, Callable[[Namespace, VPKitConfig, ArchiveEntry, bytes], None]] = {
    EntryFormat.TEXT: _show_text,
    EntryFormat.RASTER: _show_raster,
    EntryFormat.ARCHIVE: _show_archive,
    EntryFormat.AUDIO: _show_unsupported,
    EntryFormat.ANIMATION: _show_unsupported,
    EntryFormat.MODEL: _show_unsupported,
    EntryFormat.UNKNOWN: _show_hex,
}


def _cmd_extract(args: Namespace, config: VPKitConfig):
    with VPArchive.load(args.archive) as archive:
        entry = _get_file_entry(archive, args.entry)

        output = args.output if args.output is not None else Path(safe_relative_path(entry).name)
        written = extract_entry(archive, entry, output, overwrite=args.force or config.overwrite)

    console.print_success(f"Extracted '{entry.path}' to {written}")


def _cmd_extract_all(args: Namespace, config: VPKitConfig):
    with VPArchive.load(args.archive) as archive:
        console.print_progress(f"Extracting {len(archive.files())} files to {args.destination}...")

        written = extract_all(archive, args.destination, overwrite=args.force or config.overwrite)

    console.print_success(f"Extracted {len(written)} files")


def _cmd_pcx_info(args: Namespace, _config: VPKitConfig):
    data = args.image.read_bytes()

    header = parse_pcx_header(data)
    image = decode_raster(data)

    _print_raster_summary(str(args.image), image)
    console.print_output(f"Bounding box: ({header.xmin}, {header.ymin}) - ({header.xmax}, {header.ymax})")
    console.print_output(f"Bytes per line: {header.bytes_per_line}")


def _print_raster_summary(label: str, image: RasterImage):
    transparent = image.transparent_pixel_count()

    console.print_output(f"{label}: {image.width}x{image.height} PCX image, 8-bit indexed")
    console.print_output(f"Transparent pixels: {transparent} of {image.width * image.height}")


def _get_file_entry(archive: VPArchive, path: str) -> ArchiveEntry:
    entry = archive.find(path)

    if entry is None:
        fail(f"No entry '{path}' in archive {archive.name}")
    if entry.is_directory:
        fail(f"'{entry.path}' is a directory")

    return entry
