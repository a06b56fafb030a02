#!/usr/bin/env python3

# Copyright (c) 2026 Stephen P Smith
# MIT License

"""
Command Line Interface for the FAT12 image reader
"""

import argparse
import logging
import sys
from typing import List, Optional, TextIO

from .boot_sector import BootSector
from .config import ReaderConfig, setup_logging
from .directory import DirectoryEntry, RootDirectory
from .errors import FAT12Error, FAT12BadClusterError
from .fat_table import FatTable
from .fat_utils import format_83_name, render_printable, SHORT_NAME_LEN
from .handler import FAT12Image, read_boot_sector
from .sector_store import SectorStore

logger = logging.getLogger(__name__)

# Process exit codes, one per failure stage
EXIT_OK = 0
EXIT_USAGE = 1
EXIT_OPEN_FAILED = 2
EXIT_BOOT_SECTOR_FAILED = 3
EXIT_FAT_FAILED = 4
EXIT_ROOT_DIRECTORY_FAILED = 5
EXIT_FILE_NOT_FOUND = 6
EXIT_READ_FAILED = 7
EXIT_WRITE_FAILED = 8
EXIT_INTERRUPTED = 130


def lookup_name(name: str, exact: bool = False) -> bytes:
    """
    Turn a command line file name into the 11-byte on-disk form.

    An 11-character name without a dot is taken as already formatted
    ("KERNEL  BIN"), as is any name when exact is set. Anything else goes
    through format_83_name ("kernel.bin" -> b"KERNEL  BIN").
    """
    if exact or (len(name) == SHORT_NAME_LEN and '.' not in name):
        return name.encode('ascii', errors='replace')
    return format_83_name(name)


class FAT12ReaderCLI:
    """Reads a file out of the root directory of a FAT12 image"""

    def __init__(self, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None):
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog='fat12-reader',
            description="Read a file from the root directory of a FAT12 disk image",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  fat12-reader floppy.img TEST.TXT            # print a file
  fat12-reader floppy.img "TEST    TXT"       # on-disk 11-byte name
  fat12-reader floppy.img KERNEL.BIN --raw > kernel.bin
  fat12-reader floppy.img --list              # list the root directory
            """
        )

        parser.add_argument('image', nargs='?', help='Path to the FAT12 disk image')
        parser.add_argument('name', nargs='?', help='File name (NAME.EXT or 11-byte on-disk form)')
        parser.add_argument('--exact', action='store_true',
                            help='Use the file name verbatim as the 11-byte on-disk name')

        mode = parser.add_mutually_exclusive_group()
        mode.add_argument('--list', action='store_true', help='List the root directory')
        mode.add_argument('--info', action='store_true', help='Show the boot sector geometry')
        mode.add_argument('--chain', action='store_true', help="Show the file's cluster chain")

        output = parser.add_mutually_exclusive_group()
        output.add_argument('--raw', action='store_true', help='Write file bytes to stdout unchanged')
        output.add_argument('-o', '--output', metavar='PATH', help='Write file bytes to PATH')

        parser.add_argument('--strict', action='store_true',
                            help='Reject boot sectors with impossible geometry or no 0x55AA signature')
        parser.add_argument('--skip-deleted', action='store_true',
                            help='Ignore unused and deleted directory slots during lookup')
        parser.add_argument('--no-loop-check', action='store_true',
                            help='Do not stop on looped cluster chains')
        parser.add_argument('-v', '--verbose', action='count', default=0,
                            help='More logging (-v info, -vv debug)')
        parser.add_argument('--log-file', metavar='PATH', help='Also write the log to PATH')

        return parser

    def run(self, args=None) -> int:
        """Run the CLI and return the process exit code"""
        try:
            parsed_args = self.parser.parse_args(args)
        except SystemExit as e:
            # argparse exits with 2 on usage errors and 0 for --help
            return EXIT_OK if e.code == 0 else EXIT_USAGE

        if not parsed_args.image or not (parsed_args.name or parsed_args.list or parsed_args.info):
            self.parser.print_usage(self.stderr)
            return EXIT_USAGE

        config = ReaderConfig.from_args(parsed_args)
        try:
            setup_logging(config)
        except OSError as e:
            self._fail(f'Could not open log file "{config.log_file}"! ({e})')
            return EXIT_USAGE

        try:
            return self._execute(parsed_args, config)
        except KeyboardInterrupt:
            self._fail("Interrupted")
            return EXIT_INTERRUPTED

    def _fail(self, message: str):
        print(message, file=self.stderr)

    def _execute(self, args, config: ReaderConfig) -> int:
        try:
            store = SectorStore.open(args.image)
        except OSError as e:
            logger.error(f"Could not open disk image {args.image}: {e}")
            self._fail(f'Could not open disk image "{args.image}"!')
            return EXIT_OPEN_FAILED

        with store:
            try:
                boot = read_boot_sector(store, strict=config.strict_boot_sector)
            except FAT12Error as e:
                logger.error(f"Boot sector: {e}")
                self._fail(f"Could not read boot sector! ({e})")
                return EXIT_BOOT_SECTOR_FAILED

            try:
                fat = FatTable.load(store, boot)
            except FAT12Error as e:
                logger.error(f"FAT: {e}")
                self._fail(f"Could not read FAT! ({e})")
                return EXIT_FAT_FAILED

            if args.info:
                self._print_geometry(boot, fat)
                return EXIT_OK

            try:
                root = RootDirectory.load(store, boot)
            except FAT12Error as e:
                logger.error(f"Root directory: {e}")
                self._fail(f"Could not read root directory! ({e})")
                return EXIT_ROOT_DIRECTORY_FAILED

            image = FAT12Image(store, boot, fat, root, config)

            if args.list:
                self._print_listing(image)
                return EXIT_OK

            return self._read_named_file(image, args)

    def _read_named_file(self, image: FAT12Image, args) -> int:
        try:
            name = lookup_name(args.name, exact=args.exact)
        except ValueError as e:
            self._fail(str(e))
            return EXIT_FILE_NOT_FOUND

        entry = image.find_file(name)
        if entry is None:
            self._fail(f'Could not find file "{args.name}"!')
            return EXIT_FILE_NOT_FOUND

        try:
            if args.chain:
                print(self._format_chain(image, image.cluster_chain(entry)), file=self.stdout)
                return EXIT_OK
            data = image.extract_file(entry)
        except FAT12BadClusterError as e:
            logger.error(f"Bad cluster in '{entry.short_name}' after cluster {e.cluster}")
            self._fail(f'Could not read file "{args.name}"! ({e})')
            return EXIT_READ_FAILED
        except FAT12Error as e:
            logger.error(f"Reading '{entry.short_name}' failed: {e}")
            self._fail(f'Could not read file "{args.name}"! ({e})')
            return EXIT_READ_FAILED

        return self._write_output(data, args)

    def _write_output(self, data: bytes, args) -> int:
        if args.output:
            try:
                with open(args.output, 'wb') as f:
                    f.write(data)
            except OSError as e:
                logger.error(f"Writing {args.output} failed: {e}")
                self._fail(f'Could not write output file "{args.output}"! ({e})')
                return EXIT_WRITE_FAILED
            logger.info(f"Wrote {len(data)} bytes to {args.output}")
        elif args.raw:
            buffer = getattr(self.stdout, 'buffer', None)
            if buffer is not None:
                buffer.write(data)
                buffer.flush()
            else:
                self.stdout.write(data.decode('latin-1'))
        else:
            print(render_printable(data), file=self.stdout)
        return EXIT_OK

    @staticmethod
    def _format_chain(image: FAT12Image, chain: List[int]) -> str:
        """Cluster numbers in chain order, followed by the status of the last link"""
        if not chain:
            return '(empty)'
        status = image.fat.classify(image.fat.decode_entry(chain[-1]))
        return f"{' -> '.join(str(c) for c in chain)} ({status})"

    def _print_geometry(self, boot: BootSector, fat: FatTable):
        rows = [
            ("OEM name", boot.oem_name),
            ("Bytes per sector", boot.bytes_per_sector),
            ("Sectors per cluster", boot.sectors_per_cluster),
            ("Reserved sectors", boot.reserved_sectors),
            ("FAT count", boot.num_fats),
            ("Sectors per FAT", boot.sectors_per_fat),
            ("Root entries", boot.root_entries),
            ("Total sectors", boot.total_sector_count),
            ("Media descriptor", f"0x{boot.media_descriptor:02X}"),
            ("Volume ID", f"0x{boot.volume_id:08X}"),
            ("Volume label", boot.volume_label),
            ("Filesystem type", boot.fs_type_label),
            ("Root directory LBA", boot.root_directory_lba),
            ("Data region LBA", boot.data_start_lba),
            ("Detected type", boot.fat_type),
            ("FAT entries", fat.entry_count),
            ("FAT media byte", f"0x{fat.media_byte:02X}" if fat.media_byte is not None else "-"),
        ]
        for label, value in rows:
            print(f"{label + ':':<22}{value}", file=self.stdout)

    def _print_listing(self, image: FAT12Image):
        label = image.root_directory.volume_label()
        if label:
            print(f"Volume: {label}", file=self.stdout)
        for entry in image.list_files():
            print(self._format_entry(entry), file=self.stdout)

    @staticmethod
    def _format_entry(entry: DirectoryEntry) -> str:
        size = '<DIR>' if entry.is_directory else str(entry.size)
        return (f"{entry.short_name:<12} {size:>10} {entry.first_cluster:>5} "
                f"{entry.attribute_flags} {entry.modified}")


def main(argv=None) -> int:
    return FAT12ReaderCLI().run(argv)


if __name__ == '__main__':
    sys.exit(main())
