#!/usr/bin/env python3

# Copyright (c) 2026 Stephen P Smith
# MIT License

"""
FAT12 Root Directory

This module decodes the fixed-size root directory region of a FAT12 volume:
- Parsing 32-byte directory entries field by field.
- Exact 11-byte name lookup over every root directory slot.
- Listing in-use file entries.

The root directory sits directly after the FAT copies and its end marks the
start of the data region.
"""

import struct
import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Union

from .boot_sector import BootSector, DIRECTORY_ENTRY_SIZE
from .errors import FAT12FormatError
from .fat_utils import (decode_fat_date, decode_fat_time, decode_short_name,
                        SHORT_NAME_LEN, ENTRY_END_MARKER, ENTRY_DELETED_MARKER)
from .sector_store import SectorStore

logger = logging.getLogger(__name__)

# Attribute bits
ATTR_READ_ONLY = 0x01
ATTR_HIDDEN = 0x02
ATTR_SYSTEM = 0x04
ATTR_VOLUME_ID = 0x08
ATTR_DIRECTORY = 0x10
ATTR_ARCHIVE = 0x20
ATTR_LONG_NAME = 0x0F


@dataclass(frozen=True)
class DirectoryEntry:
    """Snapshot of one 32-byte directory slot"""
    index: int
    name: bytes
    attributes: int
    reserved: int
    creation_time_tenth: int
    creation_time: int
    creation_date: int
    last_accessed_date: int
    first_cluster_high: int
    last_modified_time: int
    last_modified_date: int
    first_cluster_low: int
    size: int

    @property
    def first_cluster(self) -> int:
        """FAT12 cluster numbers fit in 12 bits, so only the low half matters"""
        return self.first_cluster_low

    @property
    def is_end_marker(self) -> bool:
        return self.name[0] == ENTRY_END_MARKER

    @property
    def is_deleted(self) -> bool:
        return self.name[0] == ENTRY_DELETED_MARKER

    @property
    def is_free(self) -> bool:
        """Slot is unused or holds a deleted entry"""
        return self.is_end_marker or self.is_deleted

    @property
    def is_long_name_fragment(self) -> bool:
        return self.attributes == ATTR_LONG_NAME

    @property
    def is_volume_label(self) -> bool:
        return not self.is_long_name_fragment and bool(self.attributes & ATTR_VOLUME_ID)

    @property
    def is_directory(self) -> bool:
        return not self.is_long_name_fragment and bool(self.attributes & ATTR_DIRECTORY)

    @property
    def short_name(self) -> str:
        return decode_short_name(self.name)

    @property
    def modified(self) -> str:
        return f"{decode_fat_date(self.last_modified_date)} {decode_fat_time(self.last_modified_time)}"

    @property
    def attribute_flags(self) -> str:
        """Attributes as a compact RHSVDA string, '-' for unset bits"""
        flags = [(ATTR_READ_ONLY, 'R'), (ATTR_HIDDEN, 'H'), (ATTR_SYSTEM, 'S'),
                 (ATTR_VOLUME_ID, 'V'), (ATTR_DIRECTORY, 'D'), (ATTR_ARCHIVE, 'A')]
        return ''.join(char if self.attributes & bit else '-' for bit, char in flags)


def parse_directory_entry(raw: bytes, index: int = 0) -> DirectoryEntry:
    """
    Decode a 32-byte directory entry.

    Raises:
        FAT12FormatError: If raw is shorter than 32 bytes.
    """
    if len(raw) < DIRECTORY_ENTRY_SIZE:
        raise FAT12FormatError(
            f"Directory entry {index} too small: {len(raw)} bytes, need {DIRECTORY_ENTRY_SIZE}")

    return DirectoryEntry(
        index=index,
        name=bytes(raw[0:SHORT_NAME_LEN]),
        attributes=raw[11],
        reserved=raw[12],
        creation_time_tenth=raw[13],
        creation_time=struct.unpack('<H', raw[14:16])[0],
        creation_date=struct.unpack('<H', raw[16:18])[0],
        last_accessed_date=struct.unpack('<H', raw[18:20])[0],
        first_cluster_high=struct.unpack('<H', raw[20:22])[0],
        last_modified_time=struct.unpack('<H', raw[22:24])[0],
        last_modified_date=struct.unpack('<H', raw[24:26])[0],
        first_cluster_low=struct.unpack('<H', raw[26:28])[0],
        size=struct.unpack('<I', raw[28:32])[0],
    )


class RootDirectory:
    """The fixed-size FAT12 root directory"""

    def __init__(self, raw: bytes, entry_count: int, lba: int = 0, sector_count: int = 0):
        if len(raw) < entry_count * DIRECTORY_ENTRY_SIZE:
            raise FAT12FormatError(
                f"Root directory buffer holds {len(raw)} bytes, "
                f"need {entry_count * DIRECTORY_ENTRY_SIZE} for {entry_count} entries")

        self.lba = lba
        self.sector_count = sector_count
        self.entries: List[DirectoryEntry] = [
            parse_directory_entry(raw[i * DIRECTORY_ENTRY_SIZE:(i + 1) * DIRECTORY_ENTRY_SIZE], i)
            for i in range(entry_count)
        ]

    @property
    def end_lba(self) -> int:
        """First sector after the root directory, i.e. the start of the data region"""
        return self.lba + self.sector_count

    @classmethod
    def load(cls, store: SectorStore, boot: BootSector) -> 'RootDirectory':
        """
        Read the root directory region from the image.

        Raises:
            SectorReadError: If the directory sectors cannot be read in full.
        """
        lba = boot.root_directory_lba
        sectors = boot.root_directory_sectors
        logger.debug(f"Loading root directory: {boot.root_entries} entries, "
                     f"{sectors} sectors at LBA {lba}")
        raw = store.read_sectors(lba, sectors)
        return cls(raw, boot.root_entries, lba=lba, sector_count=sectors)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[DirectoryEntry]:
        return iter(self.entries)

    def find(self, name: Union[bytes, str], skip_free: bool = False) -> Optional[DirectoryEntry]:
        """
        Find an entry by its exact 11-byte on-disk name.

        No case folding or padding is applied: the caller passes the name in
        its stored form, e.g. b"KERNEL  BIN".

        Args:
            name: The 11-byte name, as bytes or an ASCII string.
            skip_free: Ignore unused (0x00) and deleted (0xE5) slots.

        Returns:
            The first matching entry in slot order, or None if nothing matches.
        """
        if isinstance(name, str):
            try:
                name = name.encode('ascii')
            except UnicodeEncodeError:
                logger.debug(f"Lookup name {name!r} is not ASCII, no entry can match")
                return None

        if len(name) != SHORT_NAME_LEN:
            logger.debug(f"Lookup name {name!r} is not {SHORT_NAME_LEN} bytes, no entry can match")
            return None

        for entry in self.entries:
            if skip_free and entry.is_free:
                continue
            if entry.name == name:
                logger.debug(f"Found {name!r} at slot {entry.index}, cluster {entry.first_cluster}, "
                             f"{entry.size} bytes")
                return entry

        logger.debug(f"No root directory entry named {name!r}")
        return None

    def iter_files(self) -> Iterator[DirectoryEntry]:
        """Yield in-use entries, skipping long name fragments and the volume label"""
        for entry in self.entries:
            if entry.is_end_marker:
                break
            if entry.is_deleted or entry.is_long_name_fragment or entry.is_volume_label:
                continue
            yield entry

    def volume_label(self) -> Optional[str]:
        """The label stored as a root directory entry, if any"""
        for entry in self.entries:
            if entry.is_end_marker:
                break
            if not entry.is_deleted and entry.is_volume_label:
                return entry.name.decode('cp437', errors='replace').rstrip()
        return None
