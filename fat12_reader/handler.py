#!/usr/bin/env python3

# Copyright (c) 2026 Stephen P Smith
# MIT License

"""
FAT12 Image Handler
Read-only access to the files in the root directory of a FAT12 disk image
"""

import logging
from typing import Iterator, List, Optional, Union

from .boot_sector import BootSector, parse_boot_sector, BOOT_SECTOR_SIZE
from .config import ReaderConfig
from .directory import DirectoryEntry, RootDirectory
from .fat_table import FatTable
from .file_reader import iter_file_clusters, read_file
from .sector_store import SectorStore, DEFAULT_BYTES_PER_SECTOR

logger = logging.getLogger(__name__)


def read_boot_sector(store: SectorStore, strict: bool = False) -> BootSector:
    """
    Read and decode the boot sector, then switch the store to the volume's sector size.

    Only the fixed BPB/EBR record is read unless strict validation needs the
    whole first sector for the 0x55AA signature.

    Raises:
        SectorReadError: If the image is too short to hold the record.
        FAT12FormatError: If the record is invalid under strict validation.
    """
    length = DEFAULT_BYTES_PER_SECTOR if strict else BOOT_SECTOR_SIZE
    boot = parse_boot_sector(store.read(0, length), strict=strict)

    if boot.fat_type != 'FAT12':
        logger.warning(f"Geometry describes {boot.cluster_count} clusters ({boot.fat_type}), "
                       f"reading as FAT12 anyway")

    store.bytes_per_sector = boot.bytes_per_sector
    return boot


class FAT12Image:
    """
    An open FAT12 image with its geometry, FAT and root directory loaded.

    The image owns its SectorStore and closes it on close() or when used as
    a context manager. Use open() or from_store() to load everything in one go.
    """

    def __init__(self, store: SectorStore, boot_sector: BootSector, fat: FatTable,
                 root_directory: RootDirectory, config: Optional[ReaderConfig] = None):
        self.store = store
        self.image_path = store.name
        self.boot_sector = boot_sector
        self.fat = fat
        self.root_directory = root_directory
        self.config = config or ReaderConfig()

    @classmethod
    def open(cls, image_path: str, config: Optional[ReaderConfig] = None) -> 'FAT12Image':
        """
        Open an image file and load its geometry, FAT and root directory.

        Raises:
            OSError: If the image file cannot be opened.
            SectorReadError, FAT12FormatError: See from_store().
        """
        logger.debug(f"Initializing FAT12Image with {image_path}")
        return cls.from_store(SectorStore.open(image_path), config)

    @classmethod
    def from_store(cls, store: SectorStore, config: Optional[ReaderConfig] = None) -> 'FAT12Image':
        """
        Load an image from an already opened store, taking ownership of it.

        The store is closed if any part of loading fails.

        Raises:
            SectorReadError: If a region cannot be read in full.
            FAT12FormatError: If the boot sector is too short or invalid.
        """
        config = config or ReaderConfig()
        try:
            boot = read_boot_sector(store, strict=config.strict_boot_sector)
            fat = FatTable.load(store, boot)
            root = RootDirectory.load(store, boot)
        except Exception:
            store.close()
            raise

        logger.debug(f"Loaded {store.name}: root directory at LBA {root.lba}, "
                     f"data region at LBA {root.end_lba}")
        return cls(store, boot, fat, root, config)

    @property
    def data_start_lba(self) -> int:
        return self.root_directory.end_lba

    def close(self):
        self.store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def find_file(self, name: Union[bytes, str]) -> Optional[DirectoryEntry]:
        """
        Find a root directory entry by its 11-byte on-disk name.

        Returns:
            The entry, or None if no slot carries that name.
        """
        return self.root_directory.find(name, skip_free=self.config.skip_free_entries)

    def list_files(self) -> List[DirectoryEntry]:
        return list(self.root_directory.iter_files())

    def read_file(self, entry: DirectoryEntry) -> bytes:
        """Read a file's clusters. The result is padded to a whole cluster."""
        logger.debug(f"Reading '{entry.short_name}' (Size: {entry.size})")
        return read_file(entry, self.store, self.fat, self.data_start_lba, self.boot_sector,
                         detect_loops=self.config.detect_chain_loops)

    def iter_file_clusters(self, entry: DirectoryEntry) -> Iterator[bytes]:
        """Lazily yield a file's data one cluster at a time"""
        return iter_file_clusters(entry, self.store, self.fat, self.data_start_lba,
                                  self.boot_sector, detect_loops=self.config.detect_chain_loops)

    def extract_file(self, entry: DirectoryEntry) -> bytes:
        """
        Read a file and cut it to its logical size.

        Raises:
            FAT12BadClusterError, FAT12CorruptionError, SectorReadError: See read_file().
        """
        data = self.read_file(entry)
        if len(data) < entry.size:
            logger.warning(f"'{entry.short_name}' chain ends early: expected {entry.size} bytes, "
                           f"got {len(data)}")
        return data[:entry.size]

    def cluster_chain(self, entry: DirectoryEntry) -> List[int]:
        """The cluster numbers a file occupies, in order"""
        return list(self.fat.iter_chain(entry.first_cluster,
                                        detect_loops=self.config.detect_chain_loops))
