#!/usr/bin/env python3

# Copyright (c) 2026 Stephen P Smith
# MIT License

"""
Read-only access to files in the root directory of FAT12 disk images
"""

from .boot_sector import BootSector, parse_boot_sector, validate_boot_sector
from .config import ReaderConfig
from .directory import DirectoryEntry, RootDirectory, parse_directory_entry
from .errors import (FAT12Error, SectorReadError, FAT12FormatError,
                     FAT12CorruptionError, FAT12BadClusterError)
from .fat_table import FatTable
from .fat_utils import format_83_name
from .file_reader import iter_file_clusters, read_file
from .handler import FAT12Image, read_boot_sector
from .sector_store import SectorStore

__version__ = "1.0.0"

__all__ = [
    'BootSector',
    'DirectoryEntry',
    'FAT12Image',
    'FatTable',
    'ReaderConfig',
    'RootDirectory',
    'SectorStore',
    'FAT12Error',
    'SectorReadError',
    'FAT12FormatError',
    'FAT12CorruptionError',
    'FAT12BadClusterError',
    'format_83_name',
    'iter_file_clusters',
    'parse_boot_sector',
    'parse_directory_entry',
    'read_boot_sector',
    'read_file',
    'validate_boot_sector',
]
