#!/usr/bin/env python3

# Copyright (c) 2026 Stephen P Smith
# MIT License

"""
Sector-level access to a disk image.

A SectorStore wraps a seekable binary file object and hands out whole sectors
by logical block address. Reads are all-or-nothing: a short read raises
SectorReadError instead of returning a partial buffer.
"""

import logging
from typing import BinaryIO

from .errors import SectorReadError

logger = logging.getLogger(__name__)

DEFAULT_BYTES_PER_SECTOR = 512


class SectorStore:
    """Read-only block device view over a disk image"""

    def __init__(self, fileobj: BinaryIO, bytes_per_sector: int = DEFAULT_BYTES_PER_SECTOR,
                 name: str = '<memory>'):
        self._file = fileobj
        self.bytes_per_sector = bytes_per_sector
        self.name = name

    @classmethod
    def open(cls, image_path: str) -> 'SectorStore':
        """
        Open a disk image file for reading.

        Raises:
            OSError: If the file cannot be opened.
        """
        logger.debug(f"Opening image {image_path}")
        return cls(open(image_path, 'rb'), name=str(image_path))

    @property
    def closed(self) -> bool:
        return self._file is None

    def close(self):
        if self._file is not None:
            logger.debug(f"Closing image {self.name}")
            self._file.close()
            self._file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def read(self, offset: int, length: int) -> bytes:
        """
        Read exactly `length` bytes starting at byte `offset`.

        Raises:
            SectorReadError: If the store is closed, the seek fails, or fewer
                than `length` bytes are available.
        """
        if self._file is None:
            raise SectorReadError(f"Image {self.name} is closed")
        if offset < 0 or length < 0:
            raise SectorReadError(f"Invalid read at offset {offset}, length {length}")

        try:
            self._file.seek(offset)
            data = self._file.read(length)
        except OSError as e:
            logger.error(f"Read of {length} bytes at offset {offset} failed: {e}")
            raise SectorReadError(f"Read of {length} bytes at offset {offset} failed: {e}") from e

        if len(data) != length:
            logger.error(f"Short read at offset {offset}: wanted {length} bytes, got {len(data)}")
            raise SectorReadError(
                f"Short read at offset {offset}: wanted {length} bytes, got {len(data)}")
        return data

    def read_sectors(self, lba: int, count: int) -> bytes:
        """
        Read `count` whole sectors starting at logical block address `lba`.

        Returns:
            Exactly count * bytes_per_sector bytes.
        """
        if lba < 0 or count < 0:
            raise SectorReadError(f"Invalid sector range: LBA {lba}, count {count}")
        return self.read(lba * self.bytes_per_sector, count * self.bytes_per_sector)
