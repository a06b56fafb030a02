#!/usr/bin/env python3

# Copyright (c) 2026 Stephen P Smith
# MIT License

"""
FAT12 reader exceptions.

All errors raised by the reader derive from FAT12Error so callers can catch
the whole family at once. A missing file is not an error: lookups return None.
"""

from typing import Optional


class FAT12Error(Exception):
    """Base class for all FAT12 reader errors"""
    pass


class SectorReadError(FAT12Error, IOError):
    """The backing image could not deliver the exact byte count requested"""
    pass


class FAT12FormatError(FAT12Error):
    """A fixed-layout structure is too short or fails validation"""
    pass


class FAT12CorruptionError(FAT12Error):
    """The filesystem structures contradict each other (loops, reserved references)"""
    pass


class FAT12BadClusterError(FAT12CorruptionError):
    """
    A cluster chain reached the bad-cluster marker (0xFF7).

    Attributes:
        cluster: The cluster whose FAT entry held the bad-cluster marker.
        data: Cluster data read before the chain hit the marker.
    """

    def __init__(self, message: str, cluster: Optional[int] = None, data: bytes = b''):
        super().__init__(message)
        self.cluster = cluster
        self.data = data
