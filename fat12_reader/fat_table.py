#!/usr/bin/env python3

# Copyright (c) 2026 Stephen P Smith
# MIT License

"""
FAT12 File Allocation Table

The FAT is kept in memory exactly as stored on disk. FAT12 packs two 12-bit
entries into three bytes:

    bytes:   F0 FF FF 03 40 00 ...
    entries: FF0 FFF 003 004 ...

For cluster n the 16-bit little-endian word at byte n * 3 // 2 holds the entry.
Even clusters use the low 12 bits of that word, odd clusters the high 12 bits.
"""

import struct
import logging
from typing import Iterator, Optional, Set

from .boot_sector import BootSector
from .errors import FAT12CorruptionError, FAT12BadClusterError
from .sector_store import SectorStore

logger = logging.getLogger(__name__)

FAT12_ENTRY_MASK = 0x0FFF
FAT12_FREE = 0x000
FAT12_RESERVED = 0x001
FAT12_BAD_CLUSTER = 0xFF7
FAT12_END_OF_CHAIN = 0xFF8  # any value >= this ends a chain
FIRST_DATA_CLUSTER = 2


class FatTable:
    """In-memory copy of the first FAT with on-demand 12-bit decoding"""

    # Cluster status constants
    CLUSTER_FREE = 'FREE'
    CLUSTER_RESERVED = 'RESERVED'
    CLUSTER_BAD = 'BAD'
    CLUSTER_EOF = 'EOF'
    CLUSTER_USED = 'USED'

    def __init__(self, fat_data: bytes):
        self.fat_data = bytes(fat_data)

    @classmethod
    def load(cls, store: SectorStore, boot: BootSector) -> 'FatTable':
        """
        Read the first FAT copy from the image.

        Args:
            store: Sector store with bytes_per_sector already set from boot.
            boot: The volume geometry.

        Raises:
            SectorReadError: If the FAT sectors cannot be read in full.
        """
        logger.debug(f"Loading FAT: {boot.sectors_per_fat} sectors at LBA {boot.fat_lba}")
        return cls(store.read_sectors(boot.fat_lba, boot.sectors_per_fat))

    def __len__(self) -> int:
        return len(self.fat_data)

    @property
    def entry_count(self) -> int:
        """Number of complete 12-bit entries the buffer holds"""
        return (len(self.fat_data) * 8) // 12

    @property
    def media_byte(self) -> Optional[int]:
        """Low byte of entry 0, which mirrors the media descriptor"""
        return self.fat_data[0] if self.fat_data else None

    def decode_entry(self, cluster: int) -> int:
        """
        Get the FAT12 entry for a cluster.

        Args:
            cluster: The cluster index.

        Returns:
            The 12-bit value stored for the cluster.

        Raises:
            FAT12CorruptionError: If the entry lies outside the loaded FAT.
        """
        offset = cluster * 3 // 2

        if cluster < 0 or offset + 2 > len(self.fat_data):
            logger.error(f"FAT entry for cluster {cluster} is outside the FAT "
                         f"({len(self.fat_data)} bytes)")
            raise FAT12CorruptionError(f"Cluster {cluster} is outside the FAT")

        value = struct.unpack('<H', self.fat_data[offset:offset + 2])[0]

        if cluster % 2 == 0:
            return value & FAT12_ENTRY_MASK
        else:
            return value >> 4

    @staticmethod
    def is_end_of_chain(value: int) -> bool:
        return value >= FAT12_END_OF_CHAIN

    @staticmethod
    def is_bad_cluster(value: int) -> bool:
        return value == FAT12_BAD_CLUSTER

    def classify(self, value: int) -> str:
        """
        Classify a FAT12 entry value.

        Returns:
            One of the CLUSTER_* constants (FREE, RESERVED, BAD, EOF, USED).
        """
        if value == FAT12_FREE:
            return self.CLUSTER_FREE
        elif value == FAT12_RESERVED:
            return self.CLUSTER_RESERVED
        elif value == FAT12_BAD_CLUSTER:
            return self.CLUSTER_BAD
        elif value >= FAT12_END_OF_CHAIN:
            return self.CLUSTER_EOF
        else:
            return self.CLUSTER_USED

    def iter_chain(self, start_cluster: int, detect_loops: bool = True) -> Iterator[int]:
        """
        Yield the cluster numbers of the chain beginning at start_cluster.

        A start cluster of 0 is an empty chain. Each cluster is yielded before
        its own FAT entry is decoded, so a consumer sees every usable cluster
        ahead of any error about the link that follows it.

        Raises:
            FAT12BadClusterError: If a link holds the bad-cluster marker.
            FAT12CorruptionError: On a reference to a reserved cluster or,
                with detect_loops, a cluster visited twice.
        """
        if start_cluster == FAT12_FREE:
            return

        current = start_cluster
        visited: Set[int] = set()

        while True:
            if current < FIRST_DATA_CLUSTER:
                logger.error(f"Cluster chain from {start_cluster} references reserved cluster {current}")
                raise FAT12CorruptionError(
                    f"Cluster chain from {start_cluster} references reserved cluster {current}")
            if detect_loops:
                if current in visited:
                    logger.error(f"Loop detected in cluster chain from {start_cluster} at {current}")
                    raise FAT12CorruptionError(f"Loop detected in cluster chain at {current}")
                visited.add(current)

            yield current

            following = self.decode_entry(current)
            if self.is_bad_cluster(following):
                logger.error(f"Cluster {current} is followed by the bad-cluster marker")
                raise FAT12BadClusterError(
                    f"Bad cluster marker after cluster {current}", cluster=current)
            if self.is_end_of_chain(following):
                return
            current = following
