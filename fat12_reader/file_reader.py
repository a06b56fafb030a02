#!/usr/bin/env python3

# Copyright (c) 2026 Stephen P Smith
# MIT License

"""
Cluster chain traversal for reading file contents
"""

import logging
from typing import Iterator

from .boot_sector import BootSector
from .directory import DirectoryEntry
from .errors import FAT12BadClusterError
from .fat_table import FatTable, FIRST_DATA_CLUSTER
from .sector_store import SectorStore

logger = logging.getLogger(__name__)


def cluster_to_lba(cluster: int, data_start_lba: int, sectors_per_cluster: int) -> int:
    """First sector of a data cluster. Cluster 2 is the first one in the data region."""
    return data_start_lba + (cluster - FIRST_DATA_CLUSTER) * sectors_per_cluster


def iter_file_clusters(entry: DirectoryEntry, store: SectorStore, fat: FatTable,
                       data_start_lba: int, boot: BootSector,
                       detect_loops: bool = True) -> Iterator[bytes]:
    """
    Yield a file's data one whole cluster at a time, following its FAT chain.

    The last chunk is a full cluster even when the file ends partway into it.

    Args:
        entry: The file's directory entry.
        store: Sector store to read the data region from.
        fat: The loaded FAT.
        data_start_lba: End of the root directory, where cluster 2 starts.
        boot: The volume geometry.
        detect_loops: Raise instead of cycling forever on a looped chain.

    Raises:
        FAT12BadClusterError: If the chain reaches the bad-cluster marker.
        FAT12CorruptionError: If the chain references a reserved cluster or loops.
        SectorReadError: If a cluster cannot be read in full.
    """
    for cluster in fat.iter_chain(entry.first_cluster, detect_loops=detect_loops):
        lba = cluster_to_lba(cluster, data_start_lba, boot.sectors_per_cluster)
        logger.debug(f"Reading cluster {cluster} at LBA {lba}")
        yield store.read_sectors(lba, boot.sectors_per_cluster)


def read_file(entry: DirectoryEntry, store: SectorStore, fat: FatTable,
              data_start_lba: int, boot: BootSector, detect_loops: bool = True) -> bytes:
    """
    Read every cluster of a file into one buffer.

    The result is a whole number of clusters long; truncating it to
    entry.size is left to the caller.

    Raises:
        FAT12BadClusterError: With .data holding the clusters read before the
            bad-cluster marker.
        FAT12CorruptionError: If the chain references a reserved cluster or loops.
        SectorReadError: If a cluster cannot be read in full.
    """
    data = bytearray()
    try:
        for chunk in iter_file_clusters(entry, store, fat, data_start_lba, boot, detect_loops):
            data.extend(chunk)
    except FAT12BadClusterError as e:
        raise FAT12BadClusterError(
            f"{entry.short_name}: {e} ({len(data)} bytes read)",
            cluster=e.cluster, data=bytes(data)) from e

    logger.debug(f"Read {len(data)} bytes for {entry.short_name} ({entry.size} bytes logical)")
    return bytes(data)
