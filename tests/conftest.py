#!/usr/bin/env python3

# Copyright (c) 2026 Stephen P Smith
# MIT License

"""
Shared fixtures: synthetic FAT12 images built byte by byte
"""

import io
import struct

import pytest

from fat12_reader.sector_store import SectorStore

BYTES_PER_SECTOR = 512
SECTORS_PER_CLUSTER = 1
RESERVED_SECTORS = 1
NUM_FATS = 2
SECTORS_PER_FAT = 9
ROOT_ENTRIES = 224
TOTAL_SECTORS = 2880
# 1 + 2 * 9 = 19, 224 * 32 / 512 = 14
ROOT_DIR_LBA = 19
DATA_START_LBA = 33


def build_boot_sector(bytes_per_sector=BYTES_PER_SECTOR, sectors_per_cluster=SECTORS_PER_CLUSTER,
                      reserved_sectors=RESERVED_SECTORS, num_fats=NUM_FATS,
                      root_entries=ROOT_ENTRIES, total_sectors=TOTAL_SECTORS,
                      media_descriptor=0xF0, sectors_per_fat=SECTORS_PER_FAT,
                      signature=True) -> bytearray:
    """A 1.44MB floppy boot sector unless told otherwise"""
    boot_sector = bytearray(512)
    boot_sector[0:3] = b'\xEB\x3C\x90'
    boot_sector[3:11] = b'MSDOS5.0'
    boot_sector[11:13] = struct.pack('<H', bytes_per_sector)
    boot_sector[13] = sectors_per_cluster
    boot_sector[14:16] = struct.pack('<H', reserved_sectors)
    boot_sector[16] = num_fats
    boot_sector[17:19] = struct.pack('<H', root_entries)
    boot_sector[19:21] = struct.pack('<H', total_sectors)
    boot_sector[21] = media_descriptor
    boot_sector[22:24] = struct.pack('<H', sectors_per_fat)
    boot_sector[24:26] = struct.pack('<H', 18)
    boot_sector[26:28] = struct.pack('<H', 2)
    boot_sector[28:32] = struct.pack('<I', 0)
    boot_sector[32:36] = struct.pack('<I', 0)
    boot_sector[36] = 0x00
    boot_sector[38] = 0x29
    boot_sector[39:43] = struct.pack('<I', 0x1234ABCD)
    boot_sector[43:54] = b'TESTDISK   '
    boot_sector[54:62] = b'FAT12   '
    if signature:
        boot_sector[510:512] = b'\x55\xAA'
    return boot_sector


def set_fat_entry(fat_data: bytearray, cluster: int, value: int):
    """Pack a 12-bit value into a FAT buffer, preserving the neighbouring entry"""
    offset = cluster + (cluster // 2)
    current = struct.unpack('<H', fat_data[offset:offset + 2])[0]

    if cluster & 1:
        new_value = (current & 0x000F) | (value << 4)
    else:
        new_value = (current & 0xF000) | (value & 0xFFF)

    fat_data[offset:offset + 2] = struct.pack('<H', new_value)


def build_dir_entry(name: bytes, cluster: int, size: int, attributes: int = 0x20,
                    cluster_high: int = 0, mod_time: int = 0, mod_date: int = 0) -> bytes:
    assert len(name) == 11
    entry = bytearray(32)
    entry[0:11] = name
    entry[11] = attributes
    entry[20:22] = struct.pack('<H', cluster_high)
    entry[22:24] = struct.pack('<H', mod_time)
    entry[24:26] = struct.pack('<H', mod_date)
    entry[26:28] = struct.pack('<H', cluster)
    entry[28:32] = struct.pack('<I', size)
    return bytes(entry)


class ImageBuilder:
    """
    Builds a FAT12 image in memory.

    Files are added with explicit cluster lists so tests control the exact
    chain layout, including fragmentation and corrupt links.
    """

    def __init__(self, **geometry):
        self.boot_sector = build_boot_sector(**geometry)
        self.bytes_per_sector = struct.unpack('<H', self.boot_sector[11:13])[0]
        self.sectors_per_cluster = self.boot_sector[13]
        self.reserved_sectors = struct.unpack('<H', self.boot_sector[14:16])[0]
        self.num_fats = self.boot_sector[16]
        self.root_entries = struct.unpack('<H', self.boot_sector[17:19])[0]
        self.total_sectors = struct.unpack('<H', self.boot_sector[19:21])[0]
        self.sectors_per_fat = struct.unpack('<H', self.boot_sector[22:24])[0]

        self.fat = bytearray(self.sectors_per_fat * self.bytes_per_sector)
        self.fat[0] = self.boot_sector[21]
        self.fat[1] = 0xFF
        self.fat[2] = 0xFF
        self.root = bytearray(self.root_sectors * self.bytes_per_sector)
        self.cluster_data = {}
        self.next_slot = 0

    @property
    def bytes_per_cluster(self) -> int:
        return self.bytes_per_sector * self.sectors_per_cluster

    @property
    def root_lba(self) -> int:
        return self.reserved_sectors + self.sectors_per_fat * self.num_fats

    @property
    def root_sectors(self) -> int:
        return (self.root_entries * 32 + self.bytes_per_sector - 1) // self.bytes_per_sector

    @property
    def data_start_lba(self) -> int:
        return self.root_lba + self.root_sectors

    def cluster_offset(self, cluster: int) -> int:
        return (self.data_start_lba + (cluster - 2) * self.sectors_per_cluster) * self.bytes_per_sector

    def set_fat(self, cluster: int, value: int):
        set_fat_entry(self.fat, cluster, value)

    def set_slot(self, slot: int, raw_entry: bytes):
        self.root[slot * 32:(slot + 1) * 32] = raw_entry
        self.next_slot = max(self.next_slot, slot + 1)

    def add_file(self, name: bytes, data: bytes, clusters=None, end_marker: int = 0xFFF,
                 attributes: int = 0x20, size=None) -> list:
        """Store data across clusters and link them. Returns the cluster list."""
        needed = max((len(data) + self.bytes_per_cluster - 1) // self.bytes_per_cluster, 0)
        if clusters is None:
            start = max([2] + [c + 1 for c in self.cluster_data])
            clusters = list(range(start, start + needed))

        for i, cluster in enumerate(clusters):
            chunk = data[i * self.bytes_per_cluster:(i + 1) * self.bytes_per_cluster]
            self.cluster_data[cluster] = chunk.ljust(self.bytes_per_cluster, b'\x00')
            following = clusters[i + 1] if i + 1 < len(clusters) else end_marker
            self.set_fat(cluster, following)

        first = clusters[0] if clusters else 0
        file_size = len(data) if size is None else size
        self.set_slot(self.next_slot, build_dir_entry(name, first, file_size, attributes))
        return clusters

    def fill_cluster(self, cluster: int, data: bytes):
        self.cluster_data[cluster] = data.ljust(self.bytes_per_cluster, b'\x00')

    def build(self) -> bytes:
        image = bytearray(self.total_sectors * self.bytes_per_sector)
        image[0:len(self.boot_sector)] = self.boot_sector

        fat_start = self.reserved_sectors * self.bytes_per_sector
        for i in range(self.num_fats):
            offset = fat_start + i * len(self.fat)
            image[offset:offset + len(self.fat)] = self.fat

        root_start = self.root_lba * self.bytes_per_sector
        image[root_start:root_start + len(self.root)] = self.root

        for cluster, chunk in self.cluster_data.items():
            offset = self.cluster_offset(cluster)
            image[offset:offset + len(chunk)] = chunk
        return bytes(image)

    def write(self, path) -> str:
        with open(path, 'wb') as f:
            f.write(self.build())
        return str(path)


@pytest.fixture
def builder():
    return ImageBuilder()


@pytest.fixture
def make_store():
    """Wrap raw image bytes in a SectorStore backed by an in-memory file"""
    stores = []

    def _make(data: bytes, bytes_per_sector: int = BYTES_PER_SECTOR) -> SectorStore:
        store = SectorStore(io.BytesIO(data), bytes_per_sector)
        stores.append(store)
        return store

    yield _make
    for store in stores:
        store.close()
