#!/usr/bin/env python3

# Copyright (c) 2026 Stephen P Smith
# MIT License

"""
Boot Sector Parser
Decodes the BIOS Parameter Block (BPB) and Extended Boot Record (EBR) of a FAT12 volume
"""

import struct
import logging
from dataclasses import dataclass
from typing import List

from .errors import FAT12FormatError

logger = logging.getLogger(__name__)

# BPB (36 bytes) + EBR (26 bytes)
BOOT_SECTOR_SIZE = 62
DIRECTORY_ENTRY_SIZE = 32

BOOT_SIGNATURE = b'\x55\xAA'
BOOT_SIGNATURE_OFFSET = 510

VALID_BYTES_PER_SECTOR = [512, 1024, 2048, 4096]
VALID_SECTORS_PER_CLUSTER = [1, 2, 4, 8, 16, 32, 64, 128]

# Microsoft FAT type thresholds (data cluster count)
FAT12_MAX_CLUSTERS = 4085
FAT16_MAX_CLUSTERS = 65525


@dataclass(frozen=True)
class BootSector:
    """Volume geometry read from sector 0"""
    jump_instruction: bytes
    oem_name: str
    bytes_per_sector: int
    sectors_per_cluster: int
    reserved_sectors: int
    num_fats: int
    root_entries: int
    total_sectors: int
    media_descriptor: int
    sectors_per_fat: int
    sectors_per_track: int
    number_of_heads: int
    hidden_sectors: int
    large_sector_count: int
    drive_number: int
    boot_signature: int
    volume_id: int
    volume_label: str
    fs_type_label: str

    @property
    def fat_lba(self) -> int:
        """First sector of the first FAT copy"""
        return self.reserved_sectors

    @property
    def fat_size_bytes(self) -> int:
        return self.sectors_per_fat * self.bytes_per_sector

    @property
    def root_directory_lba(self) -> int:
        return self.reserved_sectors + self.sectors_per_fat * self.num_fats

    @property
    def root_directory_size(self) -> int:
        return DIRECTORY_ENTRY_SIZE * self.root_entries

    @property
    def root_directory_sectors(self) -> int:
        # Partial final sector still occupies a whole sector
        return (self.root_directory_size + self.bytes_per_sector - 1) // self.bytes_per_sector

    @property
    def data_start_lba(self) -> int:
        """First sector of the data region (cluster 2), right after the root directory"""
        return self.root_directory_lba + self.root_directory_sectors

    @property
    def bytes_per_cluster(self) -> int:
        return self.bytes_per_sector * self.sectors_per_cluster

    @property
    def total_sector_count(self) -> int:
        """Sector count from the 16-bit field, or the 32-bit field when the former is 0"""
        if self.total_sectors != 0:
            return self.total_sectors
        return self.large_sector_count

    @property
    def cluster_count(self) -> int:
        """Number of clusters in the data region"""
        if self.sectors_per_cluster == 0:
            return 0
        data_sectors = max(self.total_sector_count - self.data_start_lba, 0)
        return data_sectors // self.sectors_per_cluster

    @property
    def fat_type(self) -> str:
        clusters = self.cluster_count
        if clusters < FAT12_MAX_CLUSTERS:
            return 'FAT12'
        elif clusters < FAT16_MAX_CLUSTERS:
            return 'FAT16'
        else:
            return 'FAT32'


def _decode_label(raw: bytes) -> str:
    return raw.decode('ascii', errors='ignore').rstrip()


def parse_boot_sector(raw: bytes, strict: bool = False) -> BootSector:
    """
    Decode the BPB and EBR fields from the start of a boot sector.

    Only the fixed 62-byte record is required. Fields are read one by one at
    their on-disk offsets, little-endian.

    Args:
        raw: Bytes from the start of sector 0 (usually the whole sector).
        strict: Also run validate_boot_sector() and reject a boot sector with
            any problem. Decoded values are identical either way.

    Returns:
        The decoded BootSector.

    Raises:
        FAT12FormatError: If raw is shorter than BOOT_SECTOR_SIZE, or strict
            validation fails.
    """
    if len(raw) < BOOT_SECTOR_SIZE:
        logger.critical(f"Boot sector too small: {len(raw)} bytes")
        raise FAT12FormatError(
            f"Boot sector too small: {len(raw)} bytes, need {BOOT_SECTOR_SIZE}")

    boot = BootSector(
        jump_instruction=bytes(raw[0:3]),
        oem_name=_decode_label(raw[3:11]),
        bytes_per_sector=struct.unpack('<H', raw[11:13])[0],
        sectors_per_cluster=raw[13],
        reserved_sectors=struct.unpack('<H', raw[14:16])[0],
        num_fats=raw[16],
        root_entries=struct.unpack('<H', raw[17:19])[0],
        total_sectors=struct.unpack('<H', raw[19:21])[0],
        media_descriptor=raw[21],
        sectors_per_fat=struct.unpack('<H', raw[22:24])[0],
        sectors_per_track=struct.unpack('<H', raw[24:26])[0],
        number_of_heads=struct.unpack('<H', raw[26:28])[0],
        hidden_sectors=struct.unpack('<I', raw[28:32])[0],
        large_sector_count=struct.unpack('<I', raw[32:36])[0],
        # Byte 37 is reserved
        drive_number=raw[36],
        boot_signature=raw[38],
        volume_id=struct.unpack('<I', raw[39:43])[0],
        volume_label=_decode_label(raw[43:54]),
        fs_type_label=_decode_label(raw[54:62]),
    )

    # Every sector address is scaled by this value, even in non-strict mode
    if boot.bytes_per_sector == 0:
        logger.critical("Boot sector declares 0 bytes per sector")
        raise FAT12FormatError("Boot sector declares 0 bytes per sector")

    logger.debug(f"Parsed boot sector: {boot.bytes_per_sector} bytes/sector, "
                 f"{boot.sectors_per_cluster} sectors/cluster, {boot.num_fats} FATs of "
                 f"{boot.sectors_per_fat} sectors, {boot.root_entries} root entries")

    if strict:
        problems = validate_boot_sector(boot, raw)
        if problems:
            logger.critical(f"Boot sector failed validation: {'; '.join(problems)}")
            raise FAT12FormatError(f"Invalid boot sector: {'; '.join(problems)}")

    return boot


def validate_boot_sector(boot: BootSector, raw: bytes = b'') -> List[str]:
    """
    Check a decoded boot sector for values no FAT12 volume can have.

    Args:
        boot: The decoded boot sector.
        raw: The raw sector bytes. The 0x55AA signature is only checked when
            the full 512-byte sector is supplied.

    Returns:
        A list of human-readable problems, empty if none were found.
    """
    problems = []

    if len(raw) >= BOOT_SIGNATURE_OFFSET + 2:
        if raw[BOOT_SIGNATURE_OFFSET:BOOT_SIGNATURE_OFFSET + 2] != BOOT_SIGNATURE:
            problems.append("missing 0x55AA boot signature")

    if boot.bytes_per_sector not in VALID_BYTES_PER_SECTOR:
        problems.append(f"bytes per sector {boot.bytes_per_sector} is not one of "
                        f"{VALID_BYTES_PER_SECTOR}")
    if boot.sectors_per_cluster not in VALID_SECTORS_PER_CLUSTER:
        problems.append(f"sectors per cluster {boot.sectors_per_cluster} is not a power of two <= 128")
    if boot.num_fats == 0:
        problems.append("FAT count is 0")
    if boot.root_entries == 0:
        problems.append("root directory entry count is 0")
    if boot.sectors_per_fat == 0:
        problems.append("sectors per FAT is 0")

    return problems
