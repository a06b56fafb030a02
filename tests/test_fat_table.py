import struct

import pytest

from conftest import ImageBuilder, set_fat_entry
from fat12_reader.boot_sector import parse_boot_sector
from fat12_reader.errors import FAT12BadClusterError, FAT12CorruptionError, SectorReadError
from fat12_reader.fat_table import FatTable


def le16(buf, offset):
    return struct.unpack('<H', buf[offset:offset + 2])[0]


class TestDecode:
    def test_packed_example(self):
        # FF0 FFF 003 004 005 006 007 008 on disk
        fat = FatTable(bytes.fromhex('F0FFFF034000056000078000'))
        assert [fat.decode_entry(c) for c in range(8)] == [
            0xFF0, 0xFFF, 0x003, 0x004, 0x005, 0x006, 0x007, 0x008]

    def test_even_odd_against_le16(self):
        # Arbitrary byte pattern
        buf = bytes((i * 37 + 11) & 0xFF for i in range(3 * 64 + 2))
        fat = FatTable(buf)
        for cluster in range(0, 128):
            offset = cluster * 3 // 2
            if cluster % 2 == 0:
                expected = le16(buf, offset) & 0x0FFF
            else:
                expected = le16(buf, offset) >> 4
            assert fat.decode_entry(cluster) == expected

    def test_neighbours_independent(self):
        fat_data = bytearray(12)
        set_fat_entry(fat_data, 2, 0xABC)
        set_fat_entry(fat_data, 3, 0x123)
        fat = FatTable(fat_data)
        assert fat.decode_entry(2) == 0xABC
        assert fat.decode_entry(3) == 0x123

    def test_max_values(self):
        fat_data = bytearray(6)
        set_fat_entry(fat_data, 2, 0xFFF)
        set_fat_entry(fat_data, 3, 0x000)
        fat = FatTable(fat_data)
        assert fat.decode_entry(2) == 0xFFF
        assert fat.decode_entry(3) == 0x000

    def test_values_stay_12_bit(self):
        fat = FatTable(b'\xFF' * 30)
        assert all(0 <= fat.decode_entry(c) <= 0xFFF for c in range(20))

    def test_out_of_range(self):
        fat = FatTable(b'\x00' * 6)
        # Cluster 3 uses bytes 4-5, cluster 4 would need bytes 6-7
        assert fat.decode_entry(3) == 0
        with pytest.raises(FAT12CorruptionError):
            fat.decode_entry(4)
        with pytest.raises(FAT12CorruptionError):
            fat.decode_entry(-1)

    def test_entry_count_and_media_byte(self):
        fat = FatTable(b'\xF0\xFF\xFF' + b'\x00' * 4605)
        assert fat.entry_count == 3072
        assert fat.media_byte == 0xF0
        assert FatTable(b'').media_byte is None


class TestClassify:
    @pytest.mark.parametrize("value,expected", [
        (0x000, FatTable.CLUSTER_FREE),
        (0x001, FatTable.CLUSTER_RESERVED),
        (0x002, FatTable.CLUSTER_USED),
        (0xFF6, FatTable.CLUSTER_USED),
        (0xFF7, FatTable.CLUSTER_BAD),
        (0xFF8, FatTable.CLUSTER_EOF),
        (0xFFF, FatTable.CLUSTER_EOF),
    ])
    def test_classify(self, value, expected):
        assert FatTable(b'').classify(value) == expected

    def test_sentinels(self):
        assert FatTable.is_end_of_chain(0xFF8)
        assert FatTable.is_end_of_chain(0xFFF)
        assert not FatTable.is_end_of_chain(0xFF7)
        assert FatTable.is_bad_cluster(0xFF7)
        assert not FatTable.is_bad_cluster(0xFF8)


class TestChain:
    def make_fat(self, links):
        fat_data = bytearray(64)
        for cluster, value in links.items():
            set_fat_entry(fat_data, cluster, value)
        return FatTable(fat_data)

    def test_simple_chain(self):
        fat = self.make_fat({2: 3, 3: 0xFFF})
        assert list(fat.iter_chain(2)) == [2, 3]

    def test_fragmented_chain(self):
        fat = self.make_fat({5: 9, 9: 4, 4: 0xFF8})
        assert list(fat.iter_chain(5)) == [5, 9, 4]

    @pytest.mark.parametrize("end", [0xFF8, 0xFF9, 0xFFC, 0xFFF])
    def test_any_end_marker(self, end):
        fat = self.make_fat({2: end})
        assert list(fat.iter_chain(2)) == [2]

    def test_empty_chain(self):
        fat = self.make_fat({})
        assert list(fat.iter_chain(0)) == []

    def test_bad_cluster(self):
        fat = self.make_fat({2: 3, 3: 0xFF7})
        seen = []
        with pytest.raises(FAT12BadClusterError) as excinfo:
            for cluster in fat.iter_chain(2):
                seen.append(cluster)
        assert seen == [2, 3]
        assert excinfo.value.cluster == 3

    def test_reserved_reference(self):
        fat = self.make_fat({2: 1})
        with pytest.raises(FAT12CorruptionError):
            list(fat.iter_chain(2))

    def test_free_reference(self):
        fat = self.make_fat({2: 3})
        with pytest.raises(FAT12CorruptionError):
            list(fat.iter_chain(2))

    def test_loop_detected(self):
        fat = self.make_fat({2: 3, 3: 2})
        with pytest.raises(FAT12CorruptionError):
            list(fat.iter_chain(2))

    def test_loop_check_disabled(self):
        fat = self.make_fat({2: 3, 3: 2})
        chain = fat.iter_chain(2, detect_loops=False)
        assert [next(chain) for _ in range(5)] == [2, 3, 2, 3, 2]


class TestLoad:
    def test_load_reads_first_fat(self, builder, make_store):
        builder.add_file(b'A       TXT', b'x' * 1000)
        store = make_store(builder.build())
        boot = parse_boot_sector(builder.boot_sector)

        fat = FatTable.load(store, boot)

        assert len(fat) == 9 * 512
        assert fat.media_byte == 0xF0
        assert list(fat.iter_chain(2)) == [2, 3]

    def test_load_truncated_image(self, make_store):
        builder = ImageBuilder()
        store = make_store(builder.build()[:5 * 512])
        boot = parse_boot_sector(builder.boot_sector)
        with pytest.raises(SectorReadError):
            FatTable.load(store, boot)
