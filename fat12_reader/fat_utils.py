#!/usr/bin/env python3

# Copyright (c) 2026 Stephen P Smith
# MIT License

"""
Helpers for 8.3 short names and packed FAT date/time stamps
"""

SHORT_NAME_LEN = 11
BASE_NAME_LEN = 8
EXTENSION_LEN = 3

# First name byte markers
ENTRY_END_MARKER = 0x00
ENTRY_DELETED_MARKER = 0xE5
# 0x05 stands in for a real leading 0xE5 (Kanji lead byte)
ENTRY_KANJI_E5 = 0x05


def decode_fat_time(time_value: int) -> str:
    """Decode FAT time format to HH:MM:SS string

    Bits 15-11: Hours (0-23)
    Bits 10-5: Minutes (0-59)
    Bits 4-0: Seconds/2 (0-29, multiply by 2 to get actual seconds)
    """
    hours = (time_value >> 11) & 0x1F
    minutes = (time_value >> 5) & 0x3F
    seconds = (time_value & 0x1F) * 2
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def decode_fat_date(date_value: int) -> str:
    """Decode FAT date format to YYYY-MM-DD string

    Bits 15-9: Year (0 = 1980, 127 = 2107)
    Bits 8-5: Month (1-12)
    Bits 4-0: Day (1-31)
    """
    year = ((date_value >> 9) & 0x7F) + 1980
    month = (date_value >> 5) & 0x0F
    day = date_value & 0x1F

    if month < 1 or month > 12 or day < 1 or day > 31:
        return "Invalid"

    return f"{year:04d}-{month:02d}-{day:02d}"


def format_83_name(filename: str) -> bytes:
    """Convert a "NAME.EXT" filename to the 11-byte on-disk form

    The name is upper-cased, split at the last dot, and each part is truncated
    and space padded: "readme.txt" -> b"README  TXT".

    Raises:
        ValueError: If the name cannot be encoded as ASCII.
    """
    if filename in ('.', '..'):
        return filename.encode('ascii').ljust(SHORT_NAME_LEN, b' ')

    base, dot, ext = filename.upper().rpartition('.')
    if not dot:
        base, ext = ext, ''

    try:
        base_bytes = base.encode('ascii')[:BASE_NAME_LEN].ljust(BASE_NAME_LEN, b' ')
        ext_bytes = ext.encode('ascii')[:EXTENSION_LEN].ljust(EXTENSION_LEN, b' ')
    except UnicodeEncodeError as e:
        raise ValueError(f"Filename '{filename}' is not representable as an 8.3 name") from e

    return base_bytes + ext_bytes


def decode_short_name(raw_name: bytes) -> str:
    """Turn an 11-byte on-disk name into its "NAME.EXT" display form"""
    name_bytes = bytes(raw_name[:BASE_NAME_LEN])
    if name_bytes[:1] == bytes([ENTRY_KANJI_E5]):
        name_bytes = bytes([ENTRY_DELETED_MARKER]) + name_bytes[1:]

    name = name_bytes.decode('cp437', errors='replace').rstrip()
    ext = bytes(raw_name[BASE_NAME_LEN:SHORT_NAME_LEN]).decode('cp437', errors='replace').rstrip()
    return f"{name}.{ext}" if ext else name


def render_printable(data: bytes) -> str:
    """Render file bytes for a terminal

    Printable ASCII is kept as is, line feeds stay line feeds, and every other
    byte is shown as <xx>.
    """
    parts = []
    for byte in data:
        if 0x20 <= byte < 0x7F:
            parts.append(chr(byte))
        elif byte == 0x0A:
            parts.append('\n')
        else:
            parts.append(f"<{byte:02x}>")
    return ''.join(parts)
