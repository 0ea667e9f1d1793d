"""
Data formatting utilities.
"""
import re

BYTE_UNITS = ['B', 'KB', 'MB', 'GB', 'TB', 'PB']

_SIZE_PATTERN = re.compile(r'^\s*(\d+(?:\.\d+)?)\s*([KMGTP]?)(?:I?B)?\s*$', re.IGNORECASE)


def format_bytes(size_in_bytes, precision=2):
    """Format a byte count in human readable form, e.g. 1073741824 -> '1 GB'"""
    size = float(size_in_bytes or 0)
    index = 0
    while size >= 1024 and index < len(BYTE_UNITS) - 1:
        size /= 1024.0
        index += 1

    rounded = round(size, precision)
    if rounded == int(rounded):
        rounded = int(rounded)
    return f"{rounded} {BYTE_UNITS[index]}"


def parse_bytes(value):
    """
    Parse a size such as '512M', '1.5 GB', '128k' or '2048' into bytes.
    Integers pass through unchanged.
    """
    if isinstance(value, (int, float)):
        return int(value)

    match = _SIZE_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"Invalid size value: {value!r}")

    number, unit = match.groups()
    multiplier = 1024 ** ('BKMGTP'.index(unit.upper()) if unit else 0)
    return int(float(number) * multiplier)


def humanize_check_name(name):
    """'disk_space' -> 'Disk Space'"""
    return name.replace('_', ' ').replace('-', ' ').title()
