"""
Meminfo - /proc/meminfo reader
"""
from pathlib import Path
from typing import Dict, Union


MEMINFO_FIELDS = ('MemTotal', 'MemFree', 'Buffers', 'Cached', 'SReclaimable')


def read_meminfo(path: Union[str, Path] = '/proc/meminfo') -> Dict[str, int]:
    """
    Read the memory counters used by the memory block.

    Args:
        path: meminfo file

    Returns:
        Dictionary of field name to value in kB

    Raises:
        OSError: If the file cannot be read
        ValueError: If a field is missing or malformed
    """
    values: Dict[str, int] = {}

    with open(path, 'r') as f:
        for line in f:
            name, _, rest = line.partition(':')
            if name not in MEMINFO_FIELDS:
                continue
            # Example: "MemTotal:       16318304 kB"
            fields = rest.split()
            if not fields:
                raise ValueError(f"Empty meminfo field: {name}")
            values[name] = int(fields[0])
            if len(values) == len(MEMINFO_FIELDS):
                break

    missing = [name for name in MEMINFO_FIELDS if name not in values]
    if missing:
        raise ValueError(f"Missing meminfo fields: {', '.join(missing)}")

    return values


def used_kilobytes(values: Dict[str, int]) -> int:
    """Memory in use excluding page cache and reclaimable slab"""
    cached_all = values['Cached'] + values['SReclaimable']
    return values['MemTotal'] - values['MemFree'] - cached_all
