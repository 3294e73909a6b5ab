"""
Shuffle helpers: stable partitioning and in-memory grouping by key
"""

import zlib
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Tuple


def partition_for(key: Any, num_partitions: int) -> int:
    """
    Pick the reduce partition for a key.

    CRC32 instead of hash(): str hashes are salted per process, and every map
    task must route a given key to the same partition.
    """
    return zlib.crc32(str(key).encode('utf-8')) % num_partitions


def group_by_key(pairs: Iterable[Tuple[Any, Any]]) -> Dict[Any, List[Any]]:
    """Group (key, value) pairs into {key: [values]}, keeping arrival order of values"""
    groups = defaultdict(list)
    for key, value in pairs:
        groups[key].append(value)
    return dict(groups)
