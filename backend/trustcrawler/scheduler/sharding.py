"""
Work partitioning across independent worker processes.

A record belongs to exactly one worker: the first 8 bytes of SHA-256 over the
record id (UTF-8), read as a big-endian unsigned integer, modulo the worker
count. The hash is stable across processes, hosts and Python versions.
Bump SHARD_HASH_VERSION if the function ever changes, since every worker in
a deployment must agree on it.
"""

import hashlib

SHARD_HASH_VERSION = 1


def shard_of(record_id: str, total_workers: int) -> int:
    if total_workers < 1:
        raise ValueError("total_workers must be >= 1")
    digest = hashlib.sha256(str(record_id).encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") % total_workers


def owns(record_id: str, worker_id: int, total_workers: int) -> bool:
    """True if worker_id is responsible for record_id."""
    return shard_of(record_id, total_workers) == worker_id
