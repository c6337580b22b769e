"""
Storage package for the key-value persistence layer
"""

from .kv_store import KeyValueStore, RedisKeyValueStore, InMemoryKeyValueStore

__all__ = [
    'KeyValueStore',
    'RedisKeyValueStore',
    'InMemoryKeyValueStore'
]
