"""
ZenFlow Storage Port.

Key -> string persistence used by the state store. Two backends:
    - MemoryStorage: dict-backed, nothing survives the process
    - JsonFileStorage: one JSON document on disk, rewritten on every write
"""

from zenflow_mcp.storage.port import StoragePort, MemoryStorage, JsonFileStorage

__all__ = ["StoragePort", "MemoryStorage", "JsonFileStorage"]
