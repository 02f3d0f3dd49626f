from .memory_ttl_cache import MemoryTTLCache

__all__ = ["MemoryTTLCache"]
