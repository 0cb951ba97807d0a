from .memory_service import MemoryService

__all__ = ["MemoryService"]
