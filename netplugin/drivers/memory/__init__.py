from netplugin.drivers.memory.memory import MemoryStateDriver

__all__ = ["MemoryStateDriver"]
