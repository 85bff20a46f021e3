"""Trace-driven simulator of a multicore cache and DRAM memory hierarchy."""

__version__ = "0.1.0"
__all__ = ["config", "cache", "dram", "core", "memsys", "sim"]