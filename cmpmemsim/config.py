"""Shared enumerations, the global clock and the simulator configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

MAX_CORES = 2


class InstType(IntEnum):
    """Kind of instruction recorded in a trace."""

    ALU = 0
    LOAD = 1
    STORE = 2
    OTHER = 3


class AccessType(IntEnum):
    """Kind of memory access issued by a core."""

    IFETCH = 0
    LOAD = 1
    STORE = 2


class SimMode(IntEnum):
    """Which memory-system configuration is simulated."""

    NONE = 0
    A = 1
    B = 2
    C = 3
    D = 4
    E = 5
    F = 6


@dataclass
class Clock:
    """The simulation cycle counter shared by every component."""

    cycle: int = 0

    def advance(self) -> int:
        """Move to the next cycle and return it."""
        self.cycle += 1
        return self.cycle


@dataclass
class SimConfig:
    """All parameters that shape a simulation run."""

    mode: SimMode = SimMode.A
    line_size: int = 64
    repl_policy: int = 0
    dcache_size: int = 32 * 1024
    dcache_assoc: int = 8
    icache_size: int = 32 * 1024
    icache_assoc: int = 8
    l2cache_size: int = 1024 * 1024
    l2cache_assoc: int = 16
    l2cache_repl: int = 0
    swp_core0_ways: int = 0
    dram_page_policy: int = 0
    trace_files: list[str] = field(default_factory=list)

    def num_cores(self) -> int:
        """Number of cores: one per trace file, at least one."""
        return len(self.trace_files) or 1