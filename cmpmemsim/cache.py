"""Set-associative cache model with LRU, LFU+MRU and static way partitioning."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Sequence

from .config import Clock

MAX_WAYS = 16
LFU_COUNT_MAX = (1 << 6) - 1


class ReplPolicy(IntEnum):
    """Victim selection policy."""

    LRU = 0
    LFU_MRU = 1
    SWP = 2


@dataclass
class CacheLine:
    """Bookkeeping for one resident block; no data is stored."""

    tag: int = 0
    valid: bool = False
    dirty: bool = False
    core_id: int = 0
    last_access_cycle: int = 0
    lfu_count: int = 0


def _less_frequent(a: CacheLine, b: CacheLine) -> bool:
    """True if ``a`` is a better LFU victim than ``b``; ties go to the most recent."""
    if a.lfu_count == b.lfu_count:
        return a.last_access_cycle > b.last_access_cycle
    return a.lfu_count < b.lfu_count


def _min_index(ways: Sequence[CacheLine], less: Callable[[CacheLine, CacheLine], bool]) -> int:
    """Index of the first element no other element is strictly less than."""
    best = 0
    for pos, line in enumerate(ways):
        if pos and less(line, ways[best]):
            best = pos
    return best


class Cache:
    """A cache of ``num_sets`` sets, each an MRU-ordered list of up to ``assoc`` lines."""

    def __init__(
        self,
        num_sets: int,
        assoc: int,
        policy: ReplPolicy | int,
        clock: Clock,
        swp_core0_ways: int = 0,
    ) -> None:
        if num_sets < 1:
            raise ValueError(f"a cache needs at least one set, got {num_sets}")
        if assoc < 1:
            raise ValueError(f"a cache needs at least one way, got {assoc}")
        self.num_sets = num_sets
        self.assoc = assoc
        self.policy = ReplPolicy(policy)
        self.clock = clock
        self.swp_core0_ways = swp_core0_ways
        self.sets: list[list[CacheLine]] = [[] for _ in range(num_sets)]
        self.last_evicted = CacheLine()

        self.stat_read_access = 0
        self.stat_write_access = 0
        self.stat_read_miss = 0
        self.stat_write_miss = 0
        self.stat_evicts = 0
        self.stat_dirty_evicts = 0

    @classmethod
    def by_size(
        cls,
        size: int,
        assoc: int,
        line_size: int,
        repl_policy: ReplPolicy | int,
        clock: Clock,
        swp_core0_ways: int = 0,
    ) -> "Cache":
        """Build a cache from its capacity in bytes rather than its set count."""
        if assoc > MAX_WAYS:
            raise ValueError(f"at most {MAX_WAYS} ways are supported, got {assoc}")
        if assoc < 1 or line_size < 1:
            raise ValueError("associativity and line size must be positive")
        return cls((size // line_size) // assoc, assoc, repl_policy, clock, swp_core0_ways)

    def _ways(self, lineaddr: int) -> list[CacheLine]:
        return self.sets[lineaddr & (self.num_sets - 1)]

    def access(self, lineaddr: int, is_write: bool, core_id: int) -> bool:
        """Look up a line; return True on a hit and update its recency and state."""
        if is_write:
            self.stat_write_access += 1
        else:
            self.stat_read_access += 1

        ways = self._ways(lineaddr)
        match = next(
            (pos for pos, line in enumerate(ways) if line.valid and line.tag == lineaddr),
            None,
        )
        if match is None:
            if is_write:
                self.stat_write_miss += 1
            else:
                self.stat_read_miss += 1
            return False

        line = ways.pop(match)
        ways.insert(0, line)
        if line.lfu_count < LFU_COUNT_MAX:
            line.lfu_count += 1
        line.dirty = line.dirty or bool(is_write)
        line.last_access_cycle = self.clock.cycle
        return True

    def install(self, lineaddr: int, is_write: bool, core_id: int) -> CacheLine:
        """Insert a line, evicting if the set is full; return the victim (invalid if none)."""
        ways = self._ways(lineaddr)
        self.last_evicted = CacheLine()
        if len(ways) >= self.assoc:
            self._evict(ways, core_id)
        ways.insert(
            0,
            CacheLine(
                tag=lineaddr,
                valid=True,
                dirty=bool(is_write),
                core_id=core_id,
                last_access_cycle=self.clock.cycle,
                lfu_count=0,
            ),
        )
        return self.last_evicted

    def _evict(self, ways: list[CacheLine], core_id: int) -> None:
        if self.policy is ReplPolicy.LRU:
            victim = len(ways) - 1
        elif self.policy is ReplPolicy.LFU_MRU:
            victim = _min_index(ways, _less_frequent)
        else:
            victim = self._swp_victim(ways, core_id)
        self.last_evicted = ways.pop(victim)
        self.stat_evicts += 1
        if self.last_evicted.dirty:
            self.stat_dirty_evicts += 1

    def _swp_victim(self, ways: list[CacheLine], core_id: int) -> int:
        core1_ways = self.assoc - self.swp_core0_ways
        owned = sum(1 for line in ways if line.core_id == core_id)
        over_quota = owned >= (self.swp_core0_ways if core_id == 0 else core1_ways)

        def own_first(a: CacheLine, b: CacheLine) -> bool:
            if a.core_id == core_id and b.core_id == core_id:
                return _less_frequent(a, b)
            return a.core_id == core_id

        def others_first(a: CacheLine, b: CacheLine) -> bool:
            if a.core_id != core_id and b.core_id != core_id:
                return _less_frequent(a, b)
            return a.core_id != core_id

        return _min_index(ways, own_first if over_quota else others_first)

    def format_stats(self, header: str) -> str:
        """Render the access and miss statistics as a report block."""
        read_mr = self.stat_read_miss / self.stat_read_access if self.stat_read_access else 0.0
        write_mr = self.stat_write_miss / self.stat_write_access if self.stat_write_access else 0.0
        return (
            f"\n{header}_READ_ACCESS    \t\t : {self.stat_read_access:10d}"
            f"\n{header}_WRITE_ACCESS   \t\t : {self.stat_write_access:10d}"
            f"\n{header}_READ_MISS      \t\t : {self.stat_read_miss:10d}"
            f"\n{header}_WRITE_MISS     \t\t : {self.stat_write_miss:10d}"
            f"\n{header}_READ_MISS_PERC  \t\t : {100 * read_mr:10.3f}"
            f"\n{header}_WRITE_MISS_PERC \t\t : {100 * write_mr:10.3f}"
            f"\n{header}_DIRTY_EVICTS   \t\t : {self.stat_dirty_evicts:10d}"
            "\n"
        )