"""Memory hierarchy: private L1 caches, a shared L2 and DRAM, per simulation mode."""

from __future__ import annotations

from .cache import Cache
from .config import AccessType, Clock, SimConfig, SimMode
from .dram import Dram

PAGE_SIZE = 4096

DCACHE_HIT_LATENCY = 1
ICACHE_HIT_LATENCY = 1
L2CACHE_HIT_LATENCY = 10


def convert_vpn_to_pfn(vpn: int, core_id: int, num_cores: int) -> int:
    """Map a virtual page number of a core to a physical frame number.

    The mapping gives each of the two cores a disjoint set of frames.
    """
    if num_cores != 2:
        raise ValueError(f"page mapping is defined for exactly 2 cores, got {num_cores}")
    tail = vpn & 0x000FFFFF
    head = vpn >> 20
    return tail + (core_id << 21) + (head << 21)


class Memsys:
    """The caches and memory behind the cores, wired up according to the mode."""

    def __init__(self, config: SimConfig, clock: Clock) -> None:
        self.config = config
        self.clock = clock
        self.mode = SimMode(config.mode)
        self.num_cores = config.num_cores()

        self.dcache: Cache | None = None
        self.icache: Cache | None = None
        self.dcache_coreid: list[Cache] = []
        self.icache_coreid: list[Cache] = []
        self.l2cache: Cache | None = None
        self.dram: Dram | None = None

        self.stat_ifetch_access = 0
        self.stat_load_access = 0
        self.stat_store_access = 0
        self.stat_ifetch_delay = 0
        self.stat_load_delay = 0
        self.stat_store_delay = 0

        if self.mode is SimMode.A:
            self.dcache = self._l1(config.dcache_size, config.dcache_assoc)
        elif self.mode in (SimMode.B, SimMode.C):
            self.dcache = self._l1(config.dcache_size, config.dcache_assoc)
            self.icache = self._l1(config.icache_size, config.icache_assoc)
            self.l2cache = self._l2()
            self.dram = Dram(config.dram_page_policy, self.mode, config.line_size)
        elif self.mode in (SimMode.D, SimMode.E):
            self.l2cache = self._l2()
            self.dram = Dram(config.dram_page_policy, self.mode, config.line_size)
            for _ in range(self.num_cores):
                self.dcache_coreid.append(self._l1(config.dcache_size, config.dcache_assoc))
                self.icache_coreid.append(self._l1(config.icache_size, config.icache_assoc))

    def _l1(self, size: int, assoc: int) -> Cache:
        cfg = self.config
        return Cache.by_size(
            size, assoc, cfg.line_size, cfg.repl_policy, self.clock, cfg.swp_core0_ways
        )

    def _l2(self) -> Cache:
        cfg = self.config
        return Cache.by_size(
            cfg.l2cache_size,
            cfg.l2cache_assoc,
            cfg.line_size,
            cfg.l2cache_repl,
            self.clock,
            cfg.swp_core0_ways,
        )

    def access(self, addr: int, access_type: AccessType, core_id: int) -> int:
        """Return the latency of a memory operation and record it."""
        access_type = AccessType(access_type)
        lineaddr = addr // self.config.line_size

        if self.mode is SimMode.A:
            delay = self.access_mode_a(lineaddr, access_type, core_id)
        elif self.mode in (SimMode.B, SimMode.C):
            delay = self.access_mode_bc(lineaddr, access_type, core_id)
        elif self.mode in (SimMode.D, SimMode.E):
            delay = self.access_mode_de(lineaddr, access_type, core_id)
        else:
            delay = 0

        if access_type is AccessType.IFETCH:
            self.stat_ifetch_access += 1
            self.stat_ifetch_delay += delay
        elif access_type is AccessType.LOAD:
            self.stat_load_access += 1
            self.stat_load_delay += delay
        else:
            self.stat_store_access += 1
            self.stat_store_delay += delay
        return delay

    def access_mode_a(self, lineaddr: int, access_type: AccessType, core_id: int) -> int:
        """Data cache only; timing is not simulated."""
        if access_type is AccessType.IFETCH:
            return 0
        is_write = access_type is AccessType.STORE
        assert self.dcache is not None
        if not self.dcache.access(lineaddr, is_write, core_id):
            self.dcache.install(lineaddr, is_write, core_id)
        return 0

    def access_mode_bc(self, lineaddr: int, access_type: AccessType, core_id: int) -> int:
        """Single core with split L1 caches, a unified L2 and DRAM."""
        is_data = access_type is not AccessType.IFETCH
        is_write = access_type is AccessType.STORE
        l1 = self.dcache if is_data else self.icache
        assert l1 is not None
        hit_latency = DCACHE_HIT_LATENCY if is_data else ICACHE_HIT_LATENCY

        if l1.access(lineaddr, is_write, core_id):
            return hit_latency

        delay = self.l2_access(lineaddr, False, core_id)
        victim = l1.install(lineaddr, is_write, core_id)
        if victim.valid and victim.dirty:
            self.l2_access(victim.tag, True, core_id)
        return delay + hit_latency

    def access_mode_de(self, v_lineaddr: int, access_type: AccessType, core_id: int) -> int:
        """Private per-core L1 caches over a shared L2, with virtual-to-physical mapping."""
        lines_per_page = PAGE_SIZE // self.config.line_size
        vpn = v_lineaddr // lines_per_page
        pfn = convert_vpn_to_pfn(vpn, core_id, self.num_cores)
        lineaddr = pfn * lines_per_page + (v_lineaddr & (lines_per_page - 1))

        is_data = access_type is not AccessType.IFETCH
        is_write = access_type is AccessType.STORE
        l1 = (self.dcache_coreid if is_data else self.icache_coreid)[core_id]
        hit_latency = DCACHE_HIT_LATENCY if is_data else ICACHE_HIT_LATENCY

        if l1.access(lineaddr, is_write, core_id):
            return hit_latency

        delay = self.l2_access_multicore(lineaddr, False, core_id)
        victim = l1.install(lineaddr, is_write, core_id)
        if victim.valid and victim.dirty:
            self.l2_access_multicore(victim.tag, True, core_id)
        return delay + hit_latency

    def l2_access(self, lineaddr: int, is_writeback: bool, core_id: int) -> int:
        """Access the L2; on a miss fetch from DRAM and write back any dirty victim."""
        assert self.l2cache is not None and self.dram is not None
        if self.l2cache.access(lineaddr, is_writeback, core_id):
            return L2CACHE_HIT_LATENCY

        delay = 0
        if not is_writeback:
            delay = self.dram.access(lineaddr, False)

        victim = self.l2cache.install(lineaddr, is_writeback, core_id)
        if victim.valid and victim.dirty:
            self.dram.access(victim.tag, True)
        return delay + L2CACHE_HIT_LATENCY

    def l2_access_multicore(self, lineaddr: int, is_writeback: bool, core_id: int) -> int:
        """Access the shared L2 on behalf of one core."""
        return self.l2_access(lineaddr, is_writeback, core_id)

    def format_stats(self) -> str:
        """Render the memory-system statistics followed by those of each component."""
        header = "MEMSYS"

        def avg(total: int, count: int) -> float:
            return total / count if count else 0.0

        parts = [
            "\n"
            f"\n{header}_IFETCH_ACCESS  \t\t : {self.stat_ifetch_access:10d}"
            f"\n{header}_LOAD_ACCESS    \t\t : {self.stat_load_access:10d}"
            f"\n{header}_STORE_ACCESS   \t\t : {self.stat_store_access:10d}"
            f"\n{header}_IFETCH_AVGDELAY\t\t : "
            f"{avg(self.stat_ifetch_delay, self.stat_ifetch_access):10.3f}"
            f"\n{header}_LOAD_AVGDELAY  \t\t : "
            f"{avg(self.stat_load_delay, self.stat_load_access):10.3f}"
            f"\n{header}_STORE_AVGDELAY \t\t : "
            f"{avg(self.stat_store_delay, self.stat_store_access):10.3f}"
            "\n"
        ]

        if self.mode is SimMode.A:
            assert self.dcache is not None
            parts.append(self.dcache.format_stats("DCACHE"))
        elif self.mode in (SimMode.B, SimMode.C):
            assert self.icache and self.dcache and self.l2cache and self.dram
            parts.append(self.icache.format_stats("ICACHE"))
            parts.append(self.dcache.format_stats("DCACHE"))
            parts.append(self.l2cache.format_stats("L2CACHE"))
            parts.append(self.dram.format_stats())
        elif self.mode in (SimMode.D, SimMode.E):
            if self.num_cores != 2:
                raise ValueError(
                    f"multicore statistics need exactly 2 cores, got {self.num_cores}"
                )
            assert self.l2cache and self.dram
            for core_id in range(2):
                parts.append(self.icache_coreid[core_id].format_stats(f"ICACHE_{core_id}"))
                parts.append(self.dcache_coreid[core_id].format_stats(f"DCACHE_{core_id}"))
            parts.append(self.l2cache.format_stats("L2CACHE"))
            parts.append(self.dram.format_stats())
        return "".join(parts)