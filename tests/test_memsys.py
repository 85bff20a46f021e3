import pytest

from cmpmemsim.config import AccessType, Clock, SimConfig, SimMode
from cmpmemsim.dram import DRAM_LATENCY_FIXED, LATENCY_BUS, LATENCY_CAS, LATENCY_RAS
from cmpmemsim.memsys import (
    DCACHE_HIT_LATENCY,
    ICACHE_HIT_LATENCY,
    L2CACHE_HIT_LATENCY,
    Memsys,
    convert_vpn_to_pfn,
)


def make(mode, **kwargs):
    return Memsys(SimConfig(mode=mode, **kwargs), Clock())


def test_convert_vpn_to_pfn_core0_identity_low_pages():
    assert convert_vpn_to_pfn(5, 0, 2) == 5


def test_convert_vpn_to_pfn_core1_offset():
    assert convert_vpn_to_pfn(0, 1, 2) == 1 << 21


def test_convert_vpn_to_pfn_high_bits_shifted():
    assert convert_vpn_to_pfn((1 << 20) + 3, 0, 2) == 3 + (1 << 21)


def test_convert_vpn_to_pfn_requires_two_cores():
    with pytest.raises(ValueError):
        convert_vpn_to_pfn(1, 0, 1)


def test_mode_a_has_only_dcache_and_no_timing():
    sys = make(SimMode.A)
    assert sys.icache is None and sys.l2cache is None and sys.dram is None
    assert sys.access(0x1000, AccessType.LOAD, 0) == 0
    assert sys.access(0x1008, AccessType.STORE, 0) == 0
    assert sys.access(0x1000, AccessType.IFETCH, 0) == 0
    assert sys.dcache.stat_read_access == 1
    assert sys.dcache.stat_read_miss == 1
    assert sys.dcache.stat_write_access == 1
    assert sys.dcache.stat_write_miss == 0
    assert sys.stat_ifetch_access == 1
    assert sys.stat_load_access == 1
    assert sys.stat_store_access == 1


def test_mode_b_miss_then_hit_latency():
    sys = make(SimMode.B)
    first = sys.access(0x4000, AccessType.LOAD, 0)
    assert first == DCACHE_HIT_LATENCY + L2CACHE_HIT_LATENCY + DRAM_LATENCY_FIXED
    assert sys.access(0x4010, AccessType.LOAD, 0) == DCACHE_HIT_LATENCY
    assert sys.stat_load_delay == first + DCACHE_HIT_LATENCY


def test_mode_b_ifetch_uses_icache_and_l2_hit():
    sys = make(SimMode.B)
    sys.access(0x8000, AccessType.LOAD, 0)
    delay = sys.access(0x8000, AccessType.IFETCH, 0)
    assert delay == ICACHE_HIT_LATENCY + L2CACHE_HIT_LATENCY
    assert sys.icache.stat_read_miss == 1
    assert sys.l2cache.stat_read_access == 2
    assert sys.l2cache.stat_read_miss == 1
    assert sys.dram.stat_read_access == 1


def test_mode_c_open_page_empty_row_latency():
    sys = make(SimMode.C)
    delay = sys.access(0, AccessType.LOAD, 0)
    assert delay == DCACHE_HIT_LATENCY + L2CACHE_HIT_LATENCY + LATENCY_RAS + LATENCY_CAS + LATENCY_BUS


def test_dirty_l1_victim_written_back_to_l2():
    sys = make(SimMode.B, dcache_size=128, dcache_assoc=1)
    sys.access(0, AccessType.STORE, 0)
    sys.access(128, AccessType.LOAD, 0)
    assert sys.dcache.stat_dirty_evicts == 1
    assert sys.l2cache.stat_write_access == 1
    assert sys.l2cache.stat_write_miss == 0
    assert sys.dram.stat_write_access == 0


def test_store_latency_recorded():
    sys = make(SimMode.B)
    delays = [sys.access(a, AccessType.STORE, 0) for a in (0, 64, 0)]
    assert sys.stat_store_access == 3
    assert sys.stat_store_delay == sum(delays)
    assert delays[2] == DCACHE_HIT_LATENCY


def test_mode_d_needs_two_cores():
    sys = make(SimMode.D, trace_files=["a.gz"])
    with pytest.raises(ValueError):
        sys.access(0, AccessType.LOAD, 0)


def test_format_stats_mode_a_sections():
    sys = make(SimMode.A)
    sys.access(0, AccessType.LOAD, 0)
    text = sys.format_stats()
    assert "MEMSYS_LOAD_ACCESS" in text
    assert "DCACHE_READ_ACCESS" in text
    assert "L2CACHE" not in text
    assert "DRAM" not in text


def test_format_stats_mode_b_sections_and_average():
    sys = make(SimMode.B)
    sys.access(0, AccessType.LOAD, 0)
    sys.access(0, AccessType.LOAD, 0)
    text = sys.format_stats()
    expected_avg = (sys.stat_load_delay) / 2
    assert f"MEMSYS_LOAD_AVGDELAY  \t\t : {expected_avg:10.3f}" in text
    for section in ("ICACHE_READ_ACCESS", "DCACHE_READ_ACCESS", "L2CACHE_READ_ACCESS", "DRAM_READ_ACCESS"):
        assert section in text


def test_format_stats_mode_d_per_core():
    sys = make(SimMode.D, trace_files=["a.gz", "b.gz"])
    text = sys.format_stats()
    for section in ("ICACHE_0", "DCACHE_0", "ICACHE_1", "DCACHE_1", "L2CACHE", "DRAM"):
        assert section in text
    assert len(sys.dcache_coreid) == 2