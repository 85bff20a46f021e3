import gzip
import io

import pytest

from cmpmemsim.config import AccessType, Clock, InstType
from cmpmemsim.core import Core, TraceRecord, read_trace_records


class RecordingMemsys:
    def __init__(self, ifetch_delay=1, data_delay=1):
        self.ifetch_delay = ifetch_delay
        self.data_delay = data_delay
        self.calls = []

    def access(self, addr, access_type, core_id):
        self.calls.append((addr, access_type, core_id))
        return self.ifetch_delay if access_type is AccessType.IFETCH else self.data_delay


def encode(records):
    out = bytearray()
    for inst_addr, inst_type, ldst_addr in records:
        out += inst_addr.to_bytes(4, "little")
        out += bytes([inst_type])
        out += ldst_addr.to_bytes(4, "little")
    return bytes(out)


def write_trace(path, records, extra=b""):
    with gzip.open(path, "wb") as fh:
        fh.write(encode(records) + extra)
    return str(path)


def run(core, clock, limit=1000):
    while not core.done and clock.cycle < limit:
        core.cycle()
        clock.advance()


def test_read_trace_records_decodes_fields():
    data = encode([(0x1000, InstType.LOAD, 0x2000), (0x1004, InstType.STORE, 0x3000)])
    records = list(read_trace_records(io.BytesIO(data)))
    assert records == [
        TraceRecord(0x1000, InstType.LOAD, 0x2000),
        TraceRecord(0x1004, InstType.STORE, 0x3000),
    ]


def test_read_trace_records_drops_partial_tail():
    data = encode([(1, 0, 2)]) + b"\x01\x02\x03"
    assert list(read_trace_records(io.BytesIO(data))) == [TraceRecord(1, 0, 2)]


def test_core_executes_every_record(tmp_path):
    records = [(0x100 + 4 * i, InstType.ALU, 0) for i in range(5)]
    path = write_trace(tmp_path / "t.gz", records)
    clock = Clock()
    memsys = RecordingMemsys()
    with Core(memsys, path, 0, clock) as core:
        run(core, clock)
        assert core.done
        assert core.done_inst_count == len(records)
        assert [c[0] for c in memsys.calls] == [r[0] for r in records]
        assert all(c[1] is AccessType.IFETCH for c in memsys.calls)


def test_loads_and_stores_reach_memory(tmp_path):
    records = [(0x10, InstType.LOAD, 0xAA0), (0x14, InstType.STORE, 0xBB0), (0x18, InstType.OTHER, 0xCC0)]
    path = write_trace(tmp_path / "t.gz", records)
    clock = Clock()
    memsys = RecordingMemsys()
    with Core(memsys, path, 1, clock) as core:
        run(core, clock)
    assert memsys.calls == [
        (0x10, AccessType.IFETCH, 1),
        (0xAA0, AccessType.LOAD, 1),
        (0x14, AccessType.IFETCH, 1),
        (0xBB0, AccessType.STORE, 1),
        (0x18, AccessType.IFETCH, 1),
    ]


def issue_cycles(memsys, clock, path):
    cycles = []
    original = memsys.access

    def access(addr, access_type, core_id):
        if access_type is AccessType.IFETCH:
            cycles.append(clock.cycle)
        return original(addr, access_type, core_id)

    memsys.access = access
    with Core(memsys, path, 0, clock) as core:
        run(core, clock)
    return cycles


def test_long_fetch_delay_stalls_core(tmp_path):
    path = write_trace(tmp_path / "t.gz", [(i, InstType.ALU, 0) for i in range(4)])
    delay = 7
    clock = Clock()
    cycles = issue_cycles(RecordingMemsys(ifetch_delay=delay), clock, path)
    gaps = {b - a for a, b in zip(cycles, cycles[1:])}
    assert gaps == {delay}


def test_store_delay_does_not_stall(tmp_path):
    path = write_trace(tmp_path / "t.gz", [(i, InstType.STORE, 0) for i in range(4)])
    clock = Clock()
    cycles = issue_cycles(RecordingMemsys(ifetch_delay=1, data_delay=50), clock, path)
    gaps = {b - a for a, b in zip(cycles, cycles[1:])}
    assert gaps == {1}


def test_load_delay_stalls(tmp_path):
    path = write_trace(tmp_path / "t.gz", [(i, InstType.LOAD, 0) for i in range(3)])
    clock = Clock()
    ld = 9
    cycles = issue_cycles(RecordingMemsys(ifetch_delay=1, data_delay=ld), clock, path)
    gaps = {b - a for a, b in zip(cycles, cycles[1:])}
    assert gaps == {ld}


def test_empty_trace_is_done_immediately(tmp_path):
    path = write_trace(tmp_path / "t.gz", [])
    memsys = RecordingMemsys()
    with Core(memsys, path, 0, Clock()) as core:
        assert core.done
        core.cycle()
        assert memsys.calls == []
        assert core.inst_count == 0


def test_format_stats(tmp_path):
    path = write_trace(tmp_path / "t.gz", [(i, InstType.ALU, 0) for i in range(3)])
    clock = Clock()
    with Core(RecordingMemsys(), path, 1, clock) as core:
        run(core, clock)
        text = core.format_stats()
        expected_ipc = core.done_inst_count / core.done_cycle_count
    assert text.startswith("\n\nCORE_1_INST")
    assert f"CORE_1_INST         \t\t : {3:10d}" in text
    assert f"{expected_ipc:10.3f}" in text.split("CORE_1_IPC")[1]


def test_missing_trace_raises(tmp_path):
    with pytest.raises(OSError):
        Core(RecordingMemsys(), str(tmp_path / "missing.gz"), 0, Clock())