"""Trace-driven in-order core that issues fetches, loads and stores."""

from __future__ import annotations

import gzip
import math
from dataclasses import dataclass
from typing import BinaryIO, Iterator, Protocol

from .config import AccessType, Clock, InstType

_RECORD_SIZE = 9  # 4-byte instruction address, 1-byte type, 4-byte load/store address


class _MemorySystem(Protocol):
    def access(self, addr: int, access_type: AccessType, core_id: int) -> int: ...


@dataclass(frozen=True)
class TraceRecord:
    """One instruction from a trace."""

    inst_addr: int
    inst_type: int
    ldst_addr: int


def read_trace_records(stream: BinaryIO) -> Iterator[TraceRecord]:
    """Yield trace records from a binary stream until it runs out of whole records."""
    while True:
        chunk = stream.read(_RECORD_SIZE)
        if len(chunk) < _RECORD_SIZE:
            return
        yield TraceRecord(
            inst_addr=int.from_bytes(chunk[0:4], "little"),
            inst_type=chunk[4],
            ldst_addr=int.from_bytes(chunk[5:9], "little"),
        )


class Core:
    """Executes one instruction per cycle, stalling for long memory latencies."""

    def __init__(self, memsys: _MemorySystem, trace_path: str, core_id: int, clock: Clock) -> None:
        self.memsys = memsys
        self.trace_path = trace_path
        self.core_id = core_id
        self.clock = clock

        self.done = False
        self.current: TraceRecord | None = None
        self.snooze_end_cycle = 0
        self.inst_count = 0
        self.done_inst_count = 0
        self.done_cycle_count = 0

        self._stream = gzip.open(trace_path, "rb")
        self._records = read_trace_records(self._stream)
        self.read_trace()

    def __enter__(self) -> "Core":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def read_trace(self) -> None:
        """Fetch the next record; at the end of the trace mark the core done."""
        self.current = next(self._records, None)
        if self.current is None:
            self.done = True
            self.done_inst_count = self.inst_count
            self.done_cycle_count = self.clock.cycle

    def cycle(self) -> None:
        """Run one cycle: issue the current instruction unless done or stalled."""
        if self.done or self.clock.cycle <= self.snooze_end_cycle:
            return
        record = self.current
        assert record is not None
        self.inst_count += 1

        bubble_cycles = 0
        ifetch_delay = self.memsys.access(record.inst_addr, AccessType.IFETCH, self.core_id)
        if ifetch_delay > 1:
            bubble_cycles += ifetch_delay - 1

        if record.inst_type == InstType.LOAD:
            ld_delay = self.memsys.access(record.ldst_addr, AccessType.LOAD, self.core_id)
            if ld_delay > 1:
                bubble_cycles += ld_delay - 1

        if record.inst_type == InstType.STORE:
            # Stores retire without stalling the core.
            self.memsys.access(record.ldst_addr, AccessType.STORE, self.core_id)

        if bubble_cycles:
            self.snooze_end_cycle = self.clock.cycle + bubble_cycles

        self.read_trace()

    def format_stats(self) -> str:
        """Render instruction count, cycle count and IPC as a report block."""
        if self.done_cycle_count:
            ipc = self.done_inst_count / self.done_cycle_count
        else:
            ipc = math.inf if self.done_inst_count else math.nan
        header = f"CORE_{self.core_id:01d}"
        return (
            "\n"
            f"\n{header}_INST         \t\t : {self.done_inst_count:10d}"
            f"\n{header}_CYCLES       \t\t : {self.done_cycle_count:10d}"
            f"\n{header}_IPC          \t\t : {ipc:10.3f}"
        )

    def close(self) -> None:
        """Close the trace file."""
        self._stream.close()