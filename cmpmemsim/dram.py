"""Banked DRAM timing model with open- and closed-page row-buffer policies."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from .config import SimMode

DRAM_BANKS = 16
ROW_BUFFER_SIZE = 1024

DRAM_LATENCY_FIXED = 100

LATENCY_RAS = 45  # row address strobe
LATENCY_CAS = 45  # column address strobe
LATENCY_PRE = 45  # precharge
LATENCY_BUS = 10  # round-trip bus latency


class PagePolicy(IntEnum):
    """What happens to a row buffer after an access."""

    OPEN_PAGE = 0
    CLOSED_PAGE = 1


@dataclass
class RowBuffer:
    """The currently open row of one bank."""

    valid: bool = False
    row_id: int = 0


class Dram:
    """Main memory with one row buffer per bank."""

    def __init__(
        self,
        policy: PagePolicy | int = PagePolicy.OPEN_PAGE,
        mode: SimMode | int = SimMode.C,
        line_size: int = 64,
    ) -> None:
        if not 1 <= line_size <= ROW_BUFFER_SIZE:
            raise ValueError(
                f"line size must be between 1 and {ROW_BUFFER_SIZE} bytes, got {line_size}"
            )
        self.page_policy = PagePolicy(policy)
        self.mode = SimMode(mode)
        self.line_size = line_size
        self.banks = [RowBuffer() for _ in range(DRAM_BANKS)]

        self.stat_read_access = 0
        self.stat_write_access = 0
        self.stat_buffer_miss = 0
        self.stat_read_delay = 0
        self.stat_write_delay = 0

    def access(self, lineaddr: int, is_write: bool) -> int:
        """Return the latency of accessing a line and record it in the statistics."""
        if self.mode in (SimMode.A, SimMode.B):
            delay = DRAM_LATENCY_FIXED
        elif self.mode in (SimMode.C, SimMode.D, SimMode.E):
            delay = self.access_mode_cde(lineaddr, is_write)
        else:
            raise ValueError(f"DRAM timing is not defined for mode {self.mode.name}")

        if is_write:
            self.stat_write_access += 1
            self.stat_write_delay += delay
        else:
            self.stat_read_access += 1
            self.stat_read_delay += delay
        return delay

    def access_mode_cde(self, lineaddr: int, is_write: bool) -> int:
        """Latency of an access under the configured page policy."""
        if self.page_policy is PagePolicy.CLOSED_PAGE:
            self.stat_buffer_miss += 1
            return LATENCY_BUS + LATENCY_CAS + LATENCY_RAS

        bank = self.banks[lineaddr & (DRAM_BANKS - 1)]
        row_id = lineaddr // DRAM_BANKS // (ROW_BUFFER_SIZE // self.line_size)

        if bank.valid and bank.row_id == row_id:
            delay = LATENCY_CAS
        elif bank.valid:
            self.stat_buffer_miss += 1
            bank.row_id = row_id
            delay = LATENCY_PRE + LATENCY_RAS + LATENCY_CAS
        else:
            self.stat_buffer_miss += 1
            bank.valid = True
            bank.row_id = row_id
            delay = LATENCY_RAS + LATENCY_CAS
        return delay + LATENCY_BUS

    def format_stats(self) -> str:
        """Render the access, row-buffer and delay statistics as a report block."""
        header = "DRAM"
        rd_avg = self.stat_read_delay / self.stat_read_access if self.stat_read_access else 0.0
        wr_avg = self.stat_write_delay / self.stat_write_access if self.stat_write_access else 0.0
        miss_rate = 0.0
        if self.stat_buffer_miss and self.stat_read_access and self.stat_write_access:
            miss_rate = self.stat_buffer_miss / (self.stat_read_access + self.stat_write_access)
        return (
            f"\n{header}_READ_ACCESS\t\t : {self.stat_read_access:10d}"
            f"\n{header}_WRITE_ACCESS\t\t : {self.stat_write_access:10d}"
            f"\n{header}_BUFFER_MISS\t\t : {self.stat_buffer_miss:10d}"
            f"\n{header}_BUFFER_MISS_PERC\t\t : {100 * miss_rate:10.3f}"
            f"\n{header}_READ_DELAY_AVG\t\t : {rd_avg:10.3f}"
            f"\n{header}_WRITE_DELAY_AVG\t\t : {wr_avg:10.3f}"
        )