"""Command-line driver: parse parameters, run the cores to completion, report statistics."""

from __future__ import annotations

import dataclasses
import re
import sys
from typing import Sequence

from .config import MAX_CORES, Clock, SimConfig, SimMode
from .core import Core
from .memsys import Memsys


class ConfigError(Exception):
    """The command line or the configuration cannot be used."""


class UsageRequested(Exception):
    """The user asked for help, or gave no arguments at all."""


_USAGE = (
    "Usage : sim [-option <value>] trace_0 <trace_1> \n"
    "   Options\n"
    "      -mode            <num>    Set mode of the simulator"
    "[1:PartA, 2:PartB, 3:PartC 4:PartD]  (Default: 1)\n"
    "      -linesize        <num>    Set cache linesize for all caches (Default:64)\n"
    "      -repl            <num>    Set replacement policy for L1 cache"
    " [0:LRU,1:LFU+MRU] (Default:0)\n"
    "      -DsizeKB         <num>    Set capacity in KB of the the Level 1 DCACHE"
    " (Default:32 KB)\n"
    "      -Dassoc          <num>    Set associativity of the the Level 1 DCACHE"
    " (Default:8)\n"
    "      -L2sizeKB        <num>    Set capacity in KB of the unified Level 2 cache"
    " (Default: 512 KB)\n"
    "      -L2repl          <num>    Set replacement policy for L2 cache"
    " [0:LRU,1:LFU+MRU,2:SWP] (Default:0)\n"
    "      -SWP_core0ways   <num>    Set static quota for core_0 for SWP (Default:1)\n"
    "      -dram_policy     <num>    Set DRAM page policy"
    " [0:Open Page Policy, 1: Close Page Policy](Default:0)\n"
)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def usage() -> str:
    """Return the usage text."""
    return _USAGE


def _atoi(text: str) -> int:
    """Parse a leading decimal integer leniently; anything else reads as 0."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _set_mode(cfg: SimConfig, value: int) -> None:
    try:
        cfg.mode = SimMode(value)
    except ValueError:
        raise ConfigError(f"Invalid mode {value}") from None


_OPTIONS = {
    "-mode": _set_mode,
    "-linesize": lambda cfg, v: setattr(cfg, "line_size", v),
    "-repl": lambda cfg, v: setattr(cfg, "repl_policy", v),
    "-DsizeKB": lambda cfg, v: setattr(cfg, "dcache_size", v * 1024),
    "-Dassoc": lambda cfg, v: setattr(cfg, "dcache_assoc", v),
    "-L2sizeKB": lambda cfg, v: setattr(cfg, "l2cache_size", v * 1024),
    "-L2repl": lambda cfg, v: setattr(cfg, "l2cache_repl", v),
    "-SWP_core0ways": lambda cfg, v: setattr(cfg, "swp_core0_ways", v),
    "-dram_policy": lambda cfg, v: setattr(cfg, "dram_page_policy", int(bool(v))),
}


def parse_params(argv: Sequence[str]) -> SimConfig:
    """Build a configuration from command-line arguments (without the program name)."""
    args = list(argv)
    if not args:
        raise UsageRequested()

    cfg = SimConfig()
    traces: list[str] = []
    pos = 0
    while pos < len(args):
        arg = args[pos]
        if arg.startswith("-"):
            if arg in ("-h", "-help"):
                raise UsageRequested()
            setter = _OPTIONS.get(arg)
            if setter is None:
                raise ConfigError(f"Invalid option {arg}")
            # An option given last, without a value, is ignored.
            if pos < len(args) - 1:
                setter(cfg, _atoi(args[pos + 1]))
                pos += 1
        elif len(traces) < MAX_CORES:
            traces.append(arg)
        else:
            raise ConfigError(f"Invalid option {arg}, got filename {traces[-1]}")
        pos += 1

    if not traces:
        raise ConfigError("Must provide at least one trace file")
    cfg.trace_files = traces
    return cfg


class Simulator:
    """A memory system with one core per trace file, driven by a shared clock."""

    def __init__(self, config: SimConfig, trace_files: Sequence[str] | None = None) -> None:
        files = list(config.trace_files if trace_files is None else trace_files)
        if not files:
            raise ConfigError("Must provide at least one trace file")
        if len(files) > MAX_CORES:
            raise ConfigError(f"At most {MAX_CORES} trace files are supported, got {len(files)}")
        self.config = dataclasses.replace(config, trace_files=files)
        self.clock = Clock()
        self.memsys = Memsys(self.config, self.clock)
        self.cores: list[Core] = []
        try:
            for core_id, path in enumerate(files):
                self.cores.append(Core(self.memsys, path, core_id, self.clock))
        except OSError as exc:
            self._close_cores()
            raise ConfigError(f"Unable to open the trace file {exc.filename}") from exc

    def __enter__(self) -> "Simulator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._close_cores()

    def _close_cores(self) -> None:
        for core in self.cores:
            core.close()

    def run(self) -> int:
        """Cycle every core until all of them are done; return the final cycle count."""
        all_done = False
        while not all_done:
            all_done = True
            for core in self.cores:
                core.cycle()
                all_done = all_done and core.done
            self.clock.advance()
        return self.clock.cycle

    def format_stats(self) -> str:
        """Render the full report: total cycles, per-core and memory-system statistics."""
        parts = ["\n", f"\nCYCLES      \t\t\t : {self.clock.cycle:10d}"]
        parts.extend(core.format_stats() for core in self.cores)
        parts.append(self.memsys.format_stats())
        parts.append("\n\n")
        return "".join(parts)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the simulator from the command line; return the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        config = parse_params(args)
        with Simulator(config) as sim:
            sim.run()
            report = sim.format_stats()
    except UsageRequested:
        print(usage(), end="")
        return 0
    except (ConfigError, ValueError) as exc:
        print(f"Error! {exc}. Exiting...")
        return 1
    print(report, end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())