# cmpmemsim

A trace-driven simulator for the memory system of a small chip multiprocessor.
It models L1 instruction and data caches, a shared L2 cache and a DRAM with 16
banks and a row buffer per bank. At the end of a run it prints access, miss and
delay statistics for each level.

## Installation

```
pip install .
```

## Usage

```
cmpmemsim [-option <value>] trace_0 [trace_1]
```

Each trace is a gzip-compressed binary file. The simulator opens it with
Python's `gzip` module. The file is a series of 9-byte records: a 4-byte
instruction address, a 1-byte instruction type (0 ALU, 1 load, 2 store,
3 other) and a 4-byte load/store address. The addresses are little-endian. A
trailing partial record is ignored. Give one trace per core; at most two
traces are accepted.

Options:

| Option | Meaning | Default |
|---|---|---|
| `-mode <n>` | 1: data cache only, no timing; 2: L1 I/D + L2 + fixed-latency (100 cycle) DRAM; 3: L1 I/D + L2 + row-buffer DRAM; 4, 5: private L1s per core over a shared L2 and row-buffer DRAM | 1 |
| `-linesize <n>` | cache line size in bytes for all caches | 64 |
| `-repl <n>` | L1 replacement: 0 LRU, 1 LFU with MRU tie-break, 2 static way partitioning | 0 |
| `-DsizeKB <n>` | L1 data cache capacity in KB | 32 |
| `-Dassoc <n>` | L1 data cache associativity (at most 16) | 8 |
| `-L2sizeKB <n>` | L2 capacity in KB | 1024 |
| `-L2repl <n>` | L2 replacement: 0 LRU, 1 LFU+MRU, 2 static way partitioning | 0 |
| `-SWP_core0ways <n>` | ways reserved for core 0 under static way partitioning | 0 |
| `-dram_policy <n>` | 0 open page, any other value closed page | 0 |
| `-h`, `-help` | print usage and exit | |

Numeric values are read leniently: a leading integer is used and anything
else counts as 0. An option given last, with no value after it, is ignored.
Unknown options, a third trace file, or no trace file at all end the run with
`Error! ... Exiting...` and exit status 1.

Modes 4 and 5 place each core's pages in disjoint physical frames. They need
exactly two trace files, one per core.

Example, two cores sharing an L2 that uses way partitioning:

```
cmpmemsim -mode 4 -L2repl 2 -SWP_core0ways 4 app0.trace.gz app1.trace.gz
```

## Library use

The same simulation can be run from Python:

```python
from cmpmemsim.sim import parse_params, Simulator

config = parse_params(["-mode", "3", "bench.trace.gz"])
with Simulator(config) as sim:
    sim.run()
    print(sim.format_stats())
```

`parse_params` returns a `cmpmemsim.config.SimConfig`. It raises
`UsageRequested` for `-h` or an empty argument list, and `ConfigError` for
invalid input. You can also build a `SimConfig` directly and pass the trace
paths as the second argument of `Simulator`.

The components can be used on their own to study single accesses:

- `cmpmemsim.cache.Cache` has `access` and `install`. `install` returns the
  evicted `CacheLine`. `Cache.by_size` builds a cache from its capacity.
- `cmpmemsim.dram.Dram` has `access`, which returns the latency.
- `cmpmemsim.memsys.Memsys` has `access`.
- `cmpmemsim.memsys.convert_vpn_to_pfn` gives the page mapping.

Each of these takes a shared `cmpmemsim.config.Clock`, where the constructor
has one. Each has a `format_stats` method that returns its report as a string.

## Limitations

- Cache coherence is not modelled. Mode 6 is accepted, but it builds no caches
  or DRAM, and every access in it takes zero cycles.
- Nothing is printed while a run is in progress; the report appears at the end.