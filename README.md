# perfaware

A collection of small performance-oriented tools:

- **sim86**: a decoder and simulator for 16-bit 8086 machine code. It
  disassembles binaries into NASM syntax, or executes them and prints every
  register, IP and flag change, with an optional clock estimate.
- **Haversine tools**: a generator of random coordinate pairs in JSON, and a
  hand-written JSON parser that computes the average haversine distance over
  them, instrumented with a zone profiler.
- **Timing utilities**: OS and high-resolution timer access, timer frequency
  estimation, and a repetition tester that gathers min/max/average statistics.
- **Interview puzzles**: rectangle copy, Bresenham circle drawing, 2-bit
  colour search in a packed byte, and NUL-terminated string copy.

It needs Python 3.10 or later and has no runtime dependencies.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## 8086 decoder and simulator

Disassemble a binary to stdout:

```
sim86 decode listing.bin
```

Simulate it and print the state changes after each instruction and the final
registers:

```
sim86 simulate listing.bin
```

Options for `simulate` go before the file name:

| Option                 | Effect                                                  |
|------------------------|---------------------------------------------------------|
| `--print-no-ip`        | do not print changes to the IP register                 |
| `--print-clocks-8086`  | print a cycle-count estimate for the 8086               |
| `--print-clocks-8088`  | print a cycle-count estimate for the 8088               |
| `--dump <filename>`    | write the full 1 MiB memory image to a file afterwards  |

For example:

```
sim86 simulate --print-no-ip --print-clocks-8086 --dump memory.data listing.bin
```

The decoder can also be used as a library:

```python
from perfaware.decode import decode_instructions
from perfaware.printer import format_instr

program = bytes([0x89, 0xD9])          # mov cx, bx
for instr in decode_instructions(program):
    print(format_instr(instr))
```

`perfaware.sim86.disassemble(program)` returns a whole listing as text, and
`perfaware.sim86.simulate_program(memory, program_size)` returns the trace
together with the final `perfaware.simulate.State`.

### Limits of the simulator

The decoder knows the whole 8086 instruction table, but the simulator only
executes `mov`, `add`, `sub`, `cmp`, the conditional jumps, `jcxz`, `loop`,
`loopz` and `loopnz`. Any other instruction only advances IP; a message is
written to stderr. Clock estimates cover `mov`, `add`, `sub`, `cmp` and those
jumps and loops; effective-address clocks are not computed, and the 8086 and
8088 models give the same numbers.

## Haversine distance

Generate `data.json` with 1000 coordinate pairs, plus the verification files
`data.avg` and `data.dists`, from seed 42:

```
gen-haversine 42 1000 data
```

Parse the JSON, compute the average distance, write it to `result.avg` and
print profiler statistics to stderr:

```
haversine data.json result.avg
```

The distance function itself:

```python
from perfaware.haversine import haversine

print(haversine(0.0, 0.0, 90.0, 0.0, 6372.8))
```

## Timers, profiler and repetition tester

Print the OS timer frequency and an estimate of the high-resolution timer
frequency, measured over 100 milliseconds:

```
estimate-cpu-timer-freq 100
```

`perfaware.profiler.Profiler` collects indexed, named zones (also usable as a
`with profiler.zone(...)` block) with hit counts, self and total time and
bandwidth. `perfaware.tester.RepetitionTester` runs a piece of code
repeatedly until no new minimum time has been seen for a given duration and
reports the minimum, maximum and average. Page faults are read with
`getrusage`; where that is not available they count as 0.

The package contains no benchmark programs that drive the repetition tester;
it is provided as a library class only.

## Interview puzzles

```
cp-rect             # copy rectangles between two buffers and print them
draw-circle         # animate circles in the terminal with 24-bit colour
interview-puzzles   # run the colour-search and string-copy examples
```

`draw-circle` runs until interrupted with Ctrl-C, or, given a number
(`draw-circle 3`), stops after that many groups of circles.