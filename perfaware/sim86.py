"""Command line 8086 decoder and simulator."""

from __future__ import annotations

import sys
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, Tuple

from .clocks import calc_clocks
from .decode import DecodeError, decode_instructions, decode_next_instr
from .printer import (
    format_clocks,
    format_instr,
    format_state_diff,
    format_state_registers,
)
from .simulate import MEMORY_SIZE, State, simulate_instr
from .stream import ByteStream


class ClocksModel(Enum):
    """Which processor's clock estimates to print, if any."""

    NONE = "none"
    I8086 = "8086"
    I8088 = "8088"


_USAGE = (
    "Usage:\n"
    "    sim86 <COMMAND> [OPTIONS] <input_binary_file>\n"
    "\n"
    "COMMAND\n"
    "    simulate             - simulate executing binary file and print\n"
    "                           results to stdout (default).\n"
    "    decode               - decode binary file to stdout using\n"
    "                           NASM syntax.\n"
    "\n"
    "OPTIONS\n"
    "'simulate' command options\n"
    "    --print-no-ip        - same as 'simulate', but doesn't print\n"
    "                           changes to IP register.\n"
    "    --print-clocks-8086  - print cycle count estimation for 8086\n"
    "    --print-clocks-8088  - print cycle count estimation for 8088\n"
    "    --dump <filename>    - after simulation has finished dump the\n"
    "                           content of memory to the file.\n"
)


def disassemble(program) -> str:
    """NASM listing of a program; raises DecodeError on bad bytes."""
    lines = ["bits 16\n"]
    lines.extend(format_instr(instr) + "\n"
                 for instr in decode_instructions(program))
    return "".join(lines)


def simulate_program(memory: bytearray, program_size: int,
                     print_no_ip: bool = False,
                     clocks_model: ClocksModel = ClocksModel.NONE
                     ) -> Tuple[str, State]:
    """Run the program at the start of ``memory`` until IP leaves it.

    Returns the execution trace and the final state.
    """
    stream = ByteStream(memory, 0, program_size)
    state = State(memory=memory)
    clocks_total = 0
    out = []

    while not stream.at_end():
        instr = decode_next_instr(stream)
        old_state = state
        state = simulate_instr(old_state, instr)
        stream.pos = state.ip

        clocks = calc_clocks(instr, clocks_model == ClocksModel.I8088)
        clocks_total = (clocks_total + clocks.total()) & 0xFFFFFFFF

        out.append(format_instr(instr))
        out.append(" ; ")
        if clocks_model != ClocksModel.NONE:
            out.append(format_clocks(clocks, clocks_total))
        out.append(format_state_diff(old_state, state, print_no_ip))
        out.append("\n")

    out.append("\nFinal registers:\n")
    out.append(format_state_registers(state, print_no_ip))
    out.append("\n")
    return "".join(out), state


def _usage_error(message: str) -> int:
    print(message, file=sys.stderr)
    print(_USAGE, file=sys.stderr, end="")
    return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print(_USAGE, file=sys.stderr, end="")
        return 1

    command = args[0]
    if command not in ("decode", "simulate"):
        return _usage_error(f"Error: unknown COMMAND '{command}'")

    print_no_ip = False
    dump_filename = None
    clocks_model = ClocksModel.NONE

    filename_index = len(args) - 1
    if command == "simulate":
        i = 1
        while i < filename_index:
            arg = args[i]
            if arg == "--print-no-ip":
                print_no_ip = True
            elif arg == "--print-clocks-8086":
                clocks_model = ClocksModel.I8086
            elif arg == "--print-clocks-8088":
                clocks_model = ClocksModel.I8088
            elif arg == "--dump":
                i += 1
                if i < filename_index:
                    dump_filename = args[i]
                else:
                    return _usage_error(
                        "Error: '--dump' option requires a filename arg")
            else:
                return _usage_error(f"Error: unrecognized option '{arg}'")
            i += 1

    filepath = args[filename_index]
    try:
        program = Path(filepath).read_bytes()
    except OSError as exc:
        print(f"Error: failed to read contents of file '{filepath}': {exc}",
              file=sys.stderr)
        return 1
    if len(program) > MEMORY_SIZE:
        print(f"Error: binary file is too big to be loaded into the buffer. "
              f"File size: {len(program)} bytes, buffer size: "
              f"{MEMORY_SIZE} bytes", file=sys.stderr)
        return 1
    if not program:
        print(f"Error: failed to read contents of file '{filepath}'",
              file=sys.stderr)
        return 1

    memory = bytearray(MEMORY_SIZE)
    memory[:len(program)] = program

    try:
        if command == "decode":
            sys.stdout.write(disassemble(bytes(program)))
            return 0
        trace, _ = simulate_program(memory, len(program), print_no_ip,
                                    clocks_model)
    except DecodeError as exc:
        print(f"Error: unsupported instruction at byte number {exc.offset}",
              file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    sys.stdout.write(trace)

    if dump_filename:
        try:
            Path(dump_filename).write_bytes(bytes(memory))
        except OSError:
            print(f"Error: failed to write memory dump file "
                  f"'{dump_filename}'", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())