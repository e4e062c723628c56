#!/usr/bin/env python3
"""
RV32IM core simulator command line
Runs a program image cycle by cycle and writes an execution trace
"""

import argparse
import logging
import sys
from typing import List, Optional, Tuple

from .config import CoreConfig, DEFAULT_MAX_CYCLES
from .core import Core
from .errors import SimulationTimeout, SimulatorError
from .loader import load_image
from .memory import DEFAULT_MEMORY_WORDS
from .trace import format_step

logger = logging.getLogger(__name__)


def simulate(core: Core, words: List[int], entry: int = 0,
             max_cycles: Optional[int] = None) -> Tuple[List[str], int]:
    """Load *words* at index 0 and run until the PC leaves the image.

    Returns (trace_lines, cycles). Raises SimulationTimeout if the program
    is still running when the cycle budget is spent.
    """
    core.load_program(words)
    core.pc_reg.pc = entry
    text_end = len(words) * 4
    budget = max_cycles if max_cycles is not None else core.config.max_cycles

    trace_lines = []
    while 0 <= core.pc < text_end:
        if core.cycles >= budget:
            raise SimulationTimeout(budget, core.pc)
        line = format_step(core.step())
        if line is not None:
            trace_lines.append(line)
    logger.info("Program left image at PC 0x%08X after %d cycles",
                core.pc, core.cycles)
    return trace_lines, core.cycles


def format_registers(core: Core) -> str:
    regs = core.regs.snapshot()
    rows = []
    for base in range(0, 32, 4):
        rows.append("  ".join(f"x{i:<2}=0x{regs[i]:08X}" for i in range(base, base + 4)))
    rows.append(f"pc =0x{core.pc:08X}")
    return "\n".join(rows)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='RV32IM single-cycle core simulator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  %(prog)s program.hex
  %(prog)s program.elf --text-base 0x100000 -o trace.log
        '''
    )

    parser.add_argument(
        'image',
        metavar='IMAGE',
        help='Program image (ELF, or hex with one 32-bit word per line)'
    )

    parser.add_argument(
        '-f', '--format',
        choices=['hex', 'elf'],
        default=None,
        help='Image format (default: detect from file contents)'
    )

    parser.add_argument(
        '-o', '--output',
        default='iss.log',
        metavar='OUTPUT_FILE',
        help='Output trace file (default: iss.log)'
    )

    parser.add_argument(
        '--max-cycles',
        type=int,
        default=DEFAULT_MAX_CYCLES,
        help=f'Cycle budget before reporting a timeout (default: {DEFAULT_MAX_CYCLES})'
    )

    parser.add_argument(
        '--mem-words',
        type=int,
        default=DEFAULT_MEMORY_WORDS,
        help=f'Memory size in 32-bit words (default: {DEFAULT_MEMORY_WORDS})'
    )

    parser.add_argument(
        '--text-base',
        type=lambda x: int(x, 16),
        default=0,
        metavar='ADDR',
        help='ELF address mapped to memory address 0 (hex, e.g., 0x100000)'
    )

    parser.add_argument(
        '--irq-vector',
        type=lambda x: int(x, 16),
        default=0x100,
        metavar='ADDR',
        help='Interrupt vector (hex, default: 0x100)'
    )

    parser.add_argument(
        '--dump-regs',
        action='store_true',
        help='Print the register file after the run'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Log progress (-v) or every cycle (-vv)'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')

    try:
        words, entry = load_image(args.image, args.format, args.text_base,
                                  args.mem_words * 4)
        config = CoreConfig(memory_words=args.mem_words, reset_vector=entry,
                            irq_vector=args.irq_vector,
                            max_cycles=args.max_cycles,
                            text_base=args.text_base)
        core = Core(config)
        trace_lines, _ = simulate(core, words, entry)
    except (SimulatorError, ValueError, OSError) as e:
        print(f"Error: {e}")
        return 1

    with open(args.output, 'w') as f:
        f.write('\n'.join(trace_lines))

    if args.dump_regs:
        print(format_registers(core))
    return 0


if __name__ == '__main__':
    sys.exit(main())
