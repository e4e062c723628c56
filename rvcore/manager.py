#!/usr/bin/env python3
"""
Regression manager: runs program images through the simulator in parallel
and checks their traces against reference traces
"""

import argparse
import concurrent.futures
import logging
import multiprocessing
import os
import sys
from typing import List, Optional

from .config import CoreConfig
from .core import Core
from .errors import SimulatorError
from .iss import simulate
from .loader import load_image
from .trace import compare_traces, parse_trace

logger = logging.getLogger(__name__)


def read_task_list(filename: str) -> List[str]:
    """Read and return list of tests from file."""
    with open(filename, 'r') as f:
        return [line.strip() for line in f
                if line.strip() and not line.startswith('#')]


def task_name(image: str) -> str:
    return os.path.splitext(os.path.basename(image))[0]


def reference_trace_path(image: str) -> str:
    return os.path.splitext(image)[0] + ".trace"


def run_task(image: str, work_dir: str = "work",
             config: Optional[CoreConfig] = None) -> bool:
    """Simulate one image, write its trace, and compare with a reference.

    Returns True when the run finished and the trace matches the reference
    (or no reference exists).
    """
    name = task_name(image)
    test_dir = os.path.join(work_dir, name)
    os.makedirs(test_dir, exist_ok=True)
    config = config or CoreConfig()

    words, entry = load_image(image, text_base=config.text_base)
    core = Core(config)
    trace_lines, cycles = simulate(core, words, entry)
    logger.info("%s: %d cycles, %d trace lines", name, cycles, len(trace_lines))

    iss_log = os.path.join(test_dir, "iss.log")
    with open(iss_log, 'w') as f:
        f.write('\n'.join(trace_lines))

    ref_path = reference_trace_path(image)
    if not os.path.exists(ref_path):
        return True
    with open(ref_path, 'r') as f:
        expected = parse_trace(f.read())
    mismatch = compare_traces(expected, parse_trace('\n'.join(trace_lines)))
    if mismatch is not None:
        with open(os.path.join(test_dir, "sim.log"), 'a') as sim_log:
            sim_log.write(f"{mismatch}\n")
        return False
    return True


def report(name: str, passed: bool) -> str:
    status = "\033[92mPASSED\033[0m" if passed else "\033[91mFAILED\033[0m"
    return f"{name} {'.' * max(0, 50 - len(name))}. {status}"


def run_all(images: List[str], work_dir: str = "work",
            config: Optional[CoreConfig] = None,
            max_workers: Optional[int] = None) -> int:
    """Run every image on a thread pool; return the number of failures"""
    failures = 0
    workers = max_workers or multiprocessing.cpu_count()
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_test = {executor.submit(run_task, image, work_dir, config): image
                          for image in images}
        for future in concurrent.futures.as_completed(future_to_test):
            image = future_to_test[future]
            try:
                passed = future.result()
            except (SimulatorError, OSError) as e:
                logger.error("Error running test %s: %s", image, e)
                passed = False
            if not passed:
                failures += 1
            print(report(task_name(image), passed))
    return failures


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Run program images through the simulator and check traces"
    )

    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("-t", "--task-list", help="Path to the task list file")
    group.add_argument("-n", "--test-name", help="Image of the test to run")

    parser.add_argument("-w", "--work-dir", default="work",
                        help="Output directory (default: work)")
    parser.add_argument("--max-cycles", type=int, default=None,
                        help="Cycle budget per test")
    parser.add_argument("--text-base", type=lambda x: int(x, 16), default=0,
                        help="ELF address mapped to memory address 0 (hex)")
    parser.add_argument("-v", "--verbose", action="store_true")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    if args.task_list:
        if not os.path.exists(args.task_list):
            print(f"Error: Task list file '{args.task_list}' not found")
            return 1
        tests = read_task_list(args.task_list)
        if not tests:
            print("Error: No valid tests found in task list")
            return 1
    else:
        tests = [args.test_name]

    config = CoreConfig(text_base=args.text_base)
    if args.max_cycles is not None:
        config.max_cycles = args.max_cycles

    os.makedirs(args.work_dir, exist_ok=True)
    return 1 if run_all(tests, args.work_dir, config) else 0


if __name__ == "__main__":
    sys.exit(main())
