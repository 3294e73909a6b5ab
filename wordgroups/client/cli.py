#!/usr/bin/env python3
"""
Word Groups CLI
Runs the anagram word groups job on one input location, writing one output location
"""

import argparse
import logging
import sys

from wordgroups.common.errors import JobConfigError, JobFailedError
from wordgroups.common.logging_setup import configure_logging
from wordgroups.config import WORK_DIR, JobConfig
from wordgroups.coordinator.runner import LocalRunner
from wordgroups.worker.function_loader import DEFAULT_JOB

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='wordgroups',
        description='Group the words of a text corpus into anagram classes',
        epilog='Example: %(prog)s corpus/ results/ --num-reduce-tasks 4 --use-combiner'
    )
    parser.add_argument('input', help='Input file, or directory of input files')
    parser.add_argument('output', help='Output directory (must not exist)')
    parser.add_argument('--num-map-tasks', type=int, default=4, help='Number of map tasks (default: 4)')
    parser.add_argument('--num-reduce-tasks', type=int, default=2, help='Number of reduce tasks (default: 2)')
    parser.add_argument('--use-combiner', action='store_true', help='Enable combiner optimization')
    parser.add_argument('--stop-words', dest='stop_words_file',
                        help='File of whitespace separated stop words (default: built-in list)')
    parser.add_argument('--job-file', default=DEFAULT_JOB,
                        help=f'Python file or module with map/reduce functions (default: {DEFAULT_JOB})')
    parser.add_argument('--work-dir', default=WORK_DIR, help=f'Directory for intermediate data (default: {WORK_DIR})')
    parser.add_argument('--job-id', help='Custom job ID (auto-generated if not provided)')
    parser.add_argument('--max-workers', type=int, default=4, help='Concurrent tasks per phase (default: 4)')
    parser.add_argument('--metrics-file', help='Write job metrics as JSON to this file')

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument('-v', '--verbose', action='store_true', help='Log debug detail')
    verbosity.add_argument('-q', '--quiet', action='store_true', help='Log warnings and errors only')
    return parser


def run_job(args) -> int:
    """Run one job from parsed arguments, returning the process exit code"""
    config = JobConfig(
        input_path=args.input,
        output_path=args.output,
        job_file=args.job_file,
        num_map_tasks=args.num_map_tasks,
        num_reduce_tasks=args.num_reduce_tasks,
        use_combiner=args.use_combiner,
        stop_words_file=args.stop_words_file,
        work_dir=args.work_dir,
    )
    if args.job_id:
        config.job_id = args.job_id

    try:
        metrics = LocalRunner(max_workers=max(1, args.max_workers)).run(config)
    except JobConfigError as e:
        logger.error(f"Invalid job configuration: {e}")
        return 1
    except JobFailedError as e:
        logger.error(str(e))
        return 1

    if args.metrics_file:
        metrics.save_to_file(args.metrics_file)

    print(f"✓ Job {metrics.job_id} completed")
    print(f"  Groups: {metrics.output_records}")
    print(f"  Words read: {metrics.map_output_records}")
    print(f"  Output: {args.output}")
    return 0


def main(argv=None) -> int:
    """Main CLI entry point"""
    args = build_parser().parse_args(argv)

    if args.verbose:
        configure_logging(logging.DEBUG)
    elif args.quiet:
        configure_logging(logging.WARNING)
    else:
        configure_logging(logging.INFO)

    return run_job(args)


if __name__ == '__main__':
    sys.exit(main())
