"""
Map Task Executor
Executes map tasks by reading input splits, applying map functions,
partitioning output, and writing intermediate files
"""

import json
import logging
import os
import time
from collections import defaultdict

from wordgroups.common.errors import InputDecodingError
from wordgroups.worker.function_loader import FunctionLoader
from wordgroups.worker.shuffle import group_by_key, partition_for

logger = logging.getLogger(__name__)


class MapExecutor:
    """Executes a single map task"""

    def __init__(self, task_id: int, input_path: str, start_offset: int,
                 end_offset: int, num_reduce_tasks: int, job_file: str,
                 use_combiner: bool, job_id: str, intermediate_dir: str,
                 map_options: dict = None):
        """
        Initialize the map executor

        Args:
            task_id: Unique ID for this map task
            input_path: Path to input file
            start_offset: Byte offset where this task's split starts
            end_offset: Byte offset where this task's split ends (exclusive)
            num_reduce_tasks: Number of reduce tasks (for partitioning)
            job_file: Job .py file or module name holding the map/reduce functions
            use_combiner: Whether to apply combiner function
            job_id: Unique job identifier
            intermediate_dir: Directory for this job's intermediate files
            map_options: Extra keyword arguments passed to the map function
        """
        self.task_id = task_id
        self.input_path = input_path
        self.start_offset = start_offset
        self.end_offset = end_offset
        self.num_reduce_tasks = num_reduce_tasks
        self.job_file = job_file
        self.use_combiner = use_combiner
        self.job_id = job_id
        self.intermediate_dir = intermediate_dir
        self.map_options = map_options or {}
        self.loader = FunctionLoader(job_file)

    def execute(self) -> dict:
        """
        Execute the map task

        Returns:
            Dictionary with 'success', 'execution_time_ms', 'error_message',
            'intermediate_files', 'records_in', 'records_emitted' (before the
            combiner) and 'records_out' (written) fields
        """
        start_time = time.time()

        try:
            logger.info(f"Map task {self.task_id}: Loading map function")
            map_func = self.loader.get_map_function()

            logger.info(f"Map task {self.task_id}: Reading input split "
                        f"{self.input_path}[{self.start_offset}:{self.end_offset}]")
            intermediate = defaultdict(list)
            records_in = 0
            for key, value in self._read_input_split():
                records_in += 1
                for out_key, out_value in map_func(key, value, **self.map_options):
                    partition = partition_for(out_key, self.num_reduce_tasks)
                    intermediate[partition].append((out_key, out_value))

            records_emitted = sum(len(v) for v in intermediate.values())
            records_out = records_emitted
            logger.info(f"Map task {self.task_id}: Generated {records_emitted} intermediate pairs "
                        f"from {records_in} lines")

            if self.use_combiner:
                intermediate = self._apply_combiner(intermediate)
                records_out = sum(len(v) for v in intermediate.values())
                logger.info(f"Map task {self.task_id}: After combiner: {records_out} pairs")

            files = self._write_intermediate_files(intermediate)

            execution_time = int((time.time() - start_time) * 1000)
            logger.info(f"Map task {self.task_id}: Completed in {execution_time}ms")

            return {
                'success': True,
                'execution_time_ms': execution_time,
                'error_message': '',
                'intermediate_files': files,
                'records_in': records_in,
                'records_emitted': records_emitted,
                'records_out': records_out,
            }

        except Exception as e:
            execution_time = int((time.time() - start_time) * 1000)
            logger.error(f"Map task {self.task_id} failed: {type(e).__name__}: {e}")
            return {
                'success': False,
                'execution_time_ms': execution_time,
                'error_message': str(e),
                'intermediate_files': [],
                'records_in': 0,
                'records_emitted': 0,
                'records_out': 0,
            }

    def _read_input_split(self):
        """
        Read the assigned byte range of the input file.

        A line belongs to the split in which it starts. For splits not at the
        start of the file, the reader backs up one byte and discards through
        the next newline, so a line starting exactly at start_offset is kept.

        Yields:
            (byte_offset, line) tuples, line without its line terminator

        Raises:
            InputDecodingError: If a line is not valid UTF-8
        """
        with open(self.input_path, 'rb') as f:
            if self.start_offset > 0:
                f.seek(self.start_offset - 1)
                f.readline()

            while True:
                position = f.tell()
                if position >= self.end_offset:
                    break
                raw = f.readline()
                if not raw:
                    break
                try:
                    line = raw.decode('utf-8')
                except UnicodeDecodeError as e:
                    raise InputDecodingError(self.input_path, position, e.reason) from e
                yield (position, line.rstrip('\r\n'))

    def _apply_combiner(self, intermediate: dict) -> dict:
        """
        Apply combiner function to local map output

        Args:
            intermediate: Dictionary mapping partition_id to list of (key, value) pairs

        Returns:
            Dictionary with same structure but with combined values
        """
        combiner_func = self.loader.get_combiner_function()
        if not combiner_func:
            logger.warning(f"Map task {self.task_id}: Job defines no combiner_function, skipping")
            return intermediate

        combined = {}
        for partition, kv_pairs in intermediate.items():
            combined_pairs = []
            for key, values in group_by_key(kv_pairs).items():
                combined_pairs.extend(combiner_func(key, values))
            combined[partition] = combined_pairs

        return combined

    def _write_intermediate_files(self, intermediate: dict) -> list:
        """
        Write intermediate key-value pairs to disk as JSON lines

        Returns:
            Paths of the files written, one per non-empty partition
        """
        os.makedirs(self.intermediate_dir, exist_ok=True)

        files = []
        for partition in sorted(intermediate):
            kv_pairs = intermediate[partition]
            if not kv_pairs:
                continue
            filename = os.path.join(self.intermediate_dir,
                                    f"map-{self.task_id}-reduce-{partition}.txt")

            with open(filename, 'w', encoding='utf-8') as f:
                for key, value in kv_pairs:
                    f.write(json.dumps({'key': key, 'value': value}) + '\n')
            logger.debug(f"Map task {self.task_id}: Wrote {len(kv_pairs)} pairs to {filename}")
            files.append(filename)

        return files
