"""
Reduce Task Executor
Executes reduce tasks by reading intermediate data, grouping by key,
applying reduce functions, and writing final output
"""

import json
import logging
import os
import time

from wordgroups.common.errors import GroupInvariantError
from wordgroups.worker.function_loader import FunctionLoader
from wordgroups.worker.shuffle import group_by_key

logger = logging.getLogger(__name__)


class ReduceExecutor:
    """Executes a single reduce task"""

    def __init__(self, task_id: int, partition_id: int, intermediate_files: list,
                 job_file: str, output_path: str, job_id: str):
        """
        Initialize the reduce executor

        Args:
            task_id: Unique ID for this reduce task
            partition_id: Partition ID this reduce task is responsible for
            intermediate_files: List of intermediate file paths to read
            job_file: Job .py file or module name holding the map/reduce functions
            output_path: Directory where the part file should be written
            job_id: Unique job identifier
        """
        self.task_id = task_id
        self.partition_id = partition_id
        self.intermediate_files = intermediate_files
        self.job_file = job_file
        self.output_path = output_path
        self.job_id = job_id
        self.loader = FunctionLoader(job_file)

    def execute(self) -> dict:
        """
        Execute the reduce task

        Returns:
            Dictionary with 'success', 'execution_time_ms', 'error_message',
            'output_file', 'records_in' and 'records_out' fields
        """
        start_time = time.time()

        try:
            logger.info(f"Reduce task {self.task_id}: Loading reduce function")
            reduce_func = self.loader.get_reduce_function()

            logger.info(f"Reduce task {self.task_id}: Reading and grouping intermediate data")
            key_groups = self._read_and_group_intermediate()
            records_in = sum(len(v) for v in key_groups.values())
            logger.info(f"Reduce task {self.task_id}: Grouped {len(key_groups)} unique keys")

            results = []
            for key in sorted(key_groups):  # Sorted for byte-identical reruns
                for out_key, out_value in reduce_func(key, key_groups[key]):
                    results.append((out_key, out_value))

            output_file = self._write_output(results)

            execution_time = int((time.time() - start_time) * 1000)
            logger.info(f"Reduce task {self.task_id}: Completed in {execution_time}ms")

            return {
                'success': True,
                'execution_time_ms': execution_time,
                'error_message': '',
                'output_file': output_file,
                'records_in': records_in,
                'records_out': len(results),
            }

        except Exception as e:
            execution_time = int((time.time() - start_time) * 1000)
            logger.error(f"Reduce task {self.task_id} failed: {type(e).__name__}: {e}")
            return {
                'success': False,
                'execution_time_ms': execution_time,
                'error_message': str(e),
                'output_file': None,
                'records_in': 0,
                'records_out': 0,
            }

    def _read_records(self):
        """
        Yield (key, value) pairs from every intermediate file.

        Missing files and malformed lines are errors: dropping either would
        silently change group counts.
        """
        for filepath in self.intermediate_files:
            if not os.path.exists(filepath):
                raise FileNotFoundError(f"Intermediate file not found: {filepath}")

            with open(filepath, 'r', encoding='utf-8') as f:
                for line_num, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        record = json.loads(line)
                        yield (record['key'], record['value'])
                    except (json.JSONDecodeError, KeyError, TypeError) as e:
                        raise GroupInvariantError(
                            f"Malformed intermediate record at {filepath}:{line_num}: {e}") from e

            logger.debug(f"Reduce task {self.task_id}: Read {filepath}")

    def _read_and_group_intermediate(self) -> dict:
        """
        Read all intermediate files and group by key

        Returns:
            Dictionary mapping key to list of values
        """
        return group_by_key(self._read_records())

    def _write_output(self, results: list) -> str:
        """
        Write final reduce output.
        A None key writes the value alone, otherwise 'key<TAB>value'.

        Returns:
            Path of the part file
        """
        os.makedirs(self.output_path, exist_ok=True)
        output_file = os.path.join(self.output_path, f"part-{self.partition_id}.txt")

        with open(output_file, 'w', encoding='utf-8') as f:
            for key, value in results:
                if key is None:
                    f.write(f"{value}\n")
                else:
                    f.write(f"{key}\t{value}\n")

        logger.info(f"Reduce task {self.task_id}: Wrote {len(results)} records to {output_file}")
        return output_file
