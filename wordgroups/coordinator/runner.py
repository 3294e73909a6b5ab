"""
Local job runner.

Plays the role of the coordinator and its workers in one process: splits the
input, runs map tasks on a thread pool, hands each reduce task every
intermediate file of its partition, and commits the output directory only
after every task has succeeded.
"""

import logging
import os
import shutil
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List

from wordgroups.common.errors import JobConfigError, JobFailedError
from wordgroups.config import JobConfig
from wordgroups.coordinator.job_manager import Job, JobManager
from wordgroups.coordinator.metrics import JobMetrics, MetricsCollector
from wordgroups.worker.map_executor import MapExecutor
from wordgroups.worker.reduce_executor import ReduceExecutor

logger = logging.getLogger(__name__)

SUCCESS_MARKER = '_SUCCESS'


class LocalRunner:
    """Runs word groups jobs in-process"""

    def __init__(self, max_workers: int = 4):
        self.max_workers = max_workers
        self.job_manager = JobManager()
        self.metrics = MetricsCollector()

    def run(self, config: JobConfig) -> JobMetrics:
        """
        Run a job to completion

        Args:
            config: Job configuration

        Returns:
            Metrics of the finished job

        Raises:
            JobConfigError: If the configuration is invalid
            JobFailedError: If any task failed; no output is left behind
        """
        config.validate()
        # Loaded once and shared read-only by every map task
        map_options = config.map_options()

        job = self.job_manager.create_job(config)
        staging_dir = self._staging_dir(config)
        logger.info(f"Job {job.job_id}: Starting, input={config.input_path} output={config.output_path}")

        try:
            map_tasks = self.job_manager.generate_map_tasks(job)
            self.metrics.start_job(job.job_id, len(map_tasks), job.num_reduce_tasks,
                                   job.use_combiner, sorted({t.input_path for t in map_tasks}))

            self.job_manager.start_map_phase(job.job_id)
            logger.info(f"Job {job.job_id}: Map phase with {len(map_tasks)} tasks")
            map_results = self._run_phase(job, 'Map', map_tasks, lambda task: MapExecutor(
                task_id=task.task_id,
                input_path=task.input_path,
                start_offset=task.start_offset,
                end_offset=task.end_offset,
                num_reduce_tasks=job.num_reduce_tasks,
                job_file=job.job_file,
                use_combiner=job.use_combiner,
                job_id=job.job_id,
                intermediate_dir=job.intermediate_dir,
                map_options=map_options,
            ))
            for task, result in zip(map_tasks, map_results):
                self.job_manager.mark_map_task_completed(
                    job.job_id, task.task_id, result['intermediate_files'])
            self.metrics.end_map_phase(job.job_id, map_results)

            reduce_tasks = self.job_manager.generate_reduce_tasks(job)
            self.metrics.start_reduce_phase(
                job.job_id, [f for t in reduce_tasks for f in t.intermediate_files])
            logger.info(f"Job {job.job_id}: Reduce phase with {len(reduce_tasks)} tasks")
            reduce_results = self._run_phase(job, 'Reduce', reduce_tasks, lambda task: ReduceExecutor(
                task_id=task.task_id,
                partition_id=task.partition_id,
                intermediate_files=task.intermediate_files,
                job_file=job.job_file,
                output_path=staging_dir,
                job_id=job.job_id,
            ))
            for task in reduce_tasks:
                self.job_manager.mark_reduce_task_completed(job.job_id, task.task_id)

            output_files = self._commit_output(staging_dir, config.output_path)
            self.metrics.end_job(job.job_id, output_files, reduce_results)

        except JobFailedError:
            raise
        except JobConfigError as e:
            self.job_manager.mark_job_failed(job.job_id, str(e))
            raise
        except Exception as e:
            self.job_manager.mark_job_failed(job.job_id, str(e))
            logger.error(f"Job {job.job_id}: Failed: {type(e).__name__}: {e}")
            raise JobFailedError(job.job_id, str(e)) from e
        finally:
            self._cleanup(config, job, staging_dir)

        metrics = self.metrics.get_metrics(job.job_id)
        logger.info(f"Job {job.job_id}: Completed in {metrics.total_time_seconds:.2f}s, "
                    f"{metrics.output_records} groups written to {config.output_path}")
        return metrics

    def _run_phase(self, job: Job, phase: str, tasks: list, make_executor: Callable) -> List[dict]:
        """
        Run every task of one phase on the thread pool.

        On the first failure, tasks not yet started are cancelled and the job
        fails.

        Returns:
            Task results in task order
        """
        results = [None] * len(tasks)
        failure = None

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(make_executor(task).execute): i for i, task in enumerate(tasks)}
            for future in as_completed(futures):
                if future.cancelled():
                    continue
                index = futures[future]
                result = future.result()
                results[index] = result
                self.metrics.sample_memory(job.job_id)
                if result['success'] or failure is not None:
                    continue

                task = tasks[index]
                failure = f"{phase} task {task.task_id} failed: {result['error_message']}"
                self.job_manager.mark_task_failed(job.job_id, task, failure)
                for pending in futures:
                    pending.cancel()

        if failure is not None:
            logger.error(f"Job {job.job_id}: {failure}")
            raise JobFailedError(job.job_id, failure)
        return results

    @staticmethod
    def _staging_dir(config: JobConfig) -> str:
        # Sibling of the output so the final rename stays on one filesystem
        output = os.path.abspath(config.output_path)
        return os.path.join(os.path.dirname(output),
                            f".{os.path.basename(output)}.{config.job_id}.tmp")

    @staticmethod
    def _commit_output(staging_dir: str, output_path: str) -> List[str]:
        """Mark the staged output complete and move it into place."""
        os.makedirs(staging_dir, exist_ok=True)
        with open(os.path.join(staging_dir, SUCCESS_MARKER), 'w', encoding='utf-8'):
            pass
        os.rename(staging_dir, output_path)

        return sorted(
            os.path.join(output_path, name)
            for name in os.listdir(output_path)
            if name.startswith('part-')
        )

    @staticmethod
    def _is_within(path: str, parent: str) -> bool:
        path = os.path.realpath(path)
        parent = os.path.realpath(parent)
        return path != parent and os.path.commonpath([path, parent]) == parent

    @classmethod
    def _cleanup(cls, config: JobConfig, job: Job, staging_dir: str):
        """Remove intermediate data and any uncommitted output."""
        output_parent = os.path.dirname(os.path.abspath(config.output_path))
        for path, parent in ((job.intermediate_dir, config.work_dir), (staging_dir, output_parent)):
            if not os.path.exists(path):
                continue
            if not cls._is_within(path, parent):
                logger.error(f"Job {job.job_id}: Refusing to remove {path}, it is outside {parent}")
                continue
            shutil.rmtree(path, ignore_errors=True)
            logger.debug(f"Job {job.job_id}: Removed {path}")

