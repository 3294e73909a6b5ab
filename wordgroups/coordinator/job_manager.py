"""
Job Manager for the local MapReduce runner
Handles job state management, task generation, and progress tracking
"""

import glob
import math
import os
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from wordgroups.common.errors import JobConfigError
from wordgroups.config import JobConfig


class JobStatus(Enum):
    """Status of a MapReduce job"""
    PENDING = "pending"
    MAP_PHASE = "map_phase"
    SHUFFLE_PHASE = "shuffle_phase"
    REDUCE_PHASE = "reduce_phase"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskStatus(Enum):
    """Status of individual map or reduce tasks"""
    PENDING = "pending"
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class MapTask:
    """Represents a single map task"""
    task_id: int
    input_path: str
    start_offset: int
    end_offset: int
    status: TaskStatus = TaskStatus.PENDING
    intermediate_files: List[str] = field(default_factory=list)


@dataclass
class ReduceTask:
    """Represents a single reduce task"""
    task_id: int
    partition_id: int
    intermediate_files: List[str] = field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING


@dataclass
class Job:
    """Represents a complete MapReduce job"""
    job_id: str
    input_path: str
    output_path: str
    job_file: str
    num_map_tasks: int
    num_reduce_tasks: int
    use_combiner: bool
    intermediate_dir: str
    status: JobStatus = JobStatus.PENDING
    map_tasks: List[MapTask] = field(default_factory=list)
    reduce_tasks: List[ReduceTask] = field(default_factory=list)
    start_time: float = 0.0
    end_time: float = 0.0
    error_message: str = ''


def list_input_files(input_path: str) -> List[str]:
    """
    Resolve an input location to the files to read.
    A directory contributes its regular files, skipping names starting with '.' or '_'.
    """
    if os.path.isfile(input_path):
        return [input_path]
    if not os.path.isdir(input_path):
        raise JobConfigError(f"Input path not found: {input_path}")

    files = []
    for name in sorted(os.listdir(input_path)):
        if name.startswith(('.', '_')):
            continue
        path = os.path.join(input_path, name)
        if os.path.isfile(path):
            files.append(path)
    if not files:
        raise JobConfigError(f"Input directory has no files: {input_path}")
    return files


class JobManager:
    """Manages MapReduce jobs and their lifecycle"""

    def __init__(self):
        self.jobs: Dict[str, Job] = {}
        self.lock = threading.Lock()

    def create_job(self, config: JobConfig) -> Job:
        """Create new job from its configuration"""
        with self.lock:
            job = Job(
                job_id=config.job_id,
                input_path=config.input_path,
                output_path=config.output_path,
                job_file=config.job_file,
                num_map_tasks=config.num_map_tasks,
                num_reduce_tasks=config.num_reduce_tasks,
                use_combiner=config.use_combiner,
                intermediate_dir=config.intermediate_dir,
                start_time=time.time()
            )
            self.jobs[job.job_id] = job
            return job

    def generate_map_tasks(self, job: Job) -> List[MapTask]:
        """
        Split the input into roughly num_map_tasks byte ranges.
        Every input file gets at least one task; splits never span files.
        """
        files = list_input_files(job.input_path)
        sizes = [os.path.getsize(path) for path in files]
        chunk_size = max(1, math.ceil(sum(sizes) / job.num_map_tasks))

        map_tasks = []
        for path, size in zip(files, sizes):
            start = 0
            while True:
                end = min(start + chunk_size, size)
                map_tasks.append(MapTask(
                    task_id=len(map_tasks),
                    input_path=path,
                    start_offset=start,
                    end_offset=end
                ))
                if end >= size:
                    break
                start = end

        with self.lock:
            job.map_tasks = map_tasks
        return map_tasks

    def generate_reduce_tasks(self, job: Job) -> List[ReduceTask]:
        """Create R reduce tasks with intermediate file assignments"""
        reduce_tasks = []
        for partition_id in range(job.num_reduce_tasks):
            pattern = os.path.join(job.intermediate_dir, f"map-*-reduce-{partition_id}.txt")
            reduce_tasks.append(ReduceTask(
                task_id=partition_id,
                partition_id=partition_id,
                intermediate_files=sorted(glob.glob(pattern))
            ))

        with self.lock:
            job.reduce_tasks = reduce_tasks
            job.status = JobStatus.REDUCE_PHASE
        return reduce_tasks

    def start_map_phase(self, job_id: str):
        with self.lock:
            job = self.jobs[job_id]
            job.status = JobStatus.MAP_PHASE
            for task in job.map_tasks:
                task.status = TaskStatus.ASSIGNED

    def mark_map_task_completed(self, job_id: str, task_id: int, intermediate_files: List[str]):
        """Mark map task as completed"""
        with self.lock:
            job = self.jobs.get(job_id)
            if job and task_id < len(job.map_tasks):
                task = job.map_tasks[task_id]
                task.status = TaskStatus.COMPLETED
                task.intermediate_files = list(intermediate_files)

                if all(t.status == TaskStatus.COMPLETED for t in job.map_tasks):
                    job.status = JobStatus.SHUFFLE_PHASE

    def mark_reduce_task_completed(self, job_id: str, task_id: int):
        """Mark reduce task as completed"""
        with self.lock:
            job = self.jobs.get(job_id)
            if job and task_id < len(job.reduce_tasks):
                job.reduce_tasks[task_id].status = TaskStatus.COMPLETED

                if all(t.status == TaskStatus.COMPLETED for t in job.reduce_tasks):
                    job.status = JobStatus.COMPLETED
                    job.end_time = time.time()

    def mark_task_failed(self, job_id: str, task, error_message: str):
        """Mark a map or reduce task as failed, which fails the whole job"""
        with self.lock:
            task.status = TaskStatus.FAILED
            job = self.jobs.get(job_id)
            if job and job.status != JobStatus.FAILED:
                job.status = JobStatus.FAILED
                job.error_message = error_message
                job.end_time = time.time()

    def mark_job_failed(self, job_id: str, error_message: str):
        with self.lock:
            job = self.jobs.get(job_id)
            if job:
                job.status = JobStatus.FAILED
                job.error_message = error_message
                job.end_time = time.time()

    def get_job_status(self, job_id: str) -> Optional[Dict]:
        """Get current job status with progress"""
        with self.lock:
            job = self.jobs.get(job_id)
            if not job:
                return None

            map_completed = sum(1 for t in job.map_tasks if t.status == TaskStatus.COMPLETED)
            reduce_completed = sum(1 for t in job.reduce_tasks if t.status == TaskStatus.COMPLETED)
            total_tasks = len(job.map_tasks) + len(job.reduce_tasks)
            progress = int((map_completed + reduce_completed) / total_tasks * 100) if total_tasks > 0 else 0

            return {
                'status': job.status.value,
                'progress': progress,
                'map_completed': map_completed,
                'map_total': len(job.map_tasks),
                'reduce_completed': reduce_completed,
                'reduce_total': len(job.reduce_tasks),
                'error_message': job.error_message
            }
