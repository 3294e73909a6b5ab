"""
Performance metrics collection for word groups jobs.
"""

import json
import os
import time
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional

import psutil


@dataclass
class JobMetrics:
    """Metrics for a single MapReduce job execution."""

    job_id: str
    start_time: float
    end_time: float
    map_phase_start: float
    map_phase_end: float
    reduce_phase_start: float
    reduce_phase_end: float
    num_map_tasks: int
    num_reduce_tasks: int
    use_combiner: bool
    input_size_bytes: int
    intermediate_size_bytes: int = 0
    output_size_bytes: int = 0
    input_records: int = 0
    map_output_records: int = 0
    intermediate_records: int = 0
    output_records: int = 0
    sampled_peak_memory_bytes: int = 0
    combiner_reduction_ratio: float = 0.0

    @property
    def total_time_seconds(self) -> float:
        """Total job execution time in seconds."""
        return self.end_time - self.start_time

    @property
    def map_phase_time_seconds(self) -> float:
        """Map phase execution time in seconds."""
        return self.map_phase_end - self.map_phase_start

    @property
    def reduce_phase_time_seconds(self) -> float:
        """Reduce phase execution time in seconds."""
        return self.reduce_phase_end - self.reduce_phase_start

    def to_dict(self) -> dict:
        """Convert metrics to dictionary, timings included."""
        data = asdict(self)
        data['total_time_seconds'] = self.total_time_seconds
        data['map_phase_time_seconds'] = self.map_phase_time_seconds
        data['reduce_phase_time_seconds'] = self.reduce_phase_time_seconds
        return data

    def save_to_file(self, filepath: str):
        """Save metrics to JSON file."""
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2)


def _total_size(paths: List[str]) -> int:
    return sum(os.path.getsize(p) for p in paths if os.path.exists(p))


class MetricsCollector:
    """Collects and manages metrics for word groups jobs."""

    def __init__(self):
        self.job_metrics: Dict[str, JobMetrics] = {}
        self.process = psutil.Process()

    def start_job(self, job_id: str, num_map_tasks: int, num_reduce_tasks: int,
                  use_combiner: bool, input_files: List[str]):
        """Initialize metrics tracking for a new job."""
        now = time.time()
        self.job_metrics[job_id] = JobMetrics(
            job_id=job_id,
            start_time=now,
            end_time=0,
            map_phase_start=now,
            map_phase_end=0,
            reduce_phase_start=0,
            reduce_phase_end=0,
            num_map_tasks=num_map_tasks,
            num_reduce_tasks=num_reduce_tasks,
            use_combiner=use_combiner,
            input_size_bytes=_total_size(input_files),
        )
        self.sample_memory(job_id)

    def sample_memory(self, job_id: str):
        """
        Record current resident memory if it is the highest seen for the job.

        Called at job start, after every finished task and at phase ends, so
        the result is the peak over those samples, not a continuous maximum.
        """
        metrics = self.job_metrics.get(job_id)
        if metrics:
            rss = self.process.memory_info().rss
            metrics.sampled_peak_memory_bytes = max(metrics.sampled_peak_memory_bytes, rss)

    def end_map_phase(self, job_id: str, map_results: List[dict]):
        """Mark the end of the map phase and total the map task counters."""
        metrics = self.job_metrics.get(job_id)
        if not metrics:
            return

        metrics.map_phase_end = time.time()
        metrics.input_records = sum(r.get('records_in', 0) for r in map_results)
        metrics.map_output_records = sum(r.get('records_emitted', 0) for r in map_results)
        metrics.intermediate_records = sum(r.get('records_out', 0) for r in map_results)
        if metrics.map_output_records > 0:
            metrics.combiner_reduction_ratio = \
                1.0 - (metrics.intermediate_records / metrics.map_output_records)
        self.sample_memory(job_id)

    def start_reduce_phase(self, job_id: str, intermediate_files: List[str]):
        """Mark the start of the reduce phase and calculate intermediate data size."""
        metrics = self.job_metrics.get(job_id)
        if metrics:
            metrics.reduce_phase_start = time.time()
            metrics.intermediate_size_bytes = _total_size(intermediate_files)

    def end_job(self, job_id: str, output_files: List[str], reduce_results: List[dict]):
        """Mark job completion and calculate output size."""
        metrics = self.job_metrics.get(job_id)
        if metrics:
            metrics.reduce_phase_end = time.time()
            metrics.end_time = time.time()
            metrics.output_size_bytes = _total_size(output_files)
            metrics.output_records = sum(r.get('records_out', 0) for r in reduce_results)
            self.sample_memory(job_id)

    def get_metrics(self, job_id: str) -> Optional[JobMetrics]:
        """Retrieve metrics for a specific job."""
        return self.job_metrics.get(job_id)
