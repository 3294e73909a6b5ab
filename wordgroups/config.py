"""
Job configuration
"""

import os
import re
import tempfile
import uuid
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from wordgroups.common.errors import JobConfigError
from wordgroups.common.stop_words import STOP_WORDS, load_stop_words
from wordgroups.worker.function_loader import DEFAULT_JOB

# Configuration from environment
WORK_DIR = os.getenv('WORDGROUPS_WORK_DIR', os.path.join(tempfile.gettempdir(), 'wordgroups'))

# Job ids name directories, so they must be a single safe path component
JOB_ID_PATTERN = re.compile(r"[A-Za-z0-9_.-]+")


@dataclass
class JobConfig:
    """Everything needed to run one word groups job"""
    input_path: str
    output_path: str
    job_file: str = DEFAULT_JOB
    num_map_tasks: int = 4
    num_reduce_tasks: int = 2
    use_combiner: bool = False
    stop_words_file: Optional[str] = None
    work_dir: str = WORK_DIR
    job_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def intermediate_dir(self) -> str:
        return os.path.join(self.work_dir, 'intermediate', self.job_id)

    def validate(self):
        """
        Check the configuration before any task runs

        Raises:
            JobConfigError: On the first problem found
        """
        if not JOB_ID_PATTERN.fullmatch(self.job_id) or self.job_id in (".", ".."):
            raise JobConfigError(f"job_id may only contain letters, digits, '_', '.' and '-': {self.job_id!r}")
        if self.num_map_tasks < 1:
            raise JobConfigError(f"num_map_tasks must be at least 1, got {self.num_map_tasks}")
        if self.num_reduce_tasks < 1:
            raise JobConfigError(f"num_reduce_tasks must be at least 1, got {self.num_reduce_tasks}")
        if not os.path.exists(self.input_path):
            raise JobConfigError(f"Input path not found: {self.input_path}")
        if os.path.exists(self.output_path):
            raise JobConfigError(f"Output path already exists: {self.output_path}")
        if self.stop_words_file and not os.path.isfile(self.stop_words_file):
            raise JobConfigError(f"Stop word file not found: {self.stop_words_file}")

    def load_stop_words(self) -> FrozenSet[str]:
        """Stop words for this job, read once at startup"""
        if self.stop_words_file:
            return load_stop_words(self.stop_words_file)
        return STOP_WORDS

    def map_options(self) -> dict:
        """Keyword arguments handed to the map function of every map task"""
        if self.stop_words_file:
            return {'stop_words': self.load_stop_words()}
        return {}
