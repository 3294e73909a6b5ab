"""
Exception types raised by the word groups job and its runner
"""


class WordGroupsError(Exception):
    """Base class for all word groups errors"""


class InputDecodingError(WordGroupsError, ValueError):
    """An input line could not be decoded as UTF-8"""

    def __init__(self, path: str, offset: int, reason: str):
        self.path = path
        self.offset = offset
        self.reason = reason
        super().__init__(f"Cannot decode line at byte {offset} of {path}: {reason}")


class GroupInvariantError(WordGroupsError, RuntimeError):
    """A group reached aggregation in a state the shuffle contract forbids"""


class JobConfigError(WordGroupsError):
    """Job configuration is invalid"""


class JobFailedError(WordGroupsError):
    """A task of the job failed, so the job produced no output"""

    def __init__(self, job_id: str, message: str):
        self.job_id = job_id
        self.message = message
        super().__init__(f"Job {job_id} failed: {message}")
