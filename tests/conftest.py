"""
Pytest configuration and shared fixtures
"""

import pytest
import os
import tempfile
import shutil


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def sample_text():
    """Sample text for testing"""
    return """The cat sat on the mat.
A tea at the lea, and an ale.
Listen! Silent night, enlist the tinsel.
Don't stop: the act was a tact-less fact.
Ale, lea, tea; eat, ate, eta."""


@pytest.fixture
def sample_input_file(temp_dir, sample_text):
    """Create a sample input file for testing"""
    filepath = os.path.join(temp_dir, 'input.txt')
    with open(filepath, 'w', encoding='utf-8') as f:
        f.write(sample_text)
    return filepath


@pytest.fixture
def word_groups_job():
    """Module name of the built-in word groups job"""
    return 'wordgroups.jobs.word_groups'


@pytest.fixture
def write_file(temp_dir):
    """Write text into a file under temp_dir and return its path"""
    def _write(name, content, mode='w'):
        path = os.path.join(temp_dir, name)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        if 'b' in mode:
            with open(path, mode) as f:
                f.write(content)
        else:
            with open(path, mode, encoding='utf-8') as f:
                f.write(content)
        return path
    return _write
