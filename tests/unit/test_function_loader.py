"""
Unit tests for FunctionLoader
"""

import os

import pytest

from wordgroups.worker.function_loader import DEFAULT_JOB, FunctionLoader


class TestFunctionLoaderBasics:
    """Tests for basic loading functionality"""

    def test_loads_module_by_name(self, word_groups_job):
        """Test loading the built-in job by dotted module name"""
        loader = FunctionLoader(word_groups_job)
        module = loader.load_module()

        assert module is not None
        assert hasattr(module, 'map_function')
        assert hasattr(module, 'reduce_function')
        assert hasattr(module, 'combiner_function')

    def test_default_job_is_word_groups(self):
        assert FunctionLoader().job_file == DEFAULT_JOB == 'wordgroups.jobs.word_groups'

    def test_loads_module_from_file(self, write_file):
        """Test loading a job from a .py path"""
        job_file = write_file('upper_job.py', (
            "def map_function(key, value):\n"
            "    yield (value.upper(), value)\n"
            "\n"
            "def reduce_function(key, values):\n"
            "    yield (key, len(values))\n"
        ))
        loader = FunctionLoader(job_file)

        assert list(loader.get_map_function()(0, "ab")) == [("AB", "ab")]
        assert list(loader.get_reduce_function()("AB", ["ab", "ab"])) == [("AB", 2)]

    def test_raises_error_for_nonexistent_file(self):
        """Test that loading non-existent file raises FileNotFoundError"""
        loader = FunctionLoader('/nonexistent/file.py')

        with pytest.raises(FileNotFoundError):
            loader.load_module()

    def test_raises_error_for_unknown_module(self):
        loader = FunctionLoader('wordgroups.jobs.does_not_exist')

        with pytest.raises(ImportError):
            loader.load_module()

    def test_get_map_function_loads_module_automatically(self, word_groups_job):
        """Test that get_map_function loads module if not already loaded"""
        loader = FunctionLoader(word_groups_job)
        map_func = loader.get_map_function()

        assert callable(map_func)
        assert loader.module is not None


class TestFunctionLoaderFunctions:
    """Tests for map, reduce and combiner lookup"""

    def test_map_function_works_correctly(self, word_groups_job):
        """Test that loaded map function produces (key, word) pairs"""
        map_func = FunctionLoader(word_groups_job).get_map_function()

        results = list(map_func(0, "the tea ate"))

        assert results == [("aet", "tea"), ("aet", "ate")]

    def test_reduce_function_works_correctly(self, word_groups_job):
        reduce_func = FunctionLoader(word_groups_job).get_reduce_function()

        assert list(reduce_func("aet", ["tea", "ate", "tea"])) == [(None, "2\t3\tate tea")]

    def test_raises_error_when_map_function_missing(self, write_file):
        """Test error when module doesn't define map_function"""
        job_file = write_file('no_map.py', "def reduce_function(key, values):\n    yield (key, 1)\n")

        with pytest.raises(AttributeError):
            FunctionLoader(job_file).get_map_function()

    def test_raises_error_when_reduce_function_missing(self, write_file):
        job_file = write_file('no_reduce.py', "def map_function(key, value):\n    yield (key, value)\n")

        with pytest.raises(AttributeError):
            FunctionLoader(job_file).get_reduce_function()

    def test_no_combiner_does_not_fall_back_to_reduce(self, write_file):
        job_file = write_file('no_combiner.py', (
            "def map_function(key, value):\n"
            "    yield (key, value)\n"
            "\n"
            "def reduce_function(key, values):\n"
            "    yield (key, len(values))\n"
        ))

        assert FunctionLoader(job_file).get_combiner_function() is None

    def test_files_with_same_name_load_independently(self, temp_dir, write_file):
        first = write_file(os.path.join('a', 'job.py'), "NAME = 'a'\n")
        second = write_file(os.path.join('b', 'job.py'), "NAME = 'b'\n")

        assert FunctionLoader(first).load_module().NAME == 'a'
        assert FunctionLoader(second).load_module().NAME == 'b'
