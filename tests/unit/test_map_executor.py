"""
Unit tests for MapExecutor
"""

import json
import os
from unittest.mock import Mock, patch

import pytest

from wordgroups.common.errors import InputDecodingError
from wordgroups.worker.map_executor import MapExecutor
from wordgroups.worker.shuffle import partition_for


def make_executor(input_path, intermediate_dir, start=0, end=None, num_reduce_tasks=2,
                  use_combiner=False, task_id=0, map_options=None,
                  job_file='wordgroups.jobs.word_groups'):
    if end is None:
        end = os.path.getsize(input_path)
    return MapExecutor(
        task_id=task_id,
        input_path=input_path,
        start_offset=start,
        end_offset=end,
        num_reduce_tasks=num_reduce_tasks,
        job_file=job_file,
        use_combiner=use_combiner,
        job_id='test-job',
        intermediate_dir=intermediate_dir,
        map_options=map_options,
    )


def read_intermediate(files):
    records = []
    for path in files:
        with open(path, encoding='utf-8') as f:
            records.extend(json.loads(line) for line in f)
    return records


class TestMapExecutorInputSplitting:
    """Tests for input split reading"""

    def test_reads_full_file_when_offsets_cover_entire_file(self, sample_input_file, temp_dir):
        """Test reading entire file"""
        with patch('wordgroups.worker.map_executor.FunctionLoader'):
            executor = make_executor(sample_input_file, temp_dir)
            key_values = list(executor._read_input_split())

        assert len(key_values) == 5  # 5 lines in sample text
        assert all(isinstance(k, int) and isinstance(v, str) for k, v in key_values)
        assert key_values[0] == (0, "The cat sat on the mat.")

    def test_every_line_read_by_exactly_one_split(self, sample_input_file, temp_dir):
        """Any split point must neither lose nor duplicate a line"""
        file_size = os.path.getsize(sample_input_file)

        with patch('wordgroups.worker.map_executor.FunctionLoader'):
            whole = list(make_executor(sample_input_file, temp_dir)._read_input_split())

            for split_point in range(file_size + 1):
                first = make_executor(sample_input_file, temp_dir, 0, split_point)
                second = make_executor(sample_input_file, temp_dir, split_point, file_size)
                lines = list(first._read_input_split()) + list(second._read_input_split())
                assert lines == whole, f"split at {split_point}"

    def test_line_starting_at_split_offset_belongs_to_that_split(self, write_file, temp_dir):
        path = write_file('lines.txt', "abc\ndef\nghi\n")

        with patch('wordgroups.worker.map_executor.FunctionLoader'):
            executor = make_executor(path, temp_dir, start=4, end=8)
            assert list(executor._read_input_split()) == [(4, "def")]

    def test_empty_split_returns_nothing(self, write_file, temp_dir):
        """Test handling of empty file split"""
        empty_file = write_file('empty.txt', '')

        with patch('wordgroups.worker.map_executor.FunctionLoader'):
            executor = make_executor(empty_file, temp_dir, 0, 0)
            assert list(executor._read_input_split()) == []

    def test_strips_crlf_line_endings(self, write_file, temp_dir):
        path = write_file('crlf.txt', b"tea\r\nate\r\n", mode='wb')

        with patch('wordgroups.worker.map_executor.FunctionLoader'):
            lines = [v for _, v in make_executor(path, temp_dir)._read_input_split()]
        assert lines == ["tea", "ate"]

    def test_invalid_utf8_raises_input_decoding_error(self, write_file, temp_dir):
        path = write_file('bad.txt', b"tea\n\xff\xfe ate\n", mode='wb')

        with patch('wordgroups.worker.map_executor.FunctionLoader'):
            with pytest.raises(InputDecodingError) as excinfo:
                list(make_executor(path, temp_dir)._read_input_split())

        assert excinfo.value.offset == 4
        assert excinfo.value.path == path


class TestMapExecutorExecution:
    """Tests for running the map task"""

    def test_writes_partitioned_intermediate_files(self, sample_input_file, temp_dir):
        intermediate_dir = os.path.join(temp_dir, 'intermediate')
        result = make_executor(sample_input_file, intermediate_dir, num_reduce_tasks=3).execute()

        assert result['success'] is True
        assert result['records_in'] == 5
        assert result['records_out'] == result['records_emitted'] > 0
        for path in result['intermediate_files']:
            partition = int(os.path.basename(path).split('-')[-1].split('.')[0])
            for record in read_intermediate([path]):
                assert partition_for(record['key'], 3) == partition
                assert sorted(record['value']) == list(record['key'])

    def test_stop_words_never_written(self, sample_input_file, temp_dir):
        result = make_executor(sample_input_file, temp_dir).execute()
        words = {r['value'] for r in read_intermediate(result['intermediate_files'])}

        assert words.isdisjoint({"the", "a", "an", "and", "at"})
        assert "cat" in words

    def test_map_options_reach_map_function(self, sample_input_file, temp_dir):
        result = make_executor(sample_input_file, temp_dir,
                               map_options={'stop_words': frozenset({'cat'})}).execute()
        words = {r['value'] for r in read_intermediate(result['intermediate_files'])}

        assert "cat" not in words
        assert "the" in words

    def test_decoding_error_fails_task(self, write_file, temp_dir):
        path = write_file('bad.txt', b"tea\n\xff\n", mode='wb')
        result = make_executor(path, os.path.join(temp_dir, 'intermediate')).execute()

        assert result['success'] is False
        assert 'decode' in result['error_message']
        assert result['intermediate_files'] == []

    def test_missing_map_function_fails_task(self, sample_input_file, temp_dir):
        mock_loader = Mock()
        mock_loader.get_map_function.side_effect = AttributeError("Module must define 'map_function'")

        with patch('wordgroups.worker.map_executor.FunctionLoader', return_value=mock_loader):
            result = make_executor(sample_input_file, temp_dir).execute()

        assert result['success'] is False
        assert 'map_function' in result['error_message']


class TestMapExecutorCombiner:
    """Tests for combiner functionality"""

    def test_combiner_reduces_intermediate_data(self, sample_input_file, temp_dir):
        """Combining yields fewer records carrying partial tallies"""
        plain = make_executor(sample_input_file, os.path.join(temp_dir, 'plain')).execute()
        combined = make_executor(sample_input_file, os.path.join(temp_dir, 'combined'),
                                 use_combiner=True).execute()

        assert combined['success'] is True
        assert combined['records_emitted'] == plain['records_emitted']
        assert combined['records_out'] < plain['records_out']

        records = read_intermediate(combined['intermediate_files'])
        assert all(isinstance(r['value'], dict) for r in records)
        assert len({r['key'] for r in records}) == len(records)
        assert sum(sum(r['value'].values()) for r in records) == plain['records_out']

    def test_missing_combiner_leaves_data_unchanged(self, sample_input_file, temp_dir):
        def mock_map(key, value):
            for word in value.split():
                yield (word.lower(), word)

        mock_loader = Mock()
        mock_loader.get_map_function.return_value = mock_map
        mock_loader.get_combiner_function.return_value = None

        with patch('wordgroups.worker.map_executor.FunctionLoader', return_value=mock_loader):
            result = make_executor(sample_input_file, temp_dir, use_combiner=True).execute()

        assert result['success'] is True
        assert result['records_out'] == result['records_emitted']
