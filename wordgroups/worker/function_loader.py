"""
Dynamic Function Loader for MapReduce Job Functions
Loads a job module containing map, reduce, and combiner functions
"""

import importlib
import importlib.util
import os
import uuid

DEFAULT_JOB = "wordgroups.jobs.word_groups"


class FunctionLoader:
    """Loads map/reduce functions from a Python file or an importable module"""

    def __init__(self, job_file: str = DEFAULT_JOB):
        """
        Initialize the function loader

        Args:
            job_file: Path to a .py file, or a dotted module name
        """
        self.job_file = job_file
        self.module = None

    def load_module(self):
        """
        Load the job module

        Returns:
            The loaded module object

        Raises:
            FileNotFoundError: If a .py job file doesn't exist
            ImportError: If the file or module cannot be imported
        """
        if self.job_file.endswith('.py'):
            if not os.path.exists(self.job_file):
                raise FileNotFoundError(f"Job file not found: {self.job_file}")

            # Unique name so two jobs loaded from different files don't collide
            module_name = f"wordgroups_job_{uuid.uuid4().hex}"
            spec = importlib.util.spec_from_file_location(module_name, self.job_file)
            if spec is None or spec.loader is None:
                raise ImportError(f"Failed to load job file: {self.job_file}")
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
        else:
            module = importlib.import_module(self.job_file)

        self.module = module
        return module

    def _get(self, name: str):
        if not self.module:
            self.load_module()
        return getattr(self.module, name, None)

    def get_map_function(self):
        """
        Get map function from loaded module

        Raises:
            AttributeError: If module doesn't define 'map_function'
        """
        func = self._get('map_function')
        if func is None:
            raise AttributeError("Module must define 'map_function'")
        return func

    def get_reduce_function(self):
        """
        Get reduce function from loaded module

        Raises:
            AttributeError: If module doesn't define 'reduce_function'
        """
        func = self._get('reduce_function')
        if func is None:
            raise AttributeError("Module must define 'reduce_function'")
        return func

    def get_combiner_function(self):
        """
        Get combiner function from loaded module

        Returns:
            The combiner_function callable, or None. There is no fallback to
            reduce_function: its output is not necessarily a valid map value.
        """
        return self._get('combiner_function')
