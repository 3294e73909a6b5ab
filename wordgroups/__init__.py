"""
Word Groups
Groups words of a text corpus into anagram classes with a local MapReduce runner
"""

__version__ = "0.1.0"
