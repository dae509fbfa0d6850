"""
Kiln - declarative ID3 tagging for batches of audio files.

This package provides tools to:
- Parse a small spec language that assigns tags to files selected by glob
- Merge overlapping sections into one desired tag state per file
- Diff desired vs. current tags and write the minimal set of changes
- List the tags shared by a group of files in spec syntax
"""

__version__ = "0.1.0"
