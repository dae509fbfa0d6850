"""Expansion of section header patterns into audio file paths."""

import glob
import os
from pathlib import Path
from typing import Iterable, List

from kiln.errors import ResolverError


class FileResolver:
    """Expands glob patterns into the supported audio files they match."""

    def __init__(self, extensions: Iterable[str] = (".mp3",)):
        self.extensions = {ext.lower() for ext in extensions}

    def is_supported(self, file_path: str) -> bool:
        """Check if file has a supported extension."""
        return Path(file_path).suffix.lower() in self.extensions

    def resolve(self, pattern: str) -> List[str]:
        """
        Expand a pattern into files.

        Args:
            pattern: Glob pattern; a leading '~' is expanded and '**' recurses

        Returns:
            Sorted, de-duplicated file paths with a supported extension.
            A pattern that matches nothing yields an empty list.

        Raises:
            ResolverError: if the pattern is empty or cannot be expanded
        """
        if not pattern.strip():
            raise ResolverError(pattern, "empty pattern")

        expanded = os.path.expanduser(pattern)
        try:
            matches = glob.glob(expanded, recursive=True)
        except (OSError, ValueError) as e:
            raise ResolverError(pattern, str(e)) from e

        files = {
            match for match in matches
            if os.path.isfile(match) and self.is_supported(match)
        }
        return sorted(files)
