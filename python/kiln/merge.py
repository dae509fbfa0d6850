"""Merge sections into one desired tag state per file."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from kiln.models import Section, TagPair, TagState
from kiln.resolver import FileResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Override:
    """A later section replacing an earlier section's value for one file."""
    file_path: str
    old: TagPair
    new: TagPair
    header: str


@dataclass
class MergeResult:
    """Desired tags per file, in the order files were first matched."""
    desired: Dict[str, TagState] = field(default_factory=dict)
    overrides: List[Override] = field(default_factory=list)


class SectionMerger:
    """Combines every section matching a file; the later section wins a conflict."""

    def __init__(self, resolver: FileResolver):
        self.resolver = resolver

    def merge(self, sections: List[Section]) -> MergeResult:
        """
        Resolve each section's header and fold its assignments into the
        desired state of every matched file.

        A file matched only by sections without assignments gets an empty
        desired state, so all of its unpreserved tags are deleted.

        Raises:
            ResolverError: if a header cannot be expanded
        """
        result = MergeResult()

        for section in sections:
            files = self.resolver.resolve(section.header)
            if not files:
                logger.warning(f"[{section.header}] matches no files")

            for file_path in files:
                state = result.desired.setdefault(file_path, {})
                for tag_id, pair in section.assignments.items():
                    previous = state.get(tag_id)
                    if previous is not None and previous != pair:
                        override = Override(file_path, previous, pair, section.header)
                        result.overrides.append(override)
                        logger.warning(
                            f"{file_path}: [{section.header}] overrides "
                            f"{tag_id.frame_id} '{previous.value}' with '{pair.value}'"
                        )
                    state[tag_id] = pair

        return result
