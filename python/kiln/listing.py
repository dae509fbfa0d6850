"""Listing of tags shared by a group of files, in spec syntax."""

from typing import List

from kiln.models import TagState
from kiln.parser import format_section


def shared_tags(states: List[TagState]) -> TagState:
    """Tags present with an identical value in every state."""
    if not states:
        return {}
    shared = dict(states[0])
    for other in states[1:]:
        shared = {tag_id: pair for tag_id, pair in shared.items()
                  if other.get(tag_id) == pair}
    return shared


class TagLister:
    """Renders the current tags of the files matching a pattern."""

    def __init__(self, resolver, store, no_comments: bool = False,
                 force_empty: bool = False):
        """
        Args:
            resolver: FileResolver used to expand the pattern
            store: Tag store used to read current tags
            no_comments: Leave out the '#' commentary lines
            force_empty: Print sections even when they have no tags
        """
        self.resolver = resolver
        self.store = store
        self.no_comments = no_comments
        self.force_empty = force_empty

    def render(self, pattern: str) -> List[str]:
        """
        Build the listing for a pattern.

        The first section holds the tags shared by all files under the
        pattern itself; then each file gets a section with its remaining
        tags. The output is valid spec text.
        """
        file_paths = self.resolver.resolve(pattern)
        states = [self.store.read_current(path) for path in file_paths]
        shared = shared_tags(states)
        lines: List[str] = []

        if not shared and not self.force_empty:
            self._comment(lines, "# No shared tags among files in glob")
            self._comment(lines, "")
        else:
            self._comment(lines, "# All files in glob share the following tags:")
            lines.extend(format_section(pattern, shared.values()))
            lines.append("")

        no_tags = True
        for path, state in zip(file_paths, states):
            if state:
                no_tags = False
            differing = [pair for tag_id, pair in state.items()
                         if shared.get(tag_id) != pair]
            if differing or self.force_empty:
                self._comment(lines, "# The following file has these differing tags:")
                lines.extend(format_section(path, differing))
                lines.append("")

        if no_tags and not self.force_empty:
            self._comment(lines, "# No tags among files in glob")
            self._comment(lines, "")

        return lines

    def _comment(self, lines: List[str], text: str) -> None:
        if not self.no_comments:
            lines.append(text)
