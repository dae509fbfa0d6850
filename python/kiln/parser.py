"""Parser for the Kiln spec language.

A spec file is a sequence of sections::

    # comment
    [songs/*.mp3]
    TPE1 = The Artist
    TALB = The Album
    APIC = covers/front.png

Lines starting with '#' and blank lines are dropped before parsing.
"""

import logging
import re
from typing import Callable, Iterable, List, Optional, Tuple

from mutagen.id3 import ID3TimeStamp

from kiln.errors import ImageLoadError, SpecSyntaxError
from kiln.models import (
    CommentValue, ImageValue, Section, TagId, TagPair, TagState, TextValue
)

logger = logging.getLogger(__name__)

HEADER_RE = re.compile(r"^\[([^\]]*)\][ \t]*$")
ASSIGNMENT_RE = re.compile(r"^([A-Za-z0-9]*)[ \t]*=[ \t]*(.*)$")

ImageLoader = Callable[[str], ImageValue]


def strip_comments(content: str) -> List[Tuple[int, str]]:
    """
    Drop comment and blank lines.

    Indentation is removed. Trailing whitespace is kept because it belongs
    to the value of an assignment.

    Returns:
        (line number, line) pairs, numbered from 1 in the original text.
    """
    kept = []
    for number, line in enumerate(content.splitlines(), start=1):
        if line.startswith("#") or not line.strip():
            continue
        kept.append((number, line.lstrip()))
    return kept


def is_writable_value(text: str) -> bool:
    """True if text survives being written as 'ID = text' and parsed back."""
    return text.splitlines() == [text] and text == text.lstrip(" \t")


class SpecParser:
    """Turns spec text into an ordered list of Sections."""

    def __init__(self, image_loader: Optional[ImageLoader] = None,
                 strict: bool = True):
        """
        Initialize parser.

        Args:
            image_loader: Callable turning an APIC path into an ImageValue.
                Defaults to a JPEG ImageEncoder.
            strict: If True, an unparseable line is a SpecSyntaxError.
                Otherwise parsing stops there and the rest is logged as a warning.
        """
        if image_loader is None:
            from kiln.images import ImageEncoder
            image_loader = ImageEncoder().load
        self.image_loader = image_loader
        self.strict = strict
        self.leftover: List[str] = []

    def parse(self, content: str) -> List[Section]:
        """
        Parse spec text.

        Raises:
            SpecSyntaxError: on a malformed line (strict mode only)
            UnknownIdentifierError: on an unsupported tag identifier
            ImageLoadError: when an APIC image cannot be loaded
        """
        lines = strip_comments(content)
        self.leftover = []
        sections: List[Section] = []

        header: Optional[str] = None
        header_line: Optional[int] = None
        assignments: TagState = {}

        for index, (number, line) in enumerate(lines):
            header_match = HEADER_RE.match(line)
            if header_match:
                if header is not None:
                    sections.append(Section(header, assignments, header_line))
                header, header_line, assignments = header_match.group(1), number, {}
                continue

            assignment_match = ASSIGNMENT_RE.match(line)
            if assignment_match and header is not None:
                pair = self.parse_assignment(
                    assignment_match.group(1), assignment_match.group(2), number
                )
                existing = assignments.get(pair.tag_id)
                if existing is not None and existing != pair:
                    logger.warning(
                        f"line {number}: {pair.tag_id.frame_id} assigned twice "
                        f"in [{header}], keeping {pair.value}"
                    )
                assignments[pair.tag_id] = pair
                continue

            reason = ("assignment outside of a section" if assignment_match
                      else "expected '[pattern]' or 'ID = value'")
            if self.strict:
                raise SpecSyntaxError(line, number, reason)
            self.leftover = [text for _, text in lines[index:]]
            logger.warning(
                "Could not consume all the input! Here is what remains:\n\n"
                + "\n".join(self.leftover) + "\n"
            )
            break

        if header is not None:
            sections.append(Section(header, assignments, header_line))
        return sections

    def parse_assignment(self, token: str, raw: str,
                         line: Optional[int] = None) -> TagPair:
        """Build a TagPair from an identifier token and its raw value text."""
        tag_id = TagId.from_frame_id(token, line)
        # mutagen drops empty text frames on save, so an empty value could never be reached
        if not raw:
            raise SpecSyntaxError(f"{token} =", line, "missing value")

        if tag_id is TagId.RECORDING_DATE:
            self._check_timestamp(raw, line)
        if tag_id is TagId.COMMENT:
            return TagPair(tag_id, CommentValue(text=raw))
        if tag_id is TagId.COVER_IMAGE:
            try:
                image = self.image_loader(raw)
            except ImageLoadError as e:
                raise ImageLoadError(e.path, e.reason, line) from e
            return TagPair(tag_id, image)
        return TagPair(tag_id, TextValue(raw))

    def _check_timestamp(self, raw: str, line: Optional[int]) -> None:
        # ID3v2.4 stores TDRC as a timestamp; anything mutagen would rewrite
        # or blank on save could never match what is read back
        stored = ID3TimeStamp(raw).text
        if stored == raw:
            return
        reason = "not a timestamp like YYYY, YYYY-MM-DD or YYYY-MM-DD HH:MM:SS"
        if stored:
            reason += f" (did you mean '{stored}'?)"
        raise SpecSyntaxError(f"TDRC = {raw}", line, reason)


def parse_spec(content: str, image_loader: Optional[ImageLoader] = None,
               strict: bool = True) -> List[Section]:
    """Parse spec text with a one-off SpecParser."""
    return SpecParser(image_loader, strict).parse(content)


def format_assignment(pair: TagPair) -> str:
    """
    Render an assignment in spec syntax.

    Images have no textual value, so they render as a comment line. So do
    texts that would not parse back unchanged (empty, leading blanks or
    line breaks), shown as a quoted literal.
    """
    if isinstance(pair.value, ImageValue):
        return f"# {pair.tag_id.frame_id} = {pair.value}"
    if not is_writable_value(str(pair.value)):
        return f"# {pair.tag_id.frame_id} = {str(pair.value)!r}"
    return f"{pair.tag_id.frame_id} = {pair.value}"


def format_section(header: str, pairs: Iterable[TagPair]) -> List[str]:
    """Render a section header followed by its assignments."""
    ordered = sorted(pairs, key=lambda p: p.tag_id.frame_id)
    return [f"[{header}]"] + [format_assignment(pair) for pair in ordered]
