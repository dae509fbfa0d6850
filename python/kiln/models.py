"""Data models for Kiln."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Union

from mutagen.id3 import PictureType

from kiln.errors import UnknownIdentifierError


# Fixed policy for comments written from spec text.
DEFAULT_COMMENT_LANG = "eng"
DEFAULT_IMAGE_DESCRIPTION = "cover"


class TagId(Enum):
    """Tags Kiln manages, valued by their ID3v2 frame identifier."""
    ARTIST = "TPE1"
    ALBUM_ARTIST = "TPE2"
    ALBUM = "TALB"
    TITLE = "TIT2"
    TRACK_NUMBER = "TRCK"
    YEAR = "TYER"
    RECORDING_DATE = "TDRC"
    GENRE = "TCON"
    SOURCE_ID = "TSRC"
    COMMENT = "COMM"
    COVER_IMAGE = "APIC"

    @property
    def frame_id(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        """Human name such as 'album-artist'."""
        return self.name.lower().replace("_", "-")

    @property
    def is_text(self) -> bool:
        return self not in (TagId.COMMENT, TagId.COVER_IMAGE)

    @classmethod
    def from_frame_id(cls, token: str, line: Optional[int] = None) -> "TagId":
        """
        Decode a canonical frame identifier such as 'TPE1'.

        Raises:
            UnknownIdentifierError: if the token names no supported tag.
        """
        try:
            return cls(token)
        except ValueError:
            raise UnknownIdentifierError(token, line) from None

    @classmethod
    def parse_loose(cls, token: str) -> "TagId":
        """Decode a frame id or label case-insensitively ('tpe1', 'artist')."""
        cleaned = token.strip()
        upper = cleaned.upper()
        for tag_id in cls:
            if upper == tag_id.value or cleaned.lower() == tag_id.label:
                return tag_id
        raise UnknownIdentifierError(cleaned)


@dataclass(frozen=True)
class TextValue:
    """Plain text frame content."""
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class CommentValue:
    """COMM frame content."""
    text: str
    lang: str = DEFAULT_COMMENT_LANG
    desc: str = ""

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class ImageValue:
    """APIC frame content with already-encoded image bytes."""
    data: bytes = field(repr=False)
    mime: str = "image/jpeg"
    kind: PictureType = PictureType.COVER_FRONT
    description: str = DEFAULT_IMAGE_DESCRIPTION

    @classmethod
    def from_bytes(cls, data: bytes, mime: str,
                   kind: PictureType = PictureType.COVER_FRONT,
                   description: str = DEFAULT_IMAGE_DESCRIPTION) -> "ImageValue":
        """Wrap bytes read back from a tag store. Never fails."""
        return cls(data=bytes(data), mime=mime, kind=PictureType(int(kind)),
                   description=description)

    def __str__(self) -> str:
        return f"<{self.mime}, {len(self.data)} bytes>"


TagValue = Union[TextValue, CommentValue, ImageValue]


@dataclass(frozen=True)
class TagPair:
    """One tag assignment: an identifier and its value."""
    tag_id: TagId
    value: TagValue

    def __str__(self) -> str:
        return f"{self.tag_id.frame_id}: {self.value}"


# Desired or current tags of one file: at most one value per identifier.
TagState = Dict[TagId, TagPair]


def build_state(pairs: Iterable[TagPair]) -> TagState:
    """
    Index assignments by identifier.

    Raises:
        ValueError: if two assignments share an identifier with different values.
    """
    state: TagState = {}
    for pair in pairs:
        existing = state.get(pair.tag_id)
        if existing is not None and existing != pair:
            raise ValueError(
                f"conflicting values for {pair.tag_id.frame_id}: "
                f"{existing.value} / {pair.value}"
            )
        state[pair.tag_id] = pair
    return state


@dataclass(frozen=True)
class Section:
    """One '[pattern]' block of a spec file."""
    header: str
    assignments: TagState = field(default_factory=dict, hash=False)
    line: Optional[int] = None


@dataclass(frozen=True)
class Add:
    new: TagPair

    @property
    def tag_id(self) -> TagId:
        return self.new.tag_id


@dataclass(frozen=True)
class Delete:
    old: TagPair

    @property
    def tag_id(self) -> TagId:
        return self.old.tag_id


@dataclass(frozen=True)
class Modify:
    old: TagPair
    new: TagPair

    @property
    def tag_id(self) -> TagId:
        return self.new.tag_id


DiffOp = Union[Add, Delete, Modify]


@dataclass
class FileDiff:
    """Ordered operations that bring one file to its desired tags."""
    file_path: str
    ops: List[DiffOp] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.ops)


@dataclass
class RunStats:
    """Statistics for a set run."""
    total_files: int = 0
    files_changed: int = 0
    files_unchanged: int = 0
    adds: int = 0
    modifies: int = 0
    deletes: int = 0
    files_written: int = 0
    overrides: int = 0
    errors: List[str] = field(default_factory=list)

    def count_diff(self, file_diff: FileDiff) -> None:
        """Fold one file's diff into the totals."""
        self.total_files += 1
        if not file_diff.has_changes:
            self.files_unchanged += 1
            return
        self.files_changed += 1
        for op in file_diff.ops:
            if isinstance(op, Add):
                self.adds += 1
            elif isinstance(op, Modify):
                self.modifies += 1
            else:
                self.deletes += 1
