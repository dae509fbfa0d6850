"""Shared test fixtures for kiln tests."""

import logging
import sys
from pathlib import Path

import pytest

# Add python/ to path so the tests run from a plain checkout
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from kiln.diff import apply_ops
from kiln.errors import ImageLoadError, StoreReadError, StoreWriteError
from kiln.models import (
    CommentValue, ImageValue, TagId, TagPair, TextValue
)


def text(tag_id: TagId, value: str) -> TagPair:
    """Shorthand for a text assignment."""
    return TagPair(tag_id, TextValue(value))


class InMemoryStore:
    """Tag store double keeping per-file states in a dict."""

    def __init__(self, states=None, fail_read=(), fail_write=()):
        self.states = {path: dict(state) for path, state in (states or {}).items()}
        self.fail_read = set(fail_read)
        self.fail_write = set(fail_write)
        self.reads = []
        self.writes = []

    def read_current(self, file_path):
        self.reads.append(file_path)
        if file_path in self.fail_read:
            raise StoreReadError(file_path, "unreadable")
        return dict(self.states.get(file_path, {}))

    def write(self, file_path, ops):
        if file_path in self.fail_write:
            raise StoreWriteError(file_path, "read-only")
        self.writes.append((file_path, list(ops)))
        self.states[file_path] = apply_ops(self.states.get(file_path, {}), ops)


def fake_image_loader(path: str) -> ImageValue:
    """Image loader that never touches the filesystem."""
    if path.startswith("missing"):
        raise ImageLoadError(path, "No such file or directory")
    return ImageValue(data=path.encode(), mime="image/jpeg")


@pytest.fixture
def title_old():
    return text(TagId.TITLE, "Old Title")


@pytest.fixture
def sample_state():
    """Current tags of a typical file."""
    return {
        TagId.ARTIST: text(TagId.ARTIST, "The Artist"),
        TagId.ALBUM: text(TagId.ALBUM, "The Album"),
        TagId.GENRE: text(TagId.GENRE, "Rock"),
        TagId.COMMENT: TagPair(TagId.COMMENT, CommentValue("ripped from vinyl")),
    }


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def album_dir(tmp_path):
    """A folder with three mp3 files, a cover and a text file."""
    album = tmp_path / "album"
    album.mkdir()
    for name in ("01 - intro.mp3", "02 - song.mp3", "03 - outro.mp3"):
        (album / name).write_bytes(b"\x00" * 2048)
    (album / "notes.txt").write_text("not audio")
    return album


@pytest.fixture(autouse=True)
def reset_kiln_logger():
    """Drop handlers main() installs so they don't outlive captured streams."""
    yield
    logger = logging.getLogger("kiln")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
