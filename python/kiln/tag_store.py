"""ID3 tag store using mutagen."""

import logging
from typing import Iterable, List

from mutagen import MutagenError
from mutagen.id3 import APIC, COMM, ID3, Frames, ID3NoHeaderError

from kiln.errors import StoreReadError, StoreWriteError
from kiln.models import (
    CommentValue, Delete, DiffOp, ImageValue, TagId, TagPair, TagState,
    TextValue
)

logger = logging.getLogger(__name__)


class ID3TagStore:
    """Reads and writes the managed ID3v2 frames of audio files."""

    def read_current(self, file_path: str) -> TagState:
        """
        Read the managed tags of a file.

        Frames Kiln does not manage are ignored. If a file carries several
        frames for one identifier, the first is the current value.

        Args:
            file_path: Path to audio file

        Returns:
            Current tags, empty if the file has no ID3 tag

        Raises:
            StoreReadError: if the file cannot be read
        """
        try:
            tags = self._load(file_path)
        except ID3NoHeaderError:
            return {}
        except (MutagenError, OSError) as e:
            raise StoreReadError(file_path, str(e)) from e

        state: TagState = {}
        for tag_id in TagId:
            frames = tags.getall(tag_id.frame_id)
            if not frames:
                continue
            if len(frames) > 1:
                logger.debug(
                    f"{file_path}: {len(frames)} {tag_id.frame_id} frames, using the first"
                )
            state[tag_id] = TagPair(tag_id, self._frame_to_value(tag_id, frames[0]))
        return state

    def write(self, file_path: str, ops: Iterable[DiffOp]) -> None:
        """
        Apply diff operations to a file and save it as ID3v2.4.

        Add and Modify replace every frame of the identifier with one frame;
        Delete removes every frame of it.

        Raises:
            StoreWriteError: if the file cannot be read or saved
        """
        try:
            tags = self._load(file_path)
        except ID3NoHeaderError:
            tags = ID3()
        except (MutagenError, OSError) as e:
            raise StoreWriteError(file_path, str(e)) from e

        for op in ops:
            if isinstance(op, Delete):
                tags.delall(op.tag_id.frame_id)
            else:
                tags.setall(op.tag_id.frame_id, [self._value_to_frame(op.new)])

        try:
            tags.save(file_path, v2_version=4)
        except (MutagenError, OSError) as e:
            raise StoreWriteError(file_path, str(e)) from e
        logger.debug(f"Wrote tags to {file_path}")

    def _load(self, file_path: str) -> ID3:
        # translate=False keeps TYER as TYER instead of folding it into TDRC
        tags = ID3(file_path, translate=False)
        if tags.version < (2, 3, 0):
            tags.update_to_v24()
        return tags

    def _frame_to_value(self, tag_id: TagId, frame):
        if tag_id is TagId.COMMENT:
            return CommentValue(text=self._joined_text(frame.text),
                                lang=frame.lang, desc=frame.desc)
        if tag_id is TagId.COVER_IMAGE:
            return ImageValue.from_bytes(frame.data, frame.mime,
                                         frame.type, frame.desc)
        return TextValue(self._joined_text(frame.text))

    def _value_to_frame(self, pair: TagPair):
        value = pair.value
        if isinstance(value, CommentValue):
            return COMM(encoding=3, lang=value.lang, desc=value.desc,
                        text=[value.text])
        if isinstance(value, ImageValue):
            return APIC(encoding=3, mime=value.mime, type=value.kind,
                        desc=value.description, data=value.data)
        return Frames[pair.tag_id.frame_id](encoding=3, text=[value.text])

    def _joined_text(self, text: List) -> str:
        """Join a multi-valued text frame the way ID3v2.3 separates values."""
        return "/".join(str(part) for part in text)
