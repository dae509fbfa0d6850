"""Cover image loading and re-encoding using Pillow."""

import io
import os

from PIL import Image

from kiln.errors import ImageLoadError
from kiln.models import ImageValue


class ImageEncoder:
    """Loads an image from disk and re-encodes it for embedding as APIC."""

    # Formats that cannot carry an alpha channel or palette
    RGB_ONLY_FORMATS = {"JPEG"}

    def __init__(self, image_format: str = "JPEG", quality: int = 24):
        """
        Initialize encoder.

        Args:
            image_format: Pillow format name used for the embedded bytes
            quality: Encoder quality (used by lossy formats)
        """
        self.image_format = image_format.upper()
        self.quality = quality

    @property
    def mime(self) -> str:
        Image.init()
        return Image.MIME.get(self.image_format, "image/" + self.image_format.lower())

    def load(self, path: str) -> ImageValue:
        """
        Decode the image at path and re-encode it.

        Args:
            path: Filesystem path as written in the spec file

        Returns:
            ImageValue holding the encoded bytes

        Raises:
            ImageLoadError: if the file is missing or not a decodable image
        """
        full_path = os.path.expanduser(path)
        try:
            with Image.open(full_path) as img:
                img.load()
                if (self.image_format in self.RGB_ONLY_FORMATS
                        and img.mode not in ("RGB", "L")):
                    img = img.convert("RGB")
                buffer = io.BytesIO()
                img.save(buffer, format=self.image_format, quality=self.quality)
        except (OSError, ValueError, KeyError) as e:
            raise ImageLoadError(path, str(e) or e.__class__.__name__) from e

        return ImageValue(data=buffer.getvalue(), mime=self.mime)
