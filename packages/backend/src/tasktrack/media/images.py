"""Avatar image processing with Pillow.

Learn: Every uploaded avatar is stored as three JPEG renditions:
original (re-encoded, full size), small (50x50) and large (100x100).
Re-encoding the original strips whatever format/metadata the client sent.
"""

from io import BytesIO

from PIL import Image, UnidentifiedImageError

from tasktrack.errors import ImageProcessingError, ValidationError

AVATAR_SIZES = {"small": 50, "large": 100}
AVATAR_KINDS = ("original", *AVATAR_SIZES)


class AvatarProcessor:
    """Turns raw upload bytes into JPEG renditions keyed by kind."""

    def __init__(self, sizes: dict[str, int] = AVATAR_SIZES, quality: int = 90):
        self.sizes = sizes
        self.quality = quality

    def process(self, data: bytes) -> dict[str, bytes]:
        """Return {"original": ..., "small": ..., "large": ...} JPEG bytes.

        Raises ValidationError if data isn't an image Pillow can read, and
        ImageProcessingError if resizing or encoding fails.
        """
        try:
            with Image.open(BytesIO(data)) as img:
                img.load()
                rgb = img.convert("RGB")
        except (UnidentifiedImageError, OSError) as e:
            raise ValidationError("Avatar must be a valid image file.") from e

        try:
            renditions = {"original": self._encode(rgb)}
            for kind, edge in self.sizes.items():
                renditions[kind] = self._encode(rgb.resize((edge, edge)))
        except (OSError, ValueError) as e:
            raise ImageProcessingError() from e
        return renditions

    def _encode(self, img: Image.Image) -> bytes:
        out = BytesIO()
        img.save(out, format="JPEG", quality=self.quality, progressive=True)
        return out.getvalue()
