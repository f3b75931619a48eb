"""RGBA bitmap value type and PNG I/O."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image


@dataclass(frozen=True)
class Bitmap:
    """Immutable RGBA image backed by a ``(height, width, 4)`` uint8 array."""

    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.pixels.dtype != np.uint8 or self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(
                f"Bitmap pixels must be a (height, width, 4) uint8 array, "
                f"got {self.pixels.dtype} {self.pixels.shape}"
            )
        self.pixels.flags.writeable = False

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @classmethod
    def blank(cls, width: int, height: int) -> "Bitmap":
        """Transparent black canvas, for building synthetic images."""
        return cls(np.zeros((height, width, 4), dtype=np.uint8))

    @classmethod
    def filled(cls, width: int, height: int, rgba: tuple[int, int, int, int]) -> "Bitmap":
        """Solid-colour canvas, for building synthetic images."""
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[:] = rgba
        return cls(pixels)

    @classmethod
    def from_image(cls, image: Image.Image) -> "Bitmap":
        return cls(np.array(image.convert("RGBA"), dtype=np.uint8))

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels.copy())


def load_png(path: str | Path) -> Bitmap:
    """Decode a PNG file into an RGBA bitmap."""
    with Image.open(path) as img:
        return Bitmap.from_image(img)


def save_png(bitmap: Bitmap, path: str | Path) -> None:
    """Encode a bitmap as PNG."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    bitmap.to_image().save(path, format="PNG")
