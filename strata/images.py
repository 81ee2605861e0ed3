"""Social-share image generation for Strata.

Pages whose front matter sets an ``emoji`` but no ``og_image`` get a PNG
card with that emoji drawn in the middle, rendered with Pillow.

Key classes:
- EmojiImageRenderer: Draws an emoji onto a PNG canvas.
"""

from __future__ import annotations

from typing import BinaryIO

from PIL import Image, ImageDraw, ImageFont

from .config import OgImageOptions


class EmojiImageRenderer:
    """Renders an emoji centered on a solid background.

    Bitmap color fonts such as Noto Color Emoji only load at their native
    size (109), which is why that is the default ``font_size``.

    Attributes:
        options: Canvas size, background color and font settings.
    """

    def __init__(self, options: OgImageOptions | None = None):
        self.options = options or OgImageOptions()

    def _load_font(self) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        if self.options.font is not None:
            return ImageFont.truetype(str(self.options.font), self.options.font_size)
        return ImageFont.load_default(size=self.options.font_size)

    def render(self, emoji: str, fp: BinaryIO) -> None:
        """Draw ``emoji`` and write the image to ``fp`` as PNG.

        Args:
            emoji: Emoji text to draw.
            fp: Binary file object receiving the PNG data.

        Raises:
            OSError: If the font cannot be loaded or the image not written.
            ValueError: If the background color is not recognized.
        """
        width, height = self.options.width, self.options.height
        image = Image.new("RGB", (width, height), self.options.background)
        draw = ImageDraw.Draw(image)
        draw.text(
            (width / 2, height / 2),
            emoji,
            font=self._load_font(),
            fill="black",
            anchor="mm",
            embedded_color=True,
        )
        image.save(fp, format="PNG")
