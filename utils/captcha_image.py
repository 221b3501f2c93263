"""
Distorted-text CAPTCHA image rendering (Pillow).
Every call draws fresh random noise and per-glyph distortion, so the same
text never produces the same bytes twice.
"""
import io
import random

from PIL import Image, ImageColor, ImageDraw, ImageFont

from services.errors import RenderError

FALLBACK_FONTS = (
    "DejaVuSans-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    "arial.ttf",
)


def load_font(path, size):
    """Configured TrueType font, then common system fonts, then Pillow's built-in font."""
    candidates = [path] if path else []
    candidates.extend(FALLBACK_FONTS)
    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def pick_color(settings):
    if settings.color_mode:
        return random.choice(settings.colors)
    return settings.colors[0]


def _draw_noise_lines(draw, settings):
    for _ in range(settings.noise_lines):
        start = (random.uniform(0, settings.width), random.uniform(0, settings.height))
        end = (random.uniform(0, settings.width), random.uniform(0, settings.height))
        draw.line([start, end], fill=settings.trace_color, width=settings.trace_size)


def _glyph_tile(char, font, color, settings):
    """Render one character on a transparent tile, then skew and rotate it."""
    box = settings.size * 2
    tile = Image.new("RGBA", (box, box), (0, 0, 0, 0))
    draw = ImageDraw.Draw(tile)
    left, top, right, bottom = draw.textbbox((0, 0), char, font=font)
    origin = (box / 2 - (left + right) / 2, box / 2 - (top + bottom) / 2)
    draw.text(origin, char, font=font, fill=ImageColor.getrgb(color)[:3] + (255,))

    centre = box / 2
    if settings.skew:
        skew_x = random.uniform(-settings.skew_range / 2, settings.skew_range / 2)
        skew_y = random.uniform(-settings.skew_range / 2, settings.skew_range / 2)
        tile = tile.transform(
            tile.size,
            Image.Transform.AFFINE,
            (1, skew_x, -skew_x * centre, skew_y, 1, -skew_y * centre),
            resample=Image.Resampling.BICUBIC,
        )
    if settings.rotate:
        angle = random.uniform(-settings.rotate / 2, settings.rotate / 2)
        tile = tile.rotate(angle, resample=Image.Resampling.BICUBIC)
    return tile


def _draw_noise_dots(draw, settings):
    dot = max(settings.dot_size, 1)
    for _ in range(settings.noise_dots):
        x = random.randrange(settings.width)
        y = random.randrange(settings.height)
        draw.rectangle([x, y, x + dot - 1, y + dot - 1], fill=pick_color(settings))


def render_captcha_image(text: str, settings) -> bytes:
    """
    Rasterize `text` into a noisy, distorted PNG.

    Raises RenderError if the image cannot be encoded.
    """
    image = Image.new("RGB", (settings.width, settings.height), settings.background)
    draw = ImageDraw.Draw(image)

    _draw_noise_lines(draw, settings)

    font = load_font(settings.font, settings.size)
    spacing = settings.width / (len(text) + 1)
    y = settings.height / 2
    for i, char in enumerate(text):
        x = spacing * (i + 1)
        tile = _glyph_tile(char, font, pick_color(settings), settings)
        offset = (int(x - tile.width / 2), int(y - tile.height / 2))
        image.paste(tile, offset, tile)

    _draw_noise_dots(draw, settings)

    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG")
    except (OSError, ValueError) as e:
        raise RenderError(f"Failed to encode CAPTCHA image: {e}") from e
    return buffer.getvalue()
