import asyncio
import base64
import io
import logging
import math
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from PIL import Image, ImageChops, ImageColor, ImageDraw, ImageFilter, ImageFont

from .palette import Fill, LinearGradient, RadialGradient, RepeatingLinearGradient
from .render import (
    Badge,
    CallToAction,
    FooterRow,
    Glow,
    OverlayLayer,
    TextElement,
    TextStyle,
    VisualDescription,
)


logger = logging.getLogger(__name__)

Rgba = Tuple[int, int, int, int]
FALLBACK_COLOR: Rgba = (59, 130, 246, 255)  # blue-500

_RGBA_FN = re.compile(r"^rgba?\(\s*([^)]*)\)$", re.IGNORECASE)


class CaptureError(RuntimeError):
    """The backend could not turn a description into a bitmap."""


@dataclass
class _Block:
    height: int
    paint: Callable[[Image.Image, int, int], Image.Image]


class PillowRasterizer:
    """
    Rendering backend + rasterizer built on Pillow.

    `rasterize` paints a `VisualDescription` synchronously; `capture` is the
    asynchronous entry point used by the export pipeline and returns a PNG
    data URL.
    """

    def __init__(
        self,
        font_path: Optional[str] = None,
        bold_font_path: Optional[str] = None,
    ) -> None:
        self.font_path = font_path
        self.bold_font_path = bold_font_path or font_path

    async def capture(
        self,
        node: VisualDescription,
        *,
        cache_bust: bool = False,
        pixel_ratio: float = 1.0,
    ) -> str:
        try:
            image = await asyncio.to_thread(
                self.rasterize, node, pixel_ratio=pixel_ratio, cache_bust=cache_bust
            )
            return to_data_url(image)
        except CaptureError:
            raise
        except Exception as exc:
            raise CaptureError(f"Failed to rasterize card: {exc}") from exc

    def rasterize(
        self,
        node: VisualDescription,
        pixel_ratio: float = 1.0,
        cache_bust: bool = False,
    ) -> Image.Image:
        if pixel_ratio <= 0:
            raise CaptureError(f"pixel_ratio must be positive, got {pixel_ratio}")
        if cache_bust:
            _load_font.cache_clear()

        scale = float(pixel_ratio)
        frame = node.frame
        pad = _px(node.padding, scale)
        frame_pad = _px(frame.padding, scale)
        width = _px(node.width, scale)
        content_w = width - 2 * pad - 2 * frame_pad

        header = [(el.gap_before, self._measure(el, content_w, scale)) for el in frame.header]
        footer = [(el.gap_before, self._measure(el, content_w, scale)) for el in frame.footer]
        header_h = sum(_px(gap, scale) + block.height for gap, block in header)
        footer_h = sum(_px(gap, scale) + block.height for gap, block in footer)

        # The frame grows when the copy does not fit the template height.
        frame_h = max(_px(frame.min_height, scale), header_h + footer_h + 2 * frame_pad)
        height = max(_px(node.min_height, scale), frame_h + 2 * pad)
        frame_h = height - 2 * pad
        size = (width, height)

        canvas = Image.new("RGBA", size, _rgba(node.backdrop))
        canvas = Image.alpha_composite(canvas, paint_fill(node.base, size, scale))
        canvas = _blend_overlay(canvas, node.overlay, scale)

        frame_box = (pad, pad, width - pad - 1, pad + frame_h - 1)
        layer, draw = _layer(size)
        draw.rounded_rectangle(
            frame_box,
            radius=_px(frame.corner_radius, scale),
            fill=_rgba(frame.fill),
            outline=_rgba(frame.border),
            width=max(1, _px(1, scale)),
        )
        canvas = Image.alpha_composite(canvas, layer)

        x = pad + frame_pad
        y = pad + frame_pad
        for gap, block in header:
            y += _px(gap, scale)
            canvas = block.paint(canvas, x, y)
            y += block.height

        y = pad + frame_h - frame_pad - footer_h
        for gap, block in footer:
            y += _px(gap, scale)
            canvas = block.paint(canvas, x, y)
            y += block.height

        for glow in frame.glows:
            canvas = _paint_glow(canvas, glow, frame_box, scale)

        mask = Image.new("L", size, 0)
        ImageDraw.Draw(mask).rounded_rectangle(
            (0, 0, width - 1, height - 1), radius=_px(node.corner_radius, scale), fill=255
        )
        card = Image.new("RGBA", size, (0, 0, 0, 0))
        card.paste(canvas, (0, 0), mask)
        return card

    def _font(self, style: TextStyle, scale: float) -> ImageFont.ImageFont:
        path = self.bold_font_path if style.bold else self.font_path
        return _load_font(path, _px(style.size, scale), style.bold)

    def _measure(self, element, content_w: int, scale: float) -> _Block:
        if isinstance(element, Badge):
            return self._badge(element, scale)
        if isinstance(element, TextElement):
            return self._text(element, content_w, scale)
        if isinstance(element, CallToAction):
            return self._cta(element, content_w, scale)
        if isinstance(element, FooterRow):
            return self._footer_row(element, content_w, scale)
        raise CaptureError(f"Unsupported card element: {type(element).__name__}")

    def _text(self, element: TextElement, content_w: int, scale: float) -> _Block:
        style = element.style
        font = self._font(style, scale)
        max_w = content_w
        if style.max_width:
            max_w = min(content_w, _px(style.max_width, scale))
        text = _display_text(element.text, style)
        tracking = style.tracking * style.size * scale
        lines = _wrap_text(text, font, max_w, tracking)
        line_h = _px(style.size * style.line_height, scale)

        def paint(canvas: Image.Image, x: int, y: int) -> Image.Image:
            layer, draw = _layer(canvas.size)
            _draw_text_block(draw, lines, font, x, y, _rgba(style.color), line_h, tracking)
            return Image.alpha_composite(canvas, layer)

        return _Block(height=line_h * len(lines), paint=paint)

    def _badge(self, badge: Badge, scale: float) -> _Block:
        style = badge.style
        font = self._font(style, scale)
        text = _display_text(badge.text, style)
        tracking = style.tracking * style.size * scale
        line_h = _px(style.size * style.line_height, scale)
        pad_x = _px(badge.padding_x, scale)
        pad_y = _px(badge.padding_y, scale)
        chip_w = int(_text_width(text, font, tracking)) + 2 * pad_x
        chip_h = line_h + 2 * pad_y

        def paint(canvas: Image.Image, x: int, y: int) -> Image.Image:
            layer, draw = _layer(canvas.size)
            draw.rounded_rectangle(
                (x, y, x + chip_w, y + chip_h),
                radius=chip_h // 2,
                fill=_rgba(badge.fill),
                outline=_rgba(badge.border),
                width=max(1, _px(1, scale)),
            )
            canvas = Image.alpha_composite(canvas, layer)
            layer, draw = _layer(canvas.size)
            _draw_text_block(
                draw, [text], font, x + pad_x, y + pad_y, _rgba(style.color), line_h, tracking
            )
            return Image.alpha_composite(canvas, layer)

        return _Block(height=chip_h, paint=paint)

    def _cta(self, cta: CallToAction, content_w: int, scale: float) -> _Block:
        style = cta.style
        font = self._font(style, scale)
        pad_x = _px(cta.padding_x, scale)
        pad_y = _px(cta.padding_y, scale)
        icon = _px(cta.icon_size, scale)
        gap = _px(cta.gap, scale)
        line_h = _px(style.size * style.line_height, scale)
        label_max = max(1, content_w - 2 * pad_x - icon - gap)
        lines = _wrap_text(cta.label, font, label_max, 0.0)
        label_w = max([int(_text_width(line, font, 0.0)) for line in lines] or [0])
        label_h = line_h * len(lines)
        pill_w = 2 * pad_x + icon + gap + label_w
        pill_h = max(icon, label_h) + 2 * pad_y

        def paint(canvas: Image.Image, x: int, y: int) -> Image.Image:
            shadow = cta.shadow
            spread = _px(shadow.spread, scale)
            layer, draw = _layer(canvas.size)
            draw.rounded_rectangle(
                (
                    x - spread,
                    y - spread + _px(shadow.offset_y, scale),
                    x + pill_w + spread,
                    y + pill_h + spread + _px(shadow.offset_y, scale),
                ),
                radius=max(1, pill_h // 2 + spread),
                fill=_rgba(shadow.color),
            )
            layer = layer.filter(ImageFilter.GaussianBlur(shadow.blur * scale / 2))
            canvas = Image.alpha_composite(canvas, layer)

            layer, draw = _layer(canvas.size)
            draw.rounded_rectangle(
                (x, y, x + pill_w, y + pill_h),
                radius=pill_h // 2,
                fill=_rgba(cta.fill),
                outline=_rgba(cta.border),
                width=max(1, _px(1, scale)),
            )
            canvas = Image.alpha_composite(canvas, layer)

            layer, draw = _layer(canvas.size)
            icon_x = x + pad_x
            icon_y = y + (pill_h - icon) // 2
            draw.ellipse((icon_x, icon_y, icon_x + icon, icon_y + icon), fill=_rgba(cta.accent))
            draw.text(
                (icon_x + icon / 2, icon_y + icon / 2),
                cta.icon,
                font=font,
                fill=_rgba(cta.icon_color),
                anchor="mm",
            )
            label_y = y + (pill_h - label_h) // 2
            _draw_text_block(
                draw, lines, font, icon_x + icon + gap, label_y, _rgba(style.color), line_h, 0.0
            )
            return Image.alpha_composite(canvas, layer)

        return _Block(height=pill_h, paint=paint)

    def _footer_row(self, row: FooterRow, content_w: int, scale: float) -> _Block:
        signature = self._text(row.signature, content_w, scale)
        note = self._text(row.note, content_w, scale)
        gap = _px(row.gap, scale)

        sig_font = self._font(row.signature.style, scale)
        note_font = self._font(row.note.style, scale)
        note_text = _display_text(row.note.text, row.note.style)
        note_tracking = row.note.style.tracking * row.note.style.size * scale
        sig_w = _text_width(row.signature.text, sig_font, 0.0)
        note_w = _text_width(note_text, note_font, note_tracking)

        if sig_w + gap + note_w <= content_w:
            height = max(signature.height, note.height)

            def paint_inline(canvas: Image.Image, x: int, y: int) -> Image.Image:
                canvas = signature.paint(canvas, x, y + height - signature.height)
                return note.paint(canvas, x + content_w - int(note_w), y + height - note.height)

            return _Block(height=height, paint=paint_inline)

        # flex-wrap: the note drops onto its own line below the signature
        def paint_stacked(canvas: Image.Image, x: int, y: int) -> Image.Image:
            canvas = signature.paint(canvas, x, y)
            return note.paint(canvas, x, y + signature.height + gap)

        return _Block(height=signature.height + gap + note.height, paint=paint_stacked)


def paint_fill(fill: Fill, size: Tuple[int, int], scale: float = 1.0) -> Image.Image:
    """Paint a gradient fill into a new RGBA image of `size`."""
    if isinstance(fill, RadialGradient):
        return _paint_radial(fill, size)
    if isinstance(fill, RepeatingLinearGradient):
        stops = [(s.offset * scale, parse_color(s.color)) for s in fill.stops]
        period = fill.period * scale
        if period <= 0:
            return Image.new("RGBA", size, _rgba(fill.stops[0].color) if fill.stops else (0, 0, 0, 0))
        return _paint_linear(fill.angle, size, lambda pos, _: _interpolate(stops, pos % period))
    if isinstance(fill, LinearGradient):
        stops = [(s.offset, parse_color(s.color)) for s in fill.stops]
        return _paint_linear(fill.angle, size, lambda pos, length: _interpolate(stops, pos / length))
    raise CaptureError(f"Unsupported fill: {type(fill).__name__}")


def _paint_linear(
    angle: float,
    size: Tuple[int, int],
    color_at: Callable[[float, int], Rgba],
) -> Image.Image:
    """
    Paint a 1-D colour strip along the CSS gradient line, then rotate it into
    place. CSS angles run clockwise from "to top"; the strip runs "to right".
    """
    w, h = size
    rad = math.radians(angle)
    length = max(1, int(math.ceil(abs(w * math.sin(rad)) + abs(h * math.cos(rad)))))

    strip = Image.new("RGBA", (length, 1))
    strip.putdata([color_at(x + 0.5, length) for x in range(length)])
    side = int(math.ceil(math.hypot(w, h))) + 2
    band = strip.resize((length, side), Image.NEAREST)
    rotated = band.rotate(90 - angle, resample=Image.BILINEAR, expand=True)

    left = (rotated.width - w) // 2
    top = (rotated.height - h) // 2
    return rotated.crop((left, top, left + w, top + h))


def _distance_field(rx: float, ry: float) -> Image.Image:
    """Elliptical distance field of size (2rx, 2ry): 0 at the centre, 255 from the edge out."""
    w = max(1, int(round(2 * rx)))
    h = max(1, int(round(2 * ry)))
    # Pillow's radial gradient is d * sqrt(2), reaching 255 only at its corners,
    # so it is shrunk by sqrt(2) and the rim is filled with 255.
    inner = Image.radial_gradient("L").resize(
        (max(1, int(round(w / math.sqrt(2)))), max(1, int(round(h / math.sqrt(2))))),
        Image.BILINEAR,
    )
    field = Image.new("L", (w, h), 255)
    field.paste(inner, ((w - inner.width) // 2, (h - inner.height) // 2))
    return field


def _paint_radial(fill: RadialGradient, size: Tuple[int, int]) -> Image.Image:
    w, h = size
    rx = max(1.0, fill.radius_x * w)
    ry = max(1.0, fill.radius_y * h)
    cx = fill.center_x * w
    cy = fill.center_y * h

    field = Image.new("L", size, 255)
    field.paste(_distance_field(rx, ry), (int(round(cx - rx)), int(round(cy - ry))))

    stops = [(s.offset, parse_color(s.color)) for s in fill.stops]
    lut = [_interpolate(stops, i / 255) for i in range(256)]
    bands = [field.point([color[channel] for color in lut]) for channel in range(4)]
    return Image.merge("RGBA", bands)


def _blend_overlay(canvas: Image.Image, overlay: OverlayLayer, scale: float) -> Image.Image:
    layer = paint_fill(overlay.fill, canvas.size, scale)
    opacity = max(0.0, min(1.0, overlay.opacity))
    mask = layer.getchannel("A").point(lambda v: int(round(v * opacity)))

    if overlay.blend_mode != "screen":
        raise CaptureError(f"Unsupported blend mode: {overlay.blend_mode!r}")

    base = canvas.convert("RGB")
    blended = ImageChops.screen(base, layer.convert("RGB"))

    result = Image.composite(blended, base, mask).convert("RGBA")
    result.putalpha(canvas.getchannel("A"))
    return result


def _paint_glow(
    canvas: Image.Image,
    glow: Glow,
    frame_box: Tuple[int, int, int, int],
    scale: float,
) -> Image.Image:
    x0, y0, x1, y1 = frame_box
    frame_w = x1 - x0
    frame_h = y1 - y0
    diameter = max(2, int(round(glow.diameter * frame_w)))
    cx = x0 + glow.center_x * frame_w
    cy = y0 + glow.center_y * frame_h

    # "circle at center" sizes to the farthest corner of the square box
    reach = diameter / 2 * math.sqrt(2)
    distance = _distance_field(reach, reach)
    offset = (distance.width - diameter) // 2
    distance = distance.crop((offset, offset, offset + diameter, offset + diameter))

    r, g, b, a = _rgba(glow.color)
    fade = max(glow.fade, 1e-6)
    alpha = distance.point(
        lambda v: int(round(a * glow.opacity * max(0.0, 1 - (v / 255) / fade)))
    )
    circle = Image.new("L", (diameter, diameter), 0)
    ImageDraw.Draw(circle).ellipse((0, 0, diameter - 1, diameter - 1), fill=255)
    alpha = ImageChops.multiply(alpha, circle)

    layer = Image.new("RGBA", canvas.size, (r, g, b, 0))
    patch = Image.new("RGBA", (diameter, diameter), (r, g, b, 0))
    patch.putalpha(alpha)
    layer.paste(patch, (int(round(cx - diameter / 2)), int(round(cy - diameter / 2))))
    layer = layer.filter(ImageFilter.GaussianBlur(glow.blur * scale / 2))
    return Image.alpha_composite(canvas, layer)


def _interpolate(stops: Sequence[Tuple[float, Tuple[int, int, int, float]]], pos: float) -> Rgba:
    if not stops:
        return (0, 0, 0, 0)
    if pos <= stops[0][0]:
        return _to_rgba(stops[0][1])
    for (start, c0), (end, c1) in zip(stops, stops[1:]):
        if start <= pos < end:
            return _mix(c0, c1, (pos - start) / (end - start))
    return _to_rgba(stops[-1][1])


def _mix(c0, c1, t: float) -> Rgba:
    # Interpolate in premultiplied alpha so fades to transparent keep their hue.
    alpha = c0[3] + (c1[3] - c0[3]) * t
    if alpha <= 0:
        return (0, 0, 0, 0)
    channels = [
        (c0[i] * c0[3] + (c1[i] * c1[3] - c0[i] * c0[3]) * t) / alpha for i in range(3)
    ]
    return (
        int(round(channels[0])),
        int(round(channels[1])),
        int(round(channels[2])),
        int(round(alpha * 255)),
    )


def _to_rgba(color) -> Rgba:
    r, g, b, a = color
    return (r, g, b, int(round(a * 255)))


def parse_color(color_str: str) -> Tuple[int, int, int, float]:
    """
    Parse CSS colour strings ('#2D74FF', 'rgba(35,54,102,0.95)',
    'transparent', named colours) into an (r, g, b, alpha) tuple with alpha
    in 0..1. Falls back to a safe default if parsing fails.
    """
    s = (color_str or "").strip()
    if s.lower() == "transparent":
        return (0, 0, 0, 0.0)

    match = _RGBA_FN.match(s)
    try:
        if match:
            parts = [p.strip() for p in match.group(1).split(",")]
            r, g, b = (int(float(p)) for p in parts[:3])
            alpha = float(parts[3]) if len(parts) > 3 else 1.0
            return (r, g, b, max(0.0, min(1.0, alpha)))
        rgb = ImageColor.getrgb(s)
    except ValueError:
        logger.debug("Unparseable colour %r, using fallback", color_str)
        r, g, b, _ = FALLBACK_COLOR
        return (r, g, b, 1.0)

    if len(rgb) == 4:
        return (rgb[0], rgb[1], rgb[2], rgb[3] / 255)
    return (rgb[0], rgb[1], rgb[2], 1.0)


def _rgba(color_str: str) -> Rgba:
    return _to_rgba(parse_color(color_str))


def to_data_url(image: Image.Image) -> str:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def _layer(size: Tuple[int, int]):
    layer = Image.new("RGBA", size, (0, 0, 0, 0))
    return layer, ImageDraw.Draw(layer)


def _px(value: float, scale: float) -> int:
    return int(round(value * scale))


def _display_text(text: str, style: TextStyle) -> str:
    return text.upper() if style.uppercase else text


def _text_width(text: str, font: ImageFont.ImageFont, tracking: float) -> float:
    if not tracking:
        return font.getlength(text)
    return sum(font.getlength(ch) for ch in text) + tracking * len(text)


def _draw_text_block(
    draw: ImageDraw.ImageDraw,
    lines: List[str],
    font: ImageFont.ImageFont,
    x: int,
    y: int,
    fill: Rgba,
    line_height: int,
    tracking: float,
) -> int:
    ascent, descent = font.getmetrics()
    inset = (line_height - (ascent + descent)) / 2
    for line in lines:
        if tracking:
            cursor = float(x)
            for ch in line:
                draw.text((cursor, y + inset), ch, font=font, fill=fill)
                cursor += font.getlength(ch) + tracking
        else:
            draw.text((x, y + inset), line, font=font, fill=fill)
        y += line_height
    return y


def _wrap_text(
    text: str, font: ImageFont.ImageFont, max_width: int, tracking: float
) -> List[str]:
    lines: List[str] = []
    for paragraph in text.split("\n"):
        current = ""
        for word in paragraph.split():
            test = f"{current} {word}".strip()
            if _text_width(test, font, tracking) <= max_width or not current:
                current = test
            else:
                lines.append(current)
                current = word
        lines.append(current)
    return lines


SYSTEM_FONTS = {
    False: [
        "/System/Library/Fonts/HelveticaNeue.ttc",
        "/System/Library/Fonts/Helvetica.ttc",
        "/System/Library/Fonts/Supplemental/Arial.ttf",
        "/Library/Fonts/Arial.ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "C:/Windows/Fonts/arial.ttf",
        "C:/Windows/Fonts/calibri.ttf",
    ],
    True: [
        "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
        "/Library/Fonts/Arial Bold.ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
        "C:/Windows/Fonts/arialbd.ttf",
        "C:/Windows/Fonts/calibrib.ttf",
    ],
}


@lru_cache(maxsize=64)
def _load_font(font_path: Optional[str], size: int, bold: bool = False) -> ImageFont.ImageFont:
    """
    Load a TrueType font with fallbacks to avoid pixelated bitmap fonts.
    Prioritizes the configured font_path, then fonts/ in the project root,
    then system fonts.
    """
    candidates: List[str] = []
    if font_path:
        candidates.append(font_path)

    fonts_dir = Path(__file__).parent.parent / "fonts"
    if fonts_dir.exists():
        preferred = sorted(fonts_dir.glob("*Bold*.ttf")) if bold else []
        candidates.extend(str(p) for p in preferred)
        candidates.extend(str(p) for p in sorted(fonts_dir.glob("*.ttf")) if p not in preferred)
        candidates.extend(str(p) for p in sorted(fonts_dir.glob("*.otf")))

    candidates.extend(SYSTEM_FONTS[bold])
    candidates.extend(SYSTEM_FONTS[False])

    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size=size)
        except OSError:
            continue

    logger.warning("No TrueType font found, falling back to Pillow's default font")
    return ImageFont.load_default(size=size)
