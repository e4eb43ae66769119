from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple, Union

from .palette import BackgroundTreatment, Fill
from .state import CompositionState


# Card template, in CSS pixels before the capture pixel ratio is applied.
CARD_WIDTH = 960
CARD_MIN_HEIGHT = 600
CARD_PADDING = 40
CARD_RADIUS = 38
# slate-950, the page colour the card sits on
BACKDROP = "#020617"

OVERLAY_BLEND_MODE = "screen"
OVERLAY_OPACITY = 0.9

CTA_FALLBACK_HREF = "#"


@dataclass(frozen=True)
class TextStyle:
    size: int
    color: str
    bold: bool = False
    uppercase: bool = False
    # letter spacing in em
    tracking: float = 0.0
    line_height: float = 1.25
    max_width: Optional[int] = None


@dataclass(frozen=True)
class TextElement:
    role: str
    text: str
    style: TextStyle
    gap_before: int = 0


@dataclass(frozen=True)
class Badge:
    text: str
    style: TextStyle
    fill: str = "rgba(255,255,255,0.1)"
    border: str = "rgba(255,255,255,0.2)"
    padding_x: int = 16
    padding_y: int = 4
    gap_before: int = 0


@dataclass(frozen=True)
class Shadow:
    color: str
    offset_y: int
    blur: int
    spread: int


@dataclass(frozen=True)
class CallToAction:
    label: str
    href: str
    accent: str
    style: TextStyle
    shadow: Shadow
    icon: str = "→"
    icon_color: str = "#0B1220"
    icon_size: int = 24
    fill: str = "rgba(255,255,255,0.15)"
    border: str = "rgba(255,255,255,0.2)"
    padding_x: int = 24
    padding_y: int = 8
    gap: int = 8
    gap_before: int = 0


@dataclass(frozen=True)
class FooterRow:
    signature: TextElement
    note: TextElement
    gap: int = 16
    gap_before: int = 0


@dataclass(frozen=True)
class Glow:
    """
    Decorative radial glow. Centre and diameter are fractions of the
    content frame (diameter relative to the frame width), so glows never
    take part in text layout.
    """

    color: str
    center_x: float
    center_y: float
    diameter: float
    fade: float
    opacity: float
    blur: int


@dataclass(frozen=True)
class OverlayLayer:
    fill: Fill
    blend_mode: str = OVERLAY_BLEND_MODE
    opacity: float = OVERLAY_OPACITY


HeaderElement = Union[Badge, TextElement]
FooterElement = Union[CallToAction, FooterRow]


@dataclass(frozen=True)
class ContentFrame:
    header: Tuple[HeaderElement, ...]
    footer: Tuple[FooterElement, ...]
    glows: Tuple[Glow, ...]
    padding: int = 40
    min_height: int = 520
    corner_radius: int = 28
    fill: str = "rgba(255,255,255,0.06)"
    border: str = "rgba(255,255,255,0.08)"


@dataclass(frozen=True)
class VisualDescription:
    """
    Declarative description of the card, bottom layer first:
    base fill, screen-blended overlay, content frame, glows.
    """

    base: Fill
    overlay: OverlayLayer
    frame: ContentFrame
    width: int = CARD_WIDTH
    min_height: int = CARD_MIN_HEIGHT
    padding: int = CARD_PADDING
    corner_radius: int = CARD_RADIUS
    backdrop: str = BACKDROP

    @property
    def cta(self) -> Optional[CallToAction]:
        for element in self.frame.footer:
            if isinstance(element, CallToAction):
                return element
        return None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["base"]["css"] = self.base.to_css()
        data["overlay"]["fill"]["css"] = self.overlay.fill.to_css()
        return data


# Glow placement taken from the card template: one glow hanging off the
# top-right corner, a larger one off the bottom-left.
GLOW_LAYOUT = (
    dict(center_x=0.945, center_y=0.092, diameter=0.29, fade=0.65, opacity=0.6, blur=20),
    dict(center_x=0.118, center_y=0.908, diameter=0.327, fade=0.70, opacity=0.5, blur=30),
)


def render(state: CompositionState, background: BackgroundTreatment) -> VisualDescription:
    """
    Project a composition state and background onto a card description.

    Pure: the same inputs always produce an equal description.
    """
    header = (
        Badge(
            text=state.badge,
            style=TextStyle(
                size=12, color=state.accent, bold=True, uppercase=True, tracking=0.2
            ),
        ),
        TextElement(
            role="headline",
            text=state.headline,
            style=TextStyle(size=30, color="#FFFFFF", bold=True, line_height=1.25),
            gap_before=20,
        ),
        TextElement(
            role="subheadline",
            text=state.subheadline,
            style=TextStyle(size=16, color="rgba(255,255,255,0.8)", bold=True, line_height=1.5),
            gap_before=12,
        ),
        TextElement(
            role="body",
            text=state.body,
            style=TextStyle(
                size=14, color="rgba(255,255,255,0.7)", line_height=1.625, max_width=672
            ),
            gap_before=12,
        ),
    )

    footer = []
    if state.include_cta:
        footer.append(
            CallToAction(
                label=state.cta_label,
                href=state.cta_url or CTA_FALLBACK_HREF,
                accent=state.accent,
                style=TextStyle(size=14, color="#FFFFFF", bold=True, line_height=1.5),
                shadow=Shadow(color=state.accent, offset_y=10, blur=40, spread=-15),
            )
        )
    footer.append(
        FooterRow(
            signature=TextElement(
                role="signature",
                text=state.signature,
                style=TextStyle(size=14, color="rgba(255,255,255,0.8)", line_height=1.5),
            ),
            note=TextElement(
                role="footer_note",
                text=state.footer_note,
                style=TextStyle(
                    size=12, color="rgba(255,255,255,0.3)", uppercase=True, tracking=0.3
                ),
            ),
            gap_before=24 if state.include_cta else 0,
        )
    )

    glows = tuple(Glow(color=state.accent, **layout) for layout in GLOW_LAYOUT)

    return VisualDescription(
        base=background.gradient,
        overlay=OverlayLayer(fill=background.overlay),
        frame=ContentFrame(header=header, footer=tuple(footer), glows=glows),
    )
