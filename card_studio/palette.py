import logging
from dataclasses import dataclass
from typing import Tuple, Union


logger = logging.getLogger(__name__)


ACCENT_PALETTE: Tuple[str, ...] = (
    "#2D74FF",
    "#38BDF8",
    "#22D3EE",
    "#F97316",
    "#A855F7",
    "#10B981",
    "#F43F5E",
    "#FACC15",
)


@dataclass(frozen=True)
class ColorStop:
    color: str
    # Fraction of the gradient line (0..1), except for repeating gradients
    # where it is a length in CSS pixels.
    offset: float


@dataclass(frozen=True)
class LinearGradient:
    angle: float
    stops: Tuple[ColorStop, ...]

    def to_css(self) -> str:
        stops = ", ".join(f"{s.color} {_pct(s.offset)}" for s in self.stops)
        return f"linear-gradient({self.angle:g}deg, {stops})"


@dataclass(frozen=True)
class RadialGradient:
    """
    Elliptical gradient. Radii and centre are fractions of the painted box,
    so `radius_x=1.2` spans 120% of the box width.
    """

    radius_x: float
    radius_y: float
    center_x: float
    center_y: float
    stops: Tuple[ColorStop, ...]

    def to_css(self) -> str:
        stops = ", ".join(f"{s.color} {_pct(s.offset)}" for s in self.stops)
        return (
            f"radial-gradient({_pct(self.radius_x)} {_pct(self.radius_y)} "
            f"at {_pct(self.center_x)} {_pct(self.center_y)}, {stops})"
        )


@dataclass(frozen=True)
class RepeatingLinearGradient:
    angle: float
    stops: Tuple[ColorStop, ...]

    @property
    def period(self) -> float:
        return self.stops[-1].offset if self.stops else 0.0

    def to_css(self) -> str:
        stops = ", ".join(f"{s.color} {_px(s.offset)}" for s in self.stops)
        return f"repeating-linear-gradient({self.angle:g}deg, {stops})"


Fill = Union[LinearGradient, RadialGradient, RepeatingLinearGradient]


@dataclass(frozen=True)
class BackgroundTreatment:
    id: str
    label: str
    description: str
    gradient: Fill
    overlay: Fill


BACKGROUND_STYLES: Tuple[BackgroundTreatment, ...] = (
    BackgroundTreatment(
        id="gradient-soft",
        label="Signature Gradient",
        description="Polished gradient blending deep navy with luminous cyan arcs.",
        gradient=LinearGradient(
            angle=140,
            stops=(
                ColorStop("rgba(35,54,102,0.95)", 0.0),
                ColorStop("rgba(17,37,84,0.98)", 0.45),
                ColorStop("rgba(5,17,39,1)", 1.0),
            ),
        ),
        overlay=RadialGradient(
            radius_x=1.2,
            radius_y=1.4,
            center_x=0.8,
            center_y=0.0,
            stops=(
                ColorStop("rgba(125,211,252,0.28)", 0.0),
                ColorStop("rgba(15,23,42,0)", 0.7),
            ),
        ),
    ),
    BackgroundTreatment(
        id="gradient-vibrant",
        label="Vibrant Energy",
        description="High-energy blend for celebratory or momentum-driven narratives.",
        gradient=LinearGradient(
            angle=135,
            stops=(
                ColorStop("rgba(76,29,149,0.96)", 0.0),
                ColorStop("rgba(59,130,246,0.92)", 0.45),
                ColorStop("rgba(14,165,233,0.96)", 1.0),
            ),
        ),
        overlay=RadialGradient(
            radius_x=1.2,
            radius_y=1.6,
            center_x=0.0,
            center_y=1.0,
            stops=(
                ColorStop("rgba(250,204,21,0.25)", 0.0),
                ColorStop("rgba(15,23,42,0)", 0.6),
            ),
        ),
    ),
    BackgroundTreatment(
        id="gradient-carbon",
        label="Carbon Fiber",
        description="Precision aesthetic with carbon texture and subtle depth.",
        gradient=LinearGradient(
            angle=145,
            stops=(
                ColorStop("rgba(15,23,42,0.98)", 0.0),
                ColorStop("rgba(15,23,42,0.98)", 0.5),
                ColorStop("rgba(8,15,28,1)", 1.0),
            ),
        ),
        overlay=RepeatingLinearGradient(
            angle=45,
            stops=(
                ColorStop("rgba(255,255,255,0.05)", 0),
                ColorStop("rgba(255,255,255,0.05)", 2),
                ColorStop("transparent", 2),
                ColorStop("transparent", 6),
            ),
        ),
    ),
    BackgroundTreatment(
        id="minimal-satin",
        label="Minimal Satin",
        description="Soft satin sheen with minimal gradients for governance messaging.",
        gradient=LinearGradient(
            angle=135,
            stops=(
                ColorStop("rgba(30,41,59,1)", 0.0),
                ColorStop("rgba(15,23,42,1)", 0.6),
                ColorStop("rgba(8,12,23,1)", 1.0),
            ),
        ),
        overlay=RadialGradient(
            radius_x=1.0,
            radius_y=1.0,
            center_x=0.5,
            center_y=0.0,
            stops=(
                ColorStop("rgba(148,163,184,0.12)", 0.0),
                ColorStop("rgba(15,23,42,0)", 0.65),
            ),
        ),
    ),
)


def accents() -> Tuple[str, ...]:
    return ACCENT_PALETTE


def backgrounds() -> Tuple[BackgroundTreatment, ...]:
    return BACKGROUND_STYLES


def get_background(background_id: str) -> BackgroundTreatment:
    """
    Same never-fail policy as `scenarios.get_scenario`: an unknown id
    resolves to the first treatment.
    """
    for style in BACKGROUND_STYLES:
        if style.id == background_id:
            return style

    fallback = BACKGROUND_STYLES[0]
    logger.warning(
        "Unknown background id %r, falling back to %r", background_id, fallback.id
    )
    return fallback


def _pct(value: float) -> str:
    return f"{round(value * 100, 4):g}%"


def _px(value: float) -> str:
    return "0" if value == 0 else f"{value:g}px"
