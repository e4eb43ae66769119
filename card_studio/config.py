import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional


@dataclass(frozen=True)
class StudioSettings:
    output_dir: Path = Path("exports")
    font_path: Optional[str] = None
    bold_font_path: Optional[str] = None
    pixel_ratio: float = 2.0
    export_timeout: Optional[float] = None
    log_level: str = "INFO"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> StudioSettings:
    """
    Read settings from the environment. Call `dotenv.load_dotenv()` first to
    pick up a local .env file.
    """
    env = os.environ if environ is None else environ
    return StudioSettings(
        output_dir=Path(env.get("CARD_STUDIO_OUTPUT_DIR") or "exports"),
        font_path=env.get("CARD_STUDIO_FONT_PATH") or None,
        bold_font_path=env.get("CARD_STUDIO_FONT_BOLD_PATH") or None,
        pixel_ratio=_float(env, "CARD_STUDIO_PIXEL_RATIO", 2.0),
        export_timeout=_float(env, "CARD_STUDIO_EXPORT_TIMEOUT", None),
        log_level=(env.get("CARD_STUDIO_LOG_LEVEL") or "INFO").upper(),
    )


def _float(env: Mapping[str, str], name: str, default: Optional[float]) -> Optional[float]:
    raw = env.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value
