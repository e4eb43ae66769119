import argparse
import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import List, Tuple

from dotenv import load_dotenv

from card_studio.config import load_settings
from card_studio.core import CardStudio
from card_studio.palette import accents, backgrounds
from card_studio.scenarios import list_scenarios
from card_studio.state import EDITABLE_FIELDS

TEXT_FIELDS = tuple(name for name in EDITABLE_FIELDS if name != "include_cta")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compose an email announcement card and export it as a PNG."
    )
    parser.add_argument(
        "--scenario",
        default=list_scenarios()[0].id,
        help="Scenario id to start from (unknown ids fall back to the first scenario).",
    )
    parser.add_argument(
        "--background",
        default=backgrounds()[0].id,
        help="Background treatment id.",
    )
    parser.add_argument("--accent", help="Accent colour, e.g. '#10B981'.")
    parser.add_argument(
        "--set",
        dest="edits",
        action="append",
        default=[],
        metavar="FIELD=VALUE",
        help="Override a text field (repeatable), e.g. --set headline='Hello'.",
    )
    parser.add_argument("--footer-note", help="Replace the footer note.")
    parser.add_argument(
        "--no-cta",
        action="store_true",
        help="Hide the call-to-action button.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Folder where exported cards are saved (overrides CARD_STUDIO_OUTPUT_DIR).",
    )
    parser.add_argument(
        "--pixel-ratio",
        type=float,
        help="Capture density (overrides CARD_STUDIO_PIXEL_RATIO).",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List scenarios, accents and backgrounds, then exit.",
    )
    return parser.parse_args()


def parse_edits(raw_edits: List[str]) -> List[Tuple[str, str]]:
    edits = []
    for raw in raw_edits:
        name, sep, value = raw.partition("=")
        name = name.strip().replace("-", "_")
        if not sep or name not in TEXT_FIELDS:
            raise SystemExit(
                f"Invalid --set {raw!r}; expected FIELD=VALUE with FIELD in: "
                + ", ".join(TEXT_FIELDS)
            )
        edits.append((name, value))
    return edits


def print_catalogs() -> None:
    print("Scenarios:")
    for scenario in list_scenarios():
        print(f"  {scenario.id:<12} {scenario.label} - {scenario.description}")
    print("Accents:")
    print("  " + " ".join(accents()))
    print("Backgrounds:")
    for style in backgrounds():
        print(f"  {style.id:<18} {style.label} - {style.description}")


def main() -> None:
    # Load environment variables from a local .env file if present
    # (e.g. CARD_STUDIO_OUTPUT_DIR=exports).
    load_dotenv()

    args = parse_args()
    if args.list:
        print_catalogs()
        return

    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides = {}
    if args.output_dir is not None:
        overrides["output_dir"] = args.output_dir
    if args.pixel_ratio is not None:
        overrides["pixel_ratio"] = args.pixel_ratio
    if overrides:
        settings = replace(settings, **overrides)

    studio = CardStudio(settings=settings, scenario_id=args.scenario, background_id=args.background)
    session = studio.session

    for name, value in parse_edits(args.edits):
        session.set_field(name, value)
    if args.accent:
        session.set_accent(args.accent)
    if args.footer_note is not None:
        session.set_field("footer_note", args.footer_note)
    if args.no_cta:
        session.set_field("include_cta", False)

    studio.preview.mount()
    print(f"🎨 Rendering '{session.scenario.label}' on '{session.background.label}'")
    job = asyncio.run(studio.export())

    if job is None or not job.succeeded:
        raise SystemExit("Export failed, see log for details.")
    print(f"✅ Saved {job.saved_to or job.filename}")


if __name__ == "__main__":
    main()
