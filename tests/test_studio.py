"""End-to-end tests for the studio wiring and settings."""

import asyncio
import base64
from pathlib import Path

import pytest

from card_studio.config import StudioSettings, load_settings
from card_studio.core import CardStudio

DATA_URL = "data:image/png;base64," + base64.b64encode(b"png").decode("ascii")


class StubRasterizer:
    def __init__(self):
        self.nodes = []

    async def capture(self, node, *, cache_bust, pixel_ratio):
        self.nodes.append(node)
        return DATA_URL


def test_export_before_mount_is_noop(tmp_path):
    rasterizer = StubRasterizer()
    studio = CardStudio(settings=StudioSettings(output_dir=tmp_path), rasterizer=rasterizer)

    assert asyncio.run(studio.export()) is None
    assert rasterizer.nodes == []
    assert not any(tmp_path.iterdir())


def test_export_captures_current_preview(tmp_path):
    rasterizer = StubRasterizer()
    studio = CardStudio(settings=StudioSettings(output_dir=tmp_path), rasterizer=rasterizer)
    studio.preview.mount()

    studio.session.select_scenario("suspension")
    studio.session.set_field("headline", "Paused")
    job = asyncio.run(studio.export())

    assert job.succeeded
    assert job.saved_to == tmp_path / "account-suspension-email-card.png"
    assert rasterizer.nodes[0] is studio.session.render_context.description
    assert rasterizer.nodes[0].frame.header[1].text == "Paused"


def test_rasterizer_failure_leaves_state_untouched(tmp_path):
    class Failing:
        async def capture(self, node, *, cache_bust, pixel_ratio):
            raise OSError("disk full")

    studio = CardStudio(settings=StudioSettings(output_dir=tmp_path), rasterizer=Failing())
    studio.preview.mount()
    studio.session.set_field("badge", "Heads up")
    before = studio.session.state

    job = asyncio.run(studio.export())

    assert job.error is not None
    assert studio.session.state == before
    assert not studio.pipeline.is_exporting


def test_unmount_detaches_preview(tmp_path):
    studio = CardStudio(settings=StudioSettings(output_dir=tmp_path), rasterizer=StubRasterizer())
    studio.preview.mount()
    studio.preview.unmount()
    studio.session.set_field("headline", "ignored")
    assert studio.preview.node is None


def test_pillow_export_writes_real_png(tmp_path):
    studio = CardStudio(
        settings=StudioSettings(output_dir=tmp_path, pixel_ratio=1.0),
        scenario_id="thankyou",
        background_id="gradient-carbon",
    )
    studio.preview.mount()
    job = asyncio.run(studio.export())

    assert job.succeeded
    assert job.saved_to.name == "thank-you-email-card.png"
    assert job.saved_to.read_bytes().startswith(b"\x89PNG")


def test_load_settings_defaults():
    settings = load_settings({})
    assert settings.output_dir == Path("exports")
    assert settings.pixel_ratio == 2.0
    assert settings.export_timeout is None
    assert settings.log_level == "INFO"


def test_load_settings_reads_environment():
    settings = load_settings(
        {
            "CARD_STUDIO_OUTPUT_DIR": "/tmp/cards",
            "CARD_STUDIO_PIXEL_RATIO": "3",
            "CARD_STUDIO_EXPORT_TIMEOUT": "12.5",
            "CARD_STUDIO_FONT_PATH": "/fonts/Inter.ttf",
            "CARD_STUDIO_LOG_LEVEL": "debug",
        }
    )
    assert settings.output_dir == Path("/tmp/cards")
    assert settings.pixel_ratio == 3.0
    assert settings.export_timeout == 12.5
    assert settings.font_path == "/fonts/Inter.ttf"
    assert settings.bold_font_path is None
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("value", ["fast", "0", "-1"])
def test_load_settings_rejects_bad_numbers(value):
    with pytest.raises(ValueError, match="CARD_STUDIO_PIXEL_RATIO"):
        load_settings({"CARD_STUDIO_PIXEL_RATIO": value})


def test_cli_parse_edits_maps_dashes_to_fields():
    from run_studio import parse_edits

    assert parse_edits(["headline=Hi there", "cta-url="]) == [
        ("headline", "Hi there"),
        ("cta_url", ""),
    ]


@pytest.mark.parametrize("raw", ["headline", "include_cta=false", "colour=red"])
def test_cli_parse_edits_rejects_unknown_or_boolean_fields(raw):
    from run_studio import parse_edits

    with pytest.raises(SystemExit):
        parse_edits([raw])


def _run_cli(monkeypatch, rasterizer, *argv):
    import run_studio

    for name in (
        "CARD_STUDIO_OUTPUT_DIR",
        "CARD_STUDIO_PIXEL_RATIO",
        "CARD_STUDIO_EXPORT_TIMEOUT",
        "CARD_STUDIO_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(run_studio, "load_dotenv", lambda: None)
    monkeypatch.setattr(
        "card_studio.core.PillowRasterizer", lambda **kwargs: rasterizer
    )
    monkeypatch.setattr("sys.argv", ["run_studio.py", *argv])
    run_studio.main()


def test_cli_main_applies_edits_and_saves_one_png(monkeypatch, tmp_path, capsys):
    rasterizer = StubRasterizer()
    out = tmp_path / "out"

    _run_cli(
        monkeypatch,
        rasterizer,
        "--scenario", "suspension",
        "--set", "headline=Paused",
        "--accent", "#10B981",
        "--footer-note", "Internal only",
        "--no-cta",
        "--output-dir", str(out),
    )

    assert [p.name for p in out.iterdir()] == ["account-suspension-email-card.png"]
    node = rasterizer.nodes[0]
    assert node.frame.header[1].text == "Paused"
    assert node.frame.header[0].style.color == "#10B981"
    assert node.cta is None
    assert node.frame.footer[-1].note.text == "Internal only"
    assert "Saved" in capsys.readouterr().out


def test_cli_main_exits_when_export_fails(monkeypatch, tmp_path):
    class Failing:
        async def capture(self, node, *, cache_bust, pixel_ratio):
            raise OSError("disk full")

    out = tmp_path / "out"
    with pytest.raises(SystemExit, match="Export failed"):
        _run_cli(monkeypatch, Failing(), "--output-dir", str(out))
    assert not out.exists()


def test_cli_list_prints_catalogs_without_exporting(monkeypatch, capsys):
    rasterizer = StubRasterizer()
    _run_cli(monkeypatch, rasterizer, "--list")

    printed = capsys.readouterr().out
    assert "suspension" in printed
    assert "gradient-carbon" in printed
    assert rasterizer.nodes == []
