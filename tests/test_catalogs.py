"""Tests for the scenario and palette catalogs."""

import logging

import pytest

from card_studio.palette import (
    ACCENT_PALETTE,
    RepeatingLinearGradient,
    accents,
    backgrounds,
    get_background,
)
from card_studio.scenarios import get_scenario, list_scenarios


def test_scenarios_keep_catalog_order():
    ids = [s.id for s in list_scenarios()]
    assert ids == ["notice", "update", "suspension", "congrats", "thankyou"]


def test_get_scenario_returns_match():
    scenario = get_scenario("suspension")
    assert scenario.label == "Account Suspension"
    assert scenario.defaults.accent == "#F97316"


@pytest.mark.parametrize("unknown", ["", "missing", "NOTICE", "notice "])
def test_get_scenario_unknown_id_falls_back_to_first(unknown):
    assert get_scenario(unknown) is list_scenarios()[0]


def test_get_scenario_fallback_is_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="card_studio.scenarios"):
        get_scenario("typo")
    assert "typo" in caplog.text


def test_accent_palette_order():
    assert accents() == ACCENT_PALETTE
    assert accents()[0] == "#2D74FF"
    assert len(accents()) == 8


def test_get_background_returns_match_and_falls_back():
    assert get_background("gradient-carbon").label == "Carbon Fiber"
    assert get_background("does-not-exist") is backgrounds()[0]


def test_background_fills_render_as_css():
    soft = get_background("gradient-soft")
    assert soft.gradient.to_css() == (
        "linear-gradient(140deg, rgba(35,54,102,0.95) 0%, "
        "rgba(17,37,84,0.98) 45%, rgba(5,17,39,1) 100%)"
    )
    assert soft.overlay.to_css() == (
        "radial-gradient(120% 140% at 80% 0%, "
        "rgba(125,211,252,0.28) 0%, rgba(15,23,42,0) 70%)"
    )


def test_carbon_overlay_repeats_every_six_pixels():
    overlay = get_background("gradient-carbon").overlay
    assert isinstance(overlay, RepeatingLinearGradient)
    assert overlay.period == 6
    assert overlay.to_css().startswith("repeating-linear-gradient(45deg, rgba(255,255,255,0.05) 0,")
