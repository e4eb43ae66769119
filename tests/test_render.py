"""Tests for the pure card renderer."""

import json
from dataclasses import replace

from card_studio.palette import get_background
from card_studio.render import (
    Badge,
    CallToAction,
    FooterRow,
    OVERLAY_BLEND_MODE,
    OVERLAY_OPACITY,
    render,
)
from card_studio.scenarios import get_scenario
from card_studio.state import initial_state


def _state(**changes):
    return replace(initial_state(get_scenario("notice")), **changes)


def test_render_is_pure():
    state = _state()
    background = get_background("gradient-vibrant")
    assert render(state, background) == render(state, background)


def test_layers_follow_background():
    background = get_background("gradient-carbon")
    description = render(_state(), background)
    assert description.base == background.gradient
    assert description.overlay.fill == background.overlay
    assert description.overlay.blend_mode == OVERLAY_BLEND_MODE == "screen"
    assert description.overlay.opacity == OVERLAY_OPACITY


def test_header_order_and_badge_accent():
    state = _state(accent="#10B981")
    header = render(state, get_background("gradient-soft")).frame.header

    assert isinstance(header[0], Badge)
    assert header[0].text == state.badge
    assert header[0].style.color == "#10B981"
    assert [el.role for el in header[1:]] == ["headline", "subheadline", "body"]
    assert [el.text for el in header[1:]] == [state.headline, state.subheadline, state.body]


def test_cta_hidden_when_disabled_and_restored_when_enabled():
    background = get_background("gradient-soft")
    hidden = render(_state(include_cta=False), background)
    assert hidden.cta is None
    assert not any(isinstance(el, CallToAction) for el in hidden.frame.footer)

    shown = render(_state(include_cta=True, cta_label="Read more", cta_url="https://x.test"), background)
    assert shown.cta.label == "Read more"
    assert shown.cta.href == "https://x.test"


def test_empty_cta_url_links_to_hash():
    description = render(_state(cta_url=""), get_background("gradient-soft"))
    assert description.cta.href == "#"


def test_footer_row_carries_signature_and_note():
    state = _state(signature="Ops", footer_note="")
    row = render(state, get_background("gradient-soft")).frame.footer[-1]
    assert isinstance(row, FooterRow)
    assert row.signature.text == "Ops"
    assert row.note.text == ""


def test_glows_use_accent_without_touching_text_layout():
    background = get_background("gradient-soft")
    a = render(_state(accent="#FACC15"), background)
    b = render(_state(accent="#2D74FF"), background)

    assert [g.color for g in a.frame.glows] == ["#FACC15", "#FACC15"]
    assert [(g.center_x, g.center_y) for g in a.frame.glows] == [
        (g.center_x, g.center_y) for g in b.frame.glows
    ]
    assert [el.text for el in a.frame.header] == [el.text for el in b.frame.header]


def test_to_dict_is_json_serializable():
    data = render(_state(), get_background("gradient-soft")).to_dict()
    encoded = json.dumps(data)
    assert "linear-gradient(140deg" in encoded
    assert data["overlay"]["blend_mode"] == "screen"
