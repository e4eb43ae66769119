from dataclasses import dataclass, fields, replace

from .scenarios import FieldSet, ScenarioDefinition


DEFAULT_FOOTER_NOTE = (
    "This visual is optimized for high-resolution displays. "
    "Export at full size for best results."
)


class UnknownFieldError(KeyError):
    """Raised when an edit names a field the composition does not have."""


@dataclass(frozen=True)
class CompositionState:
    """
    The editable description of the card.

    Carries every `FieldSet` field (accent included, so the colour travels
    with the rendered artifact) plus the CTA toggle and the footer note.
    """

    badge: str
    headline: str
    subheadline: str
    body: str
    cta_label: str
    cta_url: str
    signature: str
    accent: str
    include_cta: bool = True
    footer_note: str = DEFAULT_FOOTER_NOTE


EDITABLE_FIELDS = tuple(f.name for f in fields(CompositionState))


def initial_state(scenario: ScenarioDefinition) -> CompositionState:
    """
    Build the state a scenario starts from. Nothing from any previous state
    is carried over.
    """
    defaults: FieldSet = scenario.defaults
    return CompositionState(
        **{f.name: getattr(defaults, f.name) for f in fields(FieldSet)},
        include_cta=True,
        footer_note=DEFAULT_FOOTER_NOTE,
    )


def with_field(state: CompositionState, name: str, value) -> CompositionState:
    if name not in EDITABLE_FIELDS:
        raise UnknownFieldError(name)
    return replace(state, **{name: value})
