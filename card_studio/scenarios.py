import logging
from dataclasses import dataclass
from typing import Tuple


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldSet:
    """
    Default copy for a scenario. Field names double as the editable
    composition fields (see `state.CompositionState`).
    """

    badge: str
    headline: str
    subheadline: str
    body: str
    cta_label: str
    cta_url: str
    signature: str
    accent: str


@dataclass(frozen=True)
class ScenarioDefinition:
    id: str
    label: str
    description: str
    defaults: FieldSet


SCENARIOS: Tuple[ScenarioDefinition, ...] = (
    ScenarioDefinition(
        id="notice",
        label="Notice",
        description=(
            "Formal notice template for policy updates, maintenance windows, "
            "and structured announcements."
        ),
        defaults=FieldSet(
            badge="Official Notice",
            headline="Policy Update Goes Into Effect April 12",
            subheadline="Transparent changes for your organization",
            body=(
                "We are updating the retention policy for archived accounts to "
                "improve compliance visibility. The new policy takes effect on "
                "April 12, providing a dedicated review window and a clearer "
                "escalation timeline."
            ),
            cta_label="Review Policy Brief",
            cta_url="https://example.com/policy",
            signature="Regulatory Affairs · Northwind Organization",
            accent="#2D74FF",
        ),
    ),
    ScenarioDefinition(
        id="update",
        label="Product Update",
        description=(
            "Showcase roadmap milestones, release updates, and feature "
            "announcements with clarity."
        ),
        defaults=FieldSet(
            badge="Product Update",
            headline="Realtime Dashboards Receive a Performance Boost",
            subheadline="Faster insights for global teams",
            body=(
                "Your dashboards now refresh 43% faster thanks to our new "
                "rendering engine. Gain real-time clarity across every region, "
                "with no workflow changes required."
            ),
            cta_label="Explore What’s New",
            cta_url="https://example.com/updates",
            signature="Product Experience Team · Aurora Cloud",
            accent="#38BDF8",
        ),
    ),
    ScenarioDefinition(
        id="suspension",
        label="Account Suspension",
        description=(
            "Deliver difficult compliance or suspension messaging with a "
            "precise, trustworthy visual tone."
        ),
        defaults=FieldSet(
            badge="Compliance Update",
            headline="Account Access Suspended Pending Review",
            subheadline="Action required to restore access",
            body=(
                "We detected activity that conflicts with our Acceptable Use "
                "Policy. Access will remain paused while our trust & safety "
                "team reviews the case. Share the requested documents to "
                "accelerate reinstatement."
            ),
            cta_label="Provide Documentation",
            cta_url="https://example.com/review",
            signature="Trust & Safety · Sentinel Platform",
            accent="#F97316",
        ),
    ),
    ScenarioDefinition(
        id="congrats",
        label="Congratulations",
        description=(
            "Celebrate wins, milestones, and recognition moments with "
            "premium visual polish."
        ),
        defaults=FieldSet(
            badge="Congratulations",
            headline="You Earned Elite Partner Status in Q1",
            subheadline="Recognition for consistent excellence",
            body=(
                "Your team surpassed every benchmark for customer satisfaction, "
                "security posture, and delivery velocity. We’re excited to "
                "celebrate this milestone and unlock a new tier of benefits "
                "for your organization."
            ),
            cta_label="View Partner Benefits",
            cta_url="https://example.com/perks",
            signature="Partner Success · Vertex Alliance",
            accent="#A855F7",
        ),
    ),
    ScenarioDefinition(
        id="thankyou",
        label="Thank You",
        description=(
            "Deliver gratitude with premium storytelling visuals that "
            "reinforce brand trust."
        ),
        defaults=FieldSet(
            badge="Thank You",
            headline="Thank You for Joining the Advisory Council",
            subheadline="Your insight shapes what we build next",
            body=(
                "We appreciate the time you invest helping us refine our "
                "products. Expect tailored briefings, early previews, and "
                "executive sessions as we continue to collaborate."
            ),
            cta_label="Access Council Portal",
            cta_url="https://example.com/council",
            signature="Executive Programs · Horizon Labs",
            accent="#22D3EE",
        ),
    ),
)


def list_scenarios() -> Tuple[ScenarioDefinition, ...]:
    return SCENARIOS


def get_scenario(scenario_id: str) -> ScenarioDefinition:
    """
    Look up a scenario by id.

    Unknown ids resolve to the first catalog entry so callers always get a
    usable definition; the miss is only logged.
    """
    for scenario in SCENARIOS:
        if scenario.id == scenario_id:
            return scenario

    fallback = SCENARIOS[0]
    logger.warning(
        "Unknown scenario id %r, falling back to %r", scenario_id, fallback.id
    )
    return fallback
