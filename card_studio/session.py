import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .palette import BackgroundTreatment, backgrounds, get_background
from .render import VisualDescription, render
from .scenarios import ScenarioDefinition, get_scenario, list_scenarios
from .state import CompositionState, initial_state, with_field


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderContext:
    scenario: ScenarioDefinition
    state: CompositionState
    background: BackgroundTreatment
    description: VisualDescription


Listener = Callable[[RenderContext], None]


class CompositionSession:
    """
    Owns the single mutable composition of an interactive session.

    Every mutation replaces the state value, re-renders synchronously and
    notifies subscribers with the fresh `RenderContext`.
    """

    def __init__(
        self,
        scenario_id: Optional[str] = None,
        background_id: Optional[str] = None,
    ) -> None:
        self._scenario = get_scenario(scenario_id or list_scenarios()[0].id)
        self._state = initial_state(self._scenario)
        self._background = get_background(background_id or backgrounds()[0].id)
        self._listeners: List[Listener] = []
        self._context = self._build_context()

    @property
    def scenario(self) -> ScenarioDefinition:
        return self._scenario

    @property
    def state(self) -> CompositionState:
        return self._state

    @property
    def background(self) -> BackgroundTreatment:
        return self._background

    @property
    def render_context(self) -> RenderContext:
        return self._context

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def select_scenario(self, scenario_id: str) -> None:
        # Full overwrite: edits made under the previous scenario are dropped.
        self._scenario = get_scenario(scenario_id)
        self._state = initial_state(self._scenario)
        logger.debug("Selected scenario %r", self._scenario.id)
        self._commit()

    def set_field(self, name: str, value) -> None:
        self._state = with_field(self._state, name, value)
        self._commit()

    def set_accent(self, color: str) -> None:
        self.set_field("accent", color)

    def select_background(self, background_id: str) -> None:
        self._background = get_background(background_id)
        self._commit()

    def _build_context(self) -> RenderContext:
        return RenderContext(
            scenario=self._scenario,
            state=self._state,
            background=self._background,
            description=render(self._state, self._background),
        )

    def _commit(self) -> None:
        self._context = self._build_context()
        for listener in list(self._listeners):
            listener(self._context)
