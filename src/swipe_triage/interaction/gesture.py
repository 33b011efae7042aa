"""Swipe gesture tracking as an explicit finite-state machine.

The tracker consumes pointer events for the front card and moves through
``neutral -> dragging -> {committing, cancelling} -> neutral``. Every move
produces a :class:`DragUpdate` used for live feedback (offset, tilt and the
overlay shown for the classified direction). Release produces exactly one
:class:`GestureResolution` per drag.

Malformed input never raises: events arriving in the wrong phase or carrying
non-numeric coordinates are logged at debug level and ignored.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Literal

from ..core.config import GestureSettings

LOGGER = logging.getLogger(__name__)

Direction = Literal["none", "left", "right"]
SwipeDirection = Literal["left", "right"]
GesturePhase = Literal["neutral", "dragging", "committing", "cancelling"]

PHASE_NEUTRAL: GesturePhase = "neutral"
PHASE_DRAGGING: GesturePhase = "dragging"
PHASE_COMMITTING: GesturePhase = "committing"
PHASE_CANCELLING: GesturePhase = "cancelling"


@dataclass(slots=True, frozen=True)
class GestureState:
    """Snapshot of the ephemeral drag state of the front card."""

    offset: float = 0.0
    velocity: float = 0.0
    direction: Direction = "none"
    rotation: float = 0.0
    dragging: bool = False


NEUTRAL_STATE = GestureState()


@dataclass(slots=True, frozen=True)
class DragUpdate:
    """Feedback emitted for every accepted move event."""

    offset: float
    velocity: float
    direction: Direction
    rotation: float
    overlay_opacity: float


@dataclass(slots=True, frozen=True)
class GestureResolution:
    """Decision taken when the pointer is released."""

    committed: bool
    direction: SwipeDirection | None
    offset: float
    velocity: float


class GestureTracker:
    """Track one drag at a time and decide between commit and cancel."""

    def __init__(self, settings: GestureSettings | None = None) -> None:
        """Initialise the tracker in the neutral phase."""
        self._settings = settings or GestureSettings()
        self._phase: GesturePhase = PHASE_NEUTRAL
        self._state = NEUTRAL_STATE
        self._origin_x = 0.0
        self._last_x = 0.0
        self._last_t = 0.0

    @property
    def phase(self) -> GesturePhase:
        """Current phase of the state machine."""
        return self._phase

    @property
    def state(self) -> GestureState:
        """Current drag state."""
        return self._state

    def start(self, x: float, timestamp_ms: float) -> bool:
        """Begin a drag at ``x``; a start during a drag restarts it."""
        position = _coerce(x)
        moment = _coerce(timestamp_ms)
        if position is None or moment is None:
            LOGGER.debug("Ignoring drag start with invalid coordinates")
            return False
        if self._phase == PHASE_DRAGGING:
            LOGGER.debug("Drag restarted before release")
        self._origin_x = self._last_x = position
        self._last_t = moment
        self._phase = PHASE_DRAGGING
        self._state = GestureState(dragging=True)
        return True

    def move(self, x: float, timestamp_ms: float) -> DragUpdate | None:
        """Apply a move event and return live feedback."""
        if self._phase != PHASE_DRAGGING:
            LOGGER.debug("Ignoring move in phase %s", self._phase)
            return None
        position = _coerce(x)
        moment = _coerce(timestamp_ms)
        if position is None or moment is None:
            LOGGER.debug("Ignoring move with invalid coordinates")
            return None
        return self._apply_move(position, moment)

    def release(
        self, x: float | None = None, timestamp_ms: float | None = None
    ) -> GestureResolution | None:
        """End the drag and decide whether it commits.

        A final position may be supplied; it is applied as a last move first.
        Returns ``None`` for a release that has no matching start, which also
        guards against duplicate release events.
        """
        if self._phase != PHASE_DRAGGING:
            LOGGER.debug("Ignoring release in phase %s", self._phase)
            return None
        if x is not None:
            position = _coerce(x)
            moment = _coerce(timestamp_ms) if timestamp_ms is not None else self._last_t
            if position is not None and moment is not None:
                self._apply_move(position, moment)

        offset = self._state.offset
        velocity = self._state.velocity
        settings = self._settings
        significant = (
            abs(offset) > settings.distance_threshold
            or abs(velocity) > settings.velocity_threshold
        )
        direction = _resolve_direction(offset, velocity) if significant else None
        committed = direction is not None

        self._state = NEUTRAL_STATE
        self._phase = PHASE_COMMITTING if committed else PHASE_CANCELLING
        LOGGER.debug(
            "Drag released offset=%.1f velocity=%.3f committed=%s direction=%s",
            offset,
            velocity,
            committed,
            direction,
        )
        return GestureResolution(
            committed=committed,
            direction=direction,
            offset=offset,
            velocity=velocity,
        )

    def settle(self) -> None:
        """Finish the commit/cancel animation and return to neutral."""
        if self._phase in (PHASE_COMMITTING, PHASE_CANCELLING):
            self._phase = PHASE_NEUTRAL

    def reset(self) -> None:
        """Drop any drag in progress and return to neutral."""
        self._phase = PHASE_NEUTRAL
        self._state = NEUTRAL_STATE

    # Internal helpers --------------------------------------------------------
    def _apply_move(self, position: float, moment: float) -> DragUpdate:
        velocity = self._state.velocity
        elapsed = moment - self._last_t
        if elapsed > 0:
            velocity = (position - self._last_x) / elapsed
        self._last_x = position
        self._last_t = max(moment, self._last_t)

        offset = self._bounded_offset(position - self._origin_x)
        direction = self._classify(offset)
        rotation = self._rotation(offset)
        self._state = GestureState(
            offset=offset,
            velocity=velocity,
            direction=direction,
            rotation=rotation,
            dragging=True,
        )
        return DragUpdate(
            offset=offset,
            velocity=velocity,
            direction=direction,
            rotation=rotation,
            overlay_opacity=self._overlay_opacity(offset, direction),
        )

    def _bounded_offset(self, raw_offset: float) -> float:
        settings = self._settings
        magnitude = abs(raw_offset)
        if settings.soft_bound is not None and magnitude > settings.soft_bound:
            magnitude = settings.soft_bound + (
                magnitude - settings.soft_bound
            ) * settings.damping
        magnitude = min(magnitude, settings.hard_bound)
        return math.copysign(magnitude, raw_offset)

    def _classify(self, offset: float) -> Direction:
        if abs(offset) < self._settings.activation_threshold:
            return "none"
        return "right" if offset > 0 else "left"

    def _rotation(self, offset: float) -> float:
        limit = self._settings.max_rotation
        return max(-limit, min(limit, offset * self._settings.rotation_factor))

    def _overlay_opacity(self, offset: float, direction: Direction) -> float:
        if direction == "none":
            return 0.0
        return min(1.0, abs(offset) / self._settings.distance_threshold)


def _resolve_direction(offset: float, velocity: float) -> SwipeDirection | None:
    if offset > 0:
        return "right"
    if offset < 0:
        return "left"
    if velocity > 0:
        return "right"
    if velocity < 0:
        return "left"
    return None


def _coerce(value: object) -> float | None:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


__all__ = [
    "NEUTRAL_STATE",
    "PHASE_CANCELLING",
    "PHASE_COMMITTING",
    "PHASE_DRAGGING",
    "PHASE_NEUTRAL",
    "Direction",
    "DragUpdate",
    "GesturePhase",
    "GestureResolution",
    "GestureState",
    "GestureTracker",
    "SwipeDirection",
]
