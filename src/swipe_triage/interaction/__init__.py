"""Client-side swipe interaction: gestures, card stack and gateways."""

from .gateway import HttpStatusGateway, LocalStatusGateway
from .gesture import DragUpdate, GestureResolution, GestureState, GestureTracker
from .session import TriageSession
from .stack import CardStackController, CommitOutcome, LastAction

__all__ = [
    "CardStackController",
    "CommitOutcome",
    "DragUpdate",
    "GestureResolution",
    "GestureState",
    "GestureTracker",
    "HttpStatusGateway",
    "LastAction",
    "LocalStatusGateway",
    "TriageSession",
]
