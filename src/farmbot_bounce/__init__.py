"""Demo FarmBot client that bounces the Z axis."""

from .config import BounceSettings
from .service import BounceService, StartupPhase
from .session import FarmbotSession
from .state import ApplicationState, Direction

__all__ = [
    "ApplicationState",
    "BounceService",
    "BounceSettings",
    "Direction",
    "FarmbotSession",
    "StartupPhase",
]
