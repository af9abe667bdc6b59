"""pygeorec - Record positions visited in GeoGuessr panorama games."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pygeorec")
except PackageNotFoundError:
    __version__ = "0+local"
from pygeorec.bus import ANY, UNHANDLED, EventBus, EventEnvelope
from pygeorec.client import GeoRecorder
from pygeorec.config import RecorderConfig
from pygeorec.exceptions import (
    GeoRecApiError,
    GeoRecConfigError,
    GeoRecError,
    GeoRecTransportError,
    SignalParseError,
)
from pygeorec.geodesy import bounding_box_contains, destination_point
from pygeorec.geofence import Geofence
from pygeorec.models import (
    Coordinate,
    GameSession,
    GameState,
    GameSummary,
    PanoramaLocation,
    Pose,
    PositionRecord,
    RecordType,
)
from pygeorec.navigator import DistanceLadder, LookupPreference, Navigator
from pygeorec.recorder import Recorder
from pygeorec.state.events import EventName, PoseEvent, RoundEvent, SignalSource
from pygeorec.state.policy import RoundPhase
from pygeorec.state.reconciler import SessionSignalReconciler
from pygeorec.watcher import PoseSource, PositionWatcher

__all__ = [
    "__version__",
    "ANY",
    "Coordinate",
    "DistanceLadder",
    "EventBus",
    "EventEnvelope",
    "EventName",
    "GameSession",
    "GameState",
    "GameSummary",
    "GeoRecApiError",
    "GeoRecConfigError",
    "GeoRecError",
    "GeoRecTransportError",
    "GeoRecorder",
    "Geofence",
    "LookupPreference",
    "Navigator",
    "PanoramaLocation",
    "Pose",
    "PoseEvent",
    "PoseSource",
    "PositionRecord",
    "PositionWatcher",
    "RecordType",
    "Recorder",
    "RecorderConfig",
    "RoundEvent",
    "RoundPhase",
    "SessionSignalReconciler",
    "SignalParseError",
    "SignalSource",
    "UNHANDLED",
    "bounding_box_contains",
    "destination_point",
]
