"""Internal constants shared across the library."""

USER_AGENT = "pygeorec/0.1"
DEFAULT_API_BASE_URL = "http://127.0.0.1:8787/api/"
DEFAULT_GEOCODER_URL = "https://nominatim.openstreetmap.org/reverse"

# Mean radius of the Earth in km.
EARTH_RADIUS_KM = 6378.137

# ------------------------------------------------------------------
# Game routes and signal markers
# ------------------------------------------------------------------

GAME_ROUTE_PREFIXES: tuple[str, ...] = (
    "/challenge/",
    "/results/",
    "/game/",
    "/battle-royale/",
    "/duels/",
    "/team-duels/",
    "/bullseye/",
    "/live-challenge/",
)

GAMES_API_PATH = "/api/v3/games"
CHALLENGES_API_PATH = "/api/v3/challenges"
STREAK_TOKEN = "streak"

NEXT_DATA_ELEMENT_ID = "__NEXT_DATA__"
RESULTS_ROOT_CLASS_PREFIX = "result-layout_root"
FINAL_RESULT_CLASS_PREFIXES: tuple[str, ...] = ("standard-final-result", "result-overlay")
PANORAMA_CONTROLS_QA = "panorama-compass"
PANORAMA_CONTROLS_CLASS_PREFIX = "panorama-compass"

# ------------------------------------------------------------------
# Teleport distance ladder (meters)
# ------------------------------------------------------------------

DISTANCE_LADDER: tuple[int, ...] = (25, 50, 75, 100, 150, 200, 250, 500, 1000)
PANORAMA_SEARCH_RADIUS_M = 1000

DEFAULT_KEY_BINDINGS: dict[str, str] = {
    "ctrl+arrowup": "forward",
    "ctrl+arrowdown": "backward",
    "ctrl+arrowright": "increase",
    "ctrl+arrowleft": "decrease",
    "ctrl+b": "bookmark",
}


def is_game_path(path: str) -> bool:
    """Return ``True`` when *path* is one of the game routes."""
    return path.startswith(GAME_ROUTE_PREFIXES)
