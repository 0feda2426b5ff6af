"""Internal constants shared across the library."""

USER_AGENT = "roadwatch/1.0 (+road status monitor)"

#: King County road alert feed. Titles start with "Open", "Closed" or "Restricted".
DEFAULT_FEED_URL = "https://gismaps.kingcounty.gov/roadalert/rss.aspx"
DEFAULT_ROAD = "124th"
DEFAULT_LOCATION = "the intersection of 124th and SR203/Novelty Hill Rd"
DEFAULT_TIME_ZONE = "America/Los_Angeles"

#: Only this title prefix flips a feed mention to closed.
CLOSED_PREFIX = "Closed"

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"

DEFAULT_ANALYSIS_TTL_S = 15 * 60
DEFAULT_CAMERA_TIMEOUT_S = 10.0
DEFAULT_FEED_TIMEOUT_S = 30.0
DEFAULT_MODEL_TIMEOUT_S = 60.0

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"

#: Marks a status detail that came from camera analysis rather than the feed.
ANALYSIS_DETAIL_PREFIX = "✨ Analysis: "


def build_analysis_prompt(road: str, location: str) -> str:
    """Instruction sent ahead of the camera images."""
    return (
        f"Analyze these traffic camera images of {location}. "
        f"Determine if {road} appears to be closed. "
        "Look for 'Road Closed' signs, traffic cones, or barricades. Ignore normal "
        "traffic. If the road is closed, reply with 'CLOSED: <reason>'. If the road "
        "is open, reply with 'OPEN: <reason>'. Keep the reason short (1 sentence)."
    )
