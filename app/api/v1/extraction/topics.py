import logging
from enum import Enum

logger = logging.getLogger(__name__)


class Destination(str, Enum):
    USERS = "users"
    USER_PROFILE = "user_profile"
    LIFE_EVENT = "life_event"
    SKIP = "skip"


# identity/origins carry user metadata, influences/values are atemporal
# profile attributes, the rest become timeline events.
TOPIC_ROUTING: dict[str, Destination] = {
    "identity": Destination.USERS,
    "origins": Destination.USERS,
    "family": Destination.LIFE_EVENT,
    "education": Destination.LIFE_EVENT,
    "career": Destination.LIFE_EVENT,
    "influences": Destination.USER_PROFILE,
    "values": Destination.USER_PROFILE,
}

# Composite answers ("first A, then B, now C") that the splitter breaks up.
NEEDS_SPLITTING = frozenset({"family", "education", "career"})

_TOPIC_CATEGORIES = {
    "family": "family",
    "education": "education",
    "career": "career",
}


def _normalize(topic: str | None) -> str:
    return (topic or "").strip().lower()


def get_destination(topic: str | None) -> Destination:
    destination = TOPIC_ROUTING.get(_normalize(topic))
    if destination is None:
        logger.warning(f"Unknown onboarding topic '{topic}', defaulting to skip")
        return Destination.SKIP
    return destination


def is_valid_topic(topic: str | None) -> bool:
    return _normalize(topic) in TOPIC_ROUTING


def needs_splitting(topic: str | None) -> bool:
    return _normalize(topic) in NEEDS_SPLITTING


def is_user_topic(topic: str | None) -> bool:
    return TOPIC_ROUTING.get(_normalize(topic)) is Destination.USERS


def is_profile_topic(topic: str | None) -> bool:
    return TOPIC_ROUTING.get(_normalize(topic)) is Destination.USER_PROFILE


def is_life_event_topic(topic: str | None) -> bool:
    return TOPIC_ROUTING.get(_normalize(topic)) is Destination.LIFE_EVENT


def get_category_for_topic(topic: str | None) -> str:
    return _TOPIC_CATEGORIES.get(_normalize(topic), "personal")
