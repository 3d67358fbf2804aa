from enum import Enum


class AITask(Enum):
    EVENT_SPLITTING = "event_splitting"
    PROFILE_EXTRACTION = "profile_extraction"
