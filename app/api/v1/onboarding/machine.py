"""Path/step state machine of the alternate onboarding questionnaire.

Every function here is pure: drafts and answer values are never mutated in
place, transitions return new objects.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional, assert_never
from pydantic import ValidationError
from app.api.v1.onboarding.steps import (
    ALT_ONBOARDING_VERSION,
    AnswerValue,
    DecisionStep,
    DemographicsStep,
    InfoStep,
    MultiStep,
    Path,
    RegistrationSource,
    SingleStep,
    Stage,
    Step,
    NEUTRAL_RETURN_ANCHORS,
    get_first_step,
    get_next_step,
    get_path_from_entry_answer,
    get_registration_anchor_step_id,
    get_step_by_id,
    get_step_ids,
    is_valid_path,
)
from app.schemas.onboarding import EntrySelection, OnboardingDraft

logger = logging.getLogger(__name__)


class InvalidTransitionError(ValueError):
    """Raised when a draft cannot make the requested move."""


@dataclass(frozen=True)
class NextLocation:
    stage: Stage
    step_id: Optional[str] = None
    registration_source: Optional[RegistrationSource] = None


def _has_selected_value(value: Any) -> bool:
    if isinstance(value, str):
        return len(value.strip()) > 0
    if isinstance(value, list):
        return len(value) > 0
    return False


def is_step_response_valid(step: Step, value: Optional[AnswerValue]) -> bool:
    match step:
        case InfoStep():
            return True
        case SingleStep() | DecisionStep():
            return isinstance(value, str) and len(value.strip()) > 0
        case MultiStep():
            return isinstance(value, list) and len(value) > 0
        case DemographicsStep():
            if not isinstance(value, dict):
                return False
            for field in step.fields:
                field_value = value.get(field.id)
                if field.multiple:
                    if not (isinstance(field_value, list) and len(field_value) > 0):
                        return False
                elif not (isinstance(field_value, str) and len(field_value.strip()) > 0):
                    return False
            return True
        case _:
            assert_never(step)


def resolve_next_location(path: Path, step: Step, value: Optional[AnswerValue]) -> NextLocation:
    selection = value if isinstance(value, str) else ""

    if path == "A" and step.id == "A4":
        if selection == "start_storytelling":
            return NextLocation(stage="neutral")
        return NextLocation(stage="registration", registration_source="path")

    if path == "B" and step.id == "B4" and selection == "jump_to_neutral":
        return NextLocation(stage="neutral")

    if (path == "B" and step.id == "B5") or (path == "C" and step.id == "C2"):
        return NextLocation(stage="registration", registration_source="path")

    next_step = get_next_step(path, step.id)
    if next_step is not None:
        return NextLocation(stage="path", step_id=next_step.id)

    return NextLocation(stage="registration", registration_source="path")


def resolve_back_step_id(path: Path, current_step_id: str) -> Optional[str]:
    ids = get_step_ids(path)
    if current_step_id not in ids:
        return None
    index = ids.index(current_step_id)
    if index == 0:
        return None
    return ids[index - 1]


def get_neutral_return_step_id(path: Path) -> str:
    return NEUTRAL_RETURN_ANCHORS[path]


def get_registration_back_target(path: Path, source: Optional[RegistrationSource]) -> NextLocation:
    if source == "neutral":
        return NextLocation(stage="neutral")
    return NextLocation(stage="path", step_id=get_registration_anchor_step_id(path))


def toggle_multi_value(existing: Optional[AnswerValue], option_id: str) -> list[str]:
    current = list(existing) if isinstance(existing, list) else []
    if option_id in current:
        return [value for value in current if value != option_id]
    return [*current, option_id]


def update_demographic_value(
    existing: Optional[AnswerValue], field_id: str, next_value: str | list[str]
) -> dict[str, str | list[str]]:
    current = existing if isinstance(existing, dict) else {}
    return {**current, field_id: next_value}


def has_answered_selection(value: Optional[AnswerValue]) -> bool:
    if isinstance(value, dict):
        return any(_has_selected_value(entry) for entry in value.values())
    return _has_selected_value(value)


# Draft transitions

def create_empty_draft() -> OnboardingDraft:
    return OnboardingDraft()


def start_draft(entry_answer_id: str) -> OnboardingDraft:
    path = get_path_from_entry_answer(entry_answer_id)
    if path is None:
        raise InvalidTransitionError(f"Unknown entry answer: {entry_answer_id}")
    return OnboardingDraft(
        stage="path",
        entry=EntrySelection(answer_id=entry_answer_id, path=path),
        path=path,
        current_step_id=get_first_step(path).id,
    )


def _require_path_step(draft: OnboardingDraft) -> Step:
    if draft.stage != "path" or draft.path is None:
        raise InvalidTransitionError(f"Draft is not on a path step (stage={draft.stage})")
    step = get_step_by_id(draft.path, draft.current_step_id)
    if step is None:
        raise InvalidTransitionError(f"Unknown step {draft.current_step_id} for path {draft.path}")
    return step


def advance_draft(draft: OnboardingDraft, value: Optional[AnswerValue]) -> OnboardingDraft:
    step = _require_path_step(draft)
    if not is_step_response_valid(step, value):
        raise InvalidTransitionError(f"Answer for step {step.id} is incomplete")

    responses = dict(draft.responses)
    if value is not None:
        responses[step.id] = value

    location = resolve_next_location(draft.path, step, value)
    logger.debug(f"Draft advanced from {step.id} to {location.stage}/{location.step_id}")
    return draft.model_copy(update={
        "responses": responses,
        "stage": location.stage,
        "current_step_id": location.step_id if location.stage == "path" else step.id,
        "route_to_registration_source": location.registration_source,
        "neutral_block_visited": draft.neutral_block_visited or location.stage == "neutral",
    })


def retreat_draft(draft: OnboardingDraft) -> OnboardingDraft:
    if draft.path is None:
        raise InvalidTransitionError("Draft has no path")

    if draft.stage == "path":
        previous = resolve_back_step_id(draft.path, draft.current_step_id or "")
        if previous is None:
            return create_empty_draft()
        return draft.model_copy(update={"current_step_id": previous})

    if draft.stage == "neutral":
        return draft.model_copy(update={
            "stage": "path",
            "current_step_id": get_neutral_return_step_id(draft.path),
        })

    if draft.stage == "registration":
        target = get_registration_back_target(draft.path, draft.route_to_registration_source)
        return draft.model_copy(update={
            "stage": target.stage,
            "current_step_id": target.step_id or draft.current_step_id,
            "route_to_registration_source": None,
        })

    raise InvalidTransitionError(f"Cannot go back from stage {draft.stage}")


def leave_neutral(draft: OnboardingDraft, target: str) -> OnboardingDraft:
    if draft.stage != "neutral" or draft.path is None:
        raise InvalidTransitionError(f"Draft is not in the neutral block (stage={draft.stage})")
    if target == "path":
        return draft.model_copy(update={
            "stage": "path",
            "current_step_id": get_neutral_return_step_id(draft.path),
        })
    if target == "registration":
        return draft.model_copy(update={
            "stage": "registration",
            "route_to_registration_source": "neutral",
        })
    raise InvalidTransitionError(f"Unknown neutral exit: {target}")


def sanitize_draft(raw: Any) -> OnboardingDraft:
    """Validate a stored draft, falling back to a fresh one when it is stale or broken."""
    if not isinstance(raw, dict) or raw.get("version") != ALT_ONBOARDING_VERSION:
        return create_empty_draft()
    try:
        draft = OnboardingDraft.model_validate(raw)
    except ValidationError:
        logger.info("Discarding stored onboarding draft that no longer validates")
        return create_empty_draft()

    if not is_valid_path(draft.path):
        return create_empty_draft()
    if draft.entry is None or draft.entry.path != draft.path:
        return create_empty_draft()

    if draft.stage == "path":
        if get_step_by_id(draft.path, draft.current_step_id) is None:
            return create_empty_draft()
    elif draft.stage in ("neutral", "registration") and draft.current_step_id:
        if get_step_by_id(draft.path, draft.current_step_id) is None:
            return create_empty_draft()

    return draft
