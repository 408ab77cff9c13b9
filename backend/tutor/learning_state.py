"""Pure transitions over the client-held learning state.

The browser owns the record and sends it with each request; these helpers
take a state and return a new one, so the same rules can run on either side.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from .models import MAX_ERROR_HISTORY, MAX_PREVIOUS_EXPLANATIONS, LearningState

STRUGGLING_HINT_THRESHOLD = 5
MASTERY_EXPLANATION_COUNT = 3
EXPLANATION_SUMMARY_CHARS = 100


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_learning_state() -> LearningState:
    return LearningState(session_start_time=_now())


def _understanding(state: LearningState) -> str:
    if state.hints_given_this_session > STRUGGLING_HINT_THRESHOLD or state.same_error_repeated:
        return "struggling"
    if len(state.mastered_concepts) > len(state.struggling_concepts):
        return "confident"
    return "learning"


def update_learning_state(
    state: LearningState,
    response: Optional[Mapping[str, Any]] = None,
    error_type: Optional[str] = None,
    was_hint_request: bool = False,
) -> LearningState:
    """Fold one tutor response into the state and return the new state."""
    updated = state.model_copy(deep=True)
    response = response or {}

    if was_hint_request:
        updated.hints_given_this_session += 1

    if error_type:
        updated.error_history.append(error_type)
        updated.error_history = updated.error_history[-MAX_ERROR_HISTORY:]
        if updated.last_error_type == error_type:
            updated.same_error_repeated = True
            if error_type not in updated.struggling_concepts:
                updated.struggling_concepts.append(error_type)
        else:
            updated.same_error_repeated = False
        updated.last_error_type = error_type

    concepts = response.get("conceptsTaught")
    if isinstance(concepts, list):
        for concept in concepts:
            if concept not in updated.struggling_concepts:
                continue
            # Seen explained often enough: treat as moving towards mastery.
            mentions = sum(
                1 for text in updated.previous_explanations if str(concept).lower() in text.lower()
            )
            if mentions >= MASTERY_EXPLANATION_COUNT:
                updated.struggling_concepts.remove(concept)
                if concept not in updated.mastered_concepts:
                    updated.mastered_concepts.append(concept)

    reply = response.get("reply")
    if isinstance(reply, str) and reply:
        updated.previous_explanations.append(reply[:EXPLANATION_SUMMARY_CHARS] + "...")
        updated.previous_explanations = updated.previous_explanations[-MAX_PREVIOUS_EXPLANATIONS:]

    updated.current_understanding = _understanding(updated)
    return updated


def reset_session_state(state: LearningState) -> LearningState:
    """Clear per-session fields; concept lists survive across sessions."""
    return state.model_copy(
        update={
            "hints_given_this_session": 0,
            "same_error_repeated": False,
            "previous_explanations": [],
            "last_error_type": None,
            "error_history": [],
            "session_start_time": _now(),
        },
        deep=True,
    )


def mark_concept_mastered(state: LearningState, concept: str) -> LearningState:
    updated = state.model_copy(deep=True)
    if concept not in updated.mastered_concepts:
        updated.mastered_concepts.append(concept)
    if concept in updated.struggling_concepts:
        updated.struggling_concepts.remove(concept)
    return updated


def summarize_learning_state(state: LearningState) -> Dict[str, Any]:
    return {
        "understanding": state.current_understanding,
        "hintsThisSession": state.hints_given_this_session,
        "strugglingCount": len(state.struggling_concepts),
        "masteredCount": len(state.mastered_concepts),
        "topStruggle": state.struggling_concepts[0] if state.struggling_concepts else None,
    }
