import logging
from typing import Any, Dict, Optional

from pydantic import TypeAdapter, ValidationError

from .complexity import estimate_complexity
from .config import Settings, load_settings
from .error_detector import detect_errors
from .errors import UpstreamError
from .fallback import build_fallback, build_greeting_response, is_greeting
from .learning_state import summarize_learning_state, update_learning_state
from .llm import call_llm
from .models import AnalysisRequest
from .prompts import SYSTEM_PROMPT, build_analysis_prompt
from .sanitizer import sanitize_response
from .validators import normalize_language, parse_int

logger = logging.getLogger(__name__)

_FLAG = TypeAdapter(bool)


def _flag(value: Any) -> bool:
    """Lax boolean: true/"true"/"1"/"yes" are on; anything unparseable is off."""
    try:
        return _FLAG.validate_python(value)
    except ValidationError:
        return False


def build_request(body: Dict[str, Any]) -> AnalysisRequest:
    """Turn a validated /analyze body into an ``AnalysisRequest``.

    A learning state that does not fit the expected shape is dropped rather
    than failing the whole request.
    """
    learning_state = body.get("learningState")
    if learning_state is not None and not isinstance(learning_state, dict):
        learning_state = None

    question = body.get("userQuestion")
    if not isinstance(question, str) or not question.strip():
        question = None

    request_data = {
        "code": body.get("code") or "",
        "language": normalize_language(body.get("language") or ""),
        "level": (body.get("level") or "").lower(),
        "hintLevel": parse_int(body.get("hintLevel")) or 1,
        "userQuestion": question,
        "includeComplexity": _flag(body.get("includeComplexity", False)),
    }
    try:
        return AnalysisRequest.model_validate({**request_data, "learningState": learning_state})
    except ValidationError:
        if learning_state is None:
            raise
        logger.warning("Ignoring malformed learningState")
        return AnalysisRequest.model_validate(request_data)


def _asked_for_hint(request: AnalysisRequest) -> bool:
    question = (request.user_question or "").lower()
    return request.hint_level > 1 or "hint" in question

def analyze_code(request: AnalysisRequest, settings: Optional[Settings] = None) -> Dict[str, Any]:
    settings = settings or load_settings()

    if is_greeting(request.user_question):
        return {**build_greeting_response(), "hintLevel": request.hint_level}

    source = (request.code or "").strip()
    detected = detect_errors(source, request.language) if source else []
    logger.info("Heuristics found %d potential issue(s)", len(detected))

    feedback: Optional[Dict[str, Any]] = None
    if settings.llm_enabled:
        prompt = build_analysis_prompt(
            code=source,
            language=request.language,
            level=request.level,
            hint_level=request.hint_level,
            detected_errors=detected,
            user_question=request.user_question,
            learning_state=request.learning_state,
        )
        try:
            feedback = sanitize_response(call_llm(SYSTEM_PROMPT, prompt, settings))
            logger.info("LLM response received")
        except UpstreamError as exc:
            logger.warning("LLM unavailable, falling back to heuristics: %s", exc)

    if feedback is None:
        feedback = build_fallback(request, detected, request.learning_state)

    # The heuristic findings stay the source of truth whichever path answered.
    result = {
        **feedback,
        "detectedErrors": [error.model_dump() for error in detected],
        "hintLevel": request.hint_level,
    }
    if request.include_complexity and source:
        result["complexity"] = estimate_complexity(source, request.language).model_dump()
    if request.learning_state is not None:
        updated = update_learning_state(
            request.learning_state,
            feedback,
            error_type=detected[0].type if detected else None,
            was_hint_request=_asked_for_hint(request),
        )
        result["learningState"] = updated.to_client()
        result["learningSummary"] = summarize_learning_state(updated)
    return result
