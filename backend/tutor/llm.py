import json
import logging
import re
import time
from typing import Any, Dict, List, Optional

import requests

from .config import Settings
from .errors import UpstreamFailure, UpstreamTimeout

logger = logging.getLogger(__name__)

SERVICE = "llm"


def _extract_json(payload_text: str) -> Optional[Dict[str, Any]]:
    if not payload_text:
        return None
    # The model may wrap JSON in a markdown fence even in json mode.
    fence_match = re.search(r"```json(.*?)```", payload_text, re.DOTALL | re.IGNORECASE)
    candidate = fence_match.group(1).strip() if fence_match else payload_text.strip()
    start = candidate.find("{")
    end = candidate.rfind("}")
    if start == -1 or end == -1:
        return None
    candidate = candidate[start : end + 1]
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _message_content(response_data: Dict[str, Any]) -> str:
    choices = response_data.get("choices") or []
    if not choices:
        raise UpstreamFailure(SERVICE, "response had no choices")
    content = (choices[0].get("message") or {}).get("content")
    if not content:
        raise UpstreamFailure(SERVICE, "response had no message content")
    return str(content)


def _read_body(r: requests.Response, deadline: float, limit: float) -> bytes:
    # Single-byte reads return as soon as data arrives, so a slow drip cannot
    # hold a read past the deadline.
    chunks: List[bytes] = []
    try:
        for chunk in r.iter_content(chunk_size=1):
            if time.monotonic() > deadline:
                raise UpstreamTimeout(SERVICE, f"no complete answer within {limit}s")
            chunks.append(chunk)
    except requests.RequestException as exc:
        raise UpstreamFailure(SERVICE, str(exc)) from exc
    finally:
        r.close()
    return b"".join(chunks)


def call_llm(system_prompt: str, prompt: str, settings: Settings) -> Dict[str, Any]:
    """Ask an OpenAI-compatible chat endpoint for a JSON tutoring reply.

    ``llm_timeout_seconds`` is a deadline for the whole call, body included:
    ``requests`` only bounds the connect and each single read, so the body is
    streamed and the connection is closed once the deadline passes. Expiry
    raises ``UpstreamTimeout``; every other problem (transport error, non-200
    status, unparseable body) surfaces as ``UpstreamFailure``.
    """
    if not settings.llm_enabled:
        raise UpstreamFailure(SERVICE, "no API key configured")

    url = f"{settings.llm_base_url}/chat/completions"
    payload = {
        "model": settings.llm_model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": prompt},
        ],
        "temperature": 0.7,
        "max_tokens": 800,
        "response_format": {"type": "json_object"},
    }
    headers = {"Authorization": f"Bearer {settings.llm_api_key}"}
    limit = settings.llm_timeout_seconds

    logger.debug("Calling %s with model %s", url, settings.llm_model)
    deadline = time.monotonic() + limit
    try:
        r = requests.post(url, json=payload, headers=headers, timeout=limit, stream=True)
    except requests.Timeout as exc:
        raise UpstreamTimeout(SERVICE, f"no answer within {limit}s") from exc
    except requests.RequestException as exc:
        raise UpstreamFailure(SERVICE, str(exc)) from exc

    if r.status_code != 200:
        r.close()
        raise UpstreamFailure(SERVICE, f"HTTP {r.status_code}")

    body = _read_body(r, deadline, limit)
    try:
        response_data = json.loads(body.decode("utf-8"))
    except ValueError as exc:
        raise UpstreamFailure(SERVICE, "response body was not JSON") from exc
    if not isinstance(response_data, dict):
        raise UpstreamFailure(SERVICE, "response body was not a JSON object")

    parsed = _extract_json(_message_content(response_data))
    if parsed is None:
        raise UpstreamFailure(SERVICE, "model reply was not a JSON object")
    return parsed
