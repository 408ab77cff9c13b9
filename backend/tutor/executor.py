"""Run student code through an external Piston-style sandbox.

Nothing is compiled or executed in this process. The sandbox reports
compile and run stages separately; they are folded back into the flat
``RunResult`` the editor expects.
"""
import logging
import time
from typing import Any, Dict

import requests

from .config import Settings
from .errors import UpstreamFailure, UpstreamTimeout
from .models import RunResult
from .validators import SUPPORTED_LANGUAGES, normalize_language

logger = logging.getLogger(__name__)

SERVICE = "executor"
TIMEOUT_MESSAGE = "Execution timed out (5 second limit)"
MAX_OUTPUT_SIZE = 10000
RUN_TIMEOUT_MS = 5000

SANDBOX_LANGUAGES = {
    "python": ("python", "main.py"),
    "c": ("c", "main.c"),
    "cpp": ("c++", "main.cpp"),
    "java": ("java", "Main.java"),
}


def _post(settings: Settings, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    try:
        r = requests.post(
            f"{settings.executor_url}{path}", json=payload, timeout=settings.executor_timeout_seconds
        )
    except requests.Timeout as exc:
        raise UpstreamTimeout(SERVICE, "sandbox did not answer in time") from exc
    except requests.RequestException as exc:
        raise UpstreamFailure(SERVICE, str(exc)) from exc
    if r.status_code != 200:
        raise UpstreamFailure(SERVICE, f"HTTP {r.status_code}")
    try:
        return r.json()
    except ValueError as exc:
        raise UpstreamFailure(SERVICE, "response body was not JSON") from exc


def _stage_failed(stage: Dict[str, Any]) -> bool:
    return bool(stage) and (stage.get("code") not in (0, None) or bool(stage.get("signal")))


def run_code(code: str, language: str, stdin: str, settings: Settings) -> RunResult:
    lang = normalize_language(language)
    if lang not in SANDBOX_LANGUAGES:
        return RunResult(success=False, error=f"Unsupported language: {language}", exit_code=-1)

    runtime, filename = SANDBOX_LANGUAGES[lang]
    payload = {
        "language": runtime,
        "version": "*",
        "files": [{"name": filename, "content": code}],
        "stdin": stdin or "",
        "run_timeout": RUN_TIMEOUT_MS,
    }

    started = time.monotonic()
    try:
        data = _post(settings, "/execute", payload)
    except UpstreamTimeout:
        elapsed = int((time.monotonic() - started) * 1000)
        return RunResult(success=False, error=TIMEOUT_MESSAGE, execution_time=elapsed, exit_code=-1, timed_out=True)
    elapsed = int((time.monotonic() - started) * 1000)

    compile_stage = data.get("compile") or {}
    if _stage_failed(compile_stage):
        stderr = compile_stage.get("stderr") or compile_stage.get("output") or ""
        return RunResult(
            success=False,
            error=f"Compilation Error:\n{stderr}"[:MAX_OUTPUT_SIZE],
            execution_time=elapsed,
            exit_code=compile_stage.get("code"),
        )

    run_stage = data.get("run") or {}
    if run_stage.get("signal") == "SIGKILL":
        return RunResult(
            success=False,
            output=(run_stage.get("stdout") or "")[:MAX_OUTPUT_SIZE],
            error=TIMEOUT_MESSAGE,
            execution_time=elapsed,
            exit_code=-1,
            timed_out=True,
        )

    exit_code = run_stage.get("code")
    return RunResult(
        success=not _stage_failed(run_stage),
        output=(run_stage.get("stdout") or "")[:MAX_OUTPUT_SIZE],
        error=(run_stage.get("stderr") or "")[:MAX_OUTPUT_SIZE],
        execution_time=elapsed,
        exit_code=exit_code if exit_code is not None else -1,
    )


def check_runtimes(settings: Settings) -> Dict[str, bool]:
    """Report which tutor languages the sandbox currently offers."""
    available = {lang: False for lang in SUPPORTED_LANGUAGES}
    try:
        r = requests.get(f"{settings.executor_url}/runtimes", timeout=settings.executor_timeout_seconds)
        r.raise_for_status()
        runtimes = r.json()
    except (requests.RequestException, ValueError) as exc:
        raise UpstreamFailure(SERVICE, f"could not list runtimes: {exc}") from exc

    offered = set()
    for runtime in runtimes if isinstance(runtimes, list) else []:
        offered.add(runtime.get("language"))
        offered.update(runtime.get("aliases") or [])
    for lang, (name, _) in SANDBOX_LANGUAGES.items():
        available[lang] = name in offered
    return available
