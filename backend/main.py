import logging
import os
import time
from datetime import datetime, timezone
from typing import Any, Optional

from dotenv import load_dotenv
from fastapi import Body, FastAPI, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from tutor.analyzer import analyze_code, build_request
from tutor.config import load_settings
from tutor.errors import UpstreamError
from tutor.executor import check_runtimes, run_code
from tutor.image_text import extract_text_from_image, looks_like_problem
from tutor.learning_state import (
    mark_concept_mastered,
    new_learning_state,
    reset_session_state,
    summarize_learning_state,
)
from tutor.models import LearningState, LearningStateRequest, RunRequest
from tutor.validators import SUPPORTED_LANGUAGES, SUPPORTED_LEVELS, normalize_language, validate_analyze_request

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)-8s %(name)s | %(message)s",
)
logging.getLogger("urllib3").setLevel(logging.WARNING)
logger = logging.getLogger("tutor.api")

UNREADABLE_IMAGE_MESSAGE = (
    "I couldn't read the content from this image clearly.\n\n"
    "**Tips for better results:**\n"
    "• Crop the screenshot to show only the problem or code\n"
    "• Make sure the text is clear and not blurry\n"
    "• Avoid capturing browser tabs, buttons, or menus\n\n"
    "Try uploading a cleaner screenshot!"
)
PROBLEM_IMAGE_MESSAGE = (
    "Got it! I can see the problem from your screenshot.\n\n"
    "**How can I help?**\n"
    "• Explain what the problem is asking\n"
    "• Give hints on how to approach it\n"
    "• Help you understand the examples\n\n"
    "Just ask!"
)


app = FastAPI(title="Learning-First Coding Tutor API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=load_settings().allowed_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


@app.exception_handler(RequestValidationError)
async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()]
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={
                "error": "Endpoint not found",
                "hint": "Try POST /analyze with code, language, level, and hintLevel",
            },
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(Exception)
async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Something went wrong on our end",
            "hint": "I ran into trouble, try again in a moment",
        },
    )


@app.get("/")
def index() -> dict:
    return {
        "service": "Learning-First Coding Tutor API",
        "status": "running",
        "endpoints": {
            "health": "GET /health",
            "analyze": "POST /analyze",
            "run": "POST /run",
            "compilers": "GET /run/compilers",
            "analyze-image": "POST /analyze-image",
            "learning-state": "POST /learning-state/new | /reset | /mastered",
        },
        "note": "Use POST endpoints with JSON body",
    }


@app.get("/health")
def healthcheck() -> dict:
    return {
        "status": "ok",
        "message": "Learning Tutor Backend is running!",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.post("/analyze")
def analyze(payload: Any = Body(default=None)) -> JSONResponse:
    validation = validate_analyze_request(payload)
    if not validation["valid"]:
        return JSONResponse(status_code=400, content={"error": "Invalid request", "details": validation["errors"]})

    settings = load_settings()
    if len(payload["code"]) > settings.max_code_chars:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid request",
                "details": [f"code too large. Max allowed characters is {settings.max_code_chars}"],
            },
        )

    try:
        request = build_request(payload)
        logger.info(
            "Analyze: language=%s level=%s hint=%d code=%d chars question=%s",
            request.language,
            request.level,
            request.hint_level,
            len(request.code),
            bool(request.user_question),
        )
        result = analyze_code(request, settings)
    except Exception:
        logger.exception("Analysis failed")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to analyze code", "hint": "Please try again in a moment"},
        )
    return JSONResponse(content=result)


_RUN_FIELD_ERRORS = {"code": "Code is required", "language": "Language is required", "input": "Input must be text"}


@app.post("/run")
def run(payload: Any = Body(default=None)) -> JSONResponse:
    try:
        request = RunRequest.model_validate(payload if isinstance(payload, dict) else {})
    except ValidationError as exc:
        field = str(exc.errors()[0]["loc"][0])
        return JSONResponse(
            status_code=400, content={"success": False, "error": _RUN_FIELD_ERRORS.get(field, "Invalid request")}
        )

    if not request.code:
        return JSONResponse(status_code=400, content={"success": False, "error": "Code is required"})
    if not request.language:
        return JSONResponse(status_code=400, content={"success": False, "error": "Language is required"})
    if normalize_language(request.language) not in SUPPORTED_LANGUAGES:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": f"Unsupported language. Supported: {', '.join(SUPPORTED_LANGUAGES)}"},
        )

    logger.info("Run: %s code (%d chars)", request.language, len(request.code))
    try:
        result = run_code(request.code, request.language, request.input or "", load_settings())
    except UpstreamError as exc:
        logger.warning("Sandbox unavailable: %s", exc)
        return JSONResponse(
            status_code=502,
            content={
                "success": False,
                "output": "",
                "error": "The code runner is not reachable right now. Please try again in a moment.",
                "executionTime": 0,
            },
        )
    logger.info("Run finished in %d ms, success=%s", result.execution_time, result.success)
    return JSONResponse(content=result.model_dump(by_alias=True, exclude_none=True))


@app.get("/run/compilers")
def compilers() -> JSONResponse:
    try:
        available = check_runtimes(load_settings())
    except UpstreamError as exc:
        logger.warning("Sandbox runtime listing failed: %s", exc)
        return JSONResponse(status_code=502, content={"error": "Failed to check compilers"})
    return JSONResponse(content={"available": available, "message": "Compiler availability check complete"})


def _state_response(state: LearningState) -> dict:
    return {"learningState": state.to_client(), "summary": summarize_learning_state(state)}


@app.post("/learning-state/new")
def learning_state_new() -> dict:
    return _state_response(new_learning_state())


@app.post("/learning-state/reset")
def learning_state_reset(body: LearningStateRequest) -> dict:
    return _state_response(reset_session_state(body.learning_state))


@app.post("/learning-state/mastered")
def learning_state_mastered(body: LearningStateRequest) -> JSONResponse:
    if not body.concept or not body.concept.strip():
        return JSONResponse(status_code=400, content={"error": "Invalid request", "details": ["concept is required"]})
    return JSONResponse(content=_state_response(mark_concept_mastered(body.learning_state, body.concept.strip())))


@app.post("/analyze-image")
async def analyze_image(
    image: Optional[UploadFile] = File(default=None),
    level: str = Form(default="moderate"),
) -> JSONResponse:
    if image is None:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Image file is required",
                "extractedText": "",
                "message": "Please select an image file to upload.",
            },
        )

    settings = load_settings()
    data = await image.read()
    if len(data) > settings.max_image_bytes:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Image file is too large",
                "extractedText": "",
                "message": "Please upload an image smaller than 5 MB.",
            },
        )
    level = level.lower() if level and level.lower() in SUPPORTED_LEVELS else "moderate"
    logger.info("Analyze image: %s (%d bytes)", image.filename, len(data))

    try:
        extracted = await run_in_threadpool(extract_text_from_image, data, image.filename or "", settings)
    except UpstreamError as exc:
        logger.warning("OCR unavailable: %s", exc)
        return JSONResponse(content={"extractedText": "", "isCode": False, "message": UNREADABLE_IMAGE_MESSAGE})

    if len(extracted.text) < 10:
        return JSONResponse(content={"extractedText": "", "isCode": False, "message": UNREADABLE_IMAGE_MESSAGE})

    if extracted.is_code:
        language = extracted.language if extracted.language in SUPPORTED_LANGUAGES else "python"
        request = build_request(
            {
                "code": extracted.text,
                "language": language,
                "level": level,
                "hintLevel": 1,
                "userQuestion": (
                    "Please analyze this code from the screenshot. Explain what it does, identify any "
                    "errors or bugs, and provide guidance on fixing issues."
                ),
            }
        )
        analysis = await run_in_threadpool(analyze_code, request, settings)
        return JSONResponse(
            content={
                "extractedText": extracted.text,
                "isCode": True,
                "language": extracted.language,
                "message": analysis.get("reply") or "I found code in your image! Here's my analysis...",
                "analysis": analysis,
            }
        )

    if looks_like_problem(extracted.text):
        request = build_request(
            {
                "code": "",
                "language": "python",
                "level": level,
                "hintLevel": 1,
                "userQuestion": (
                    "I uploaded a problem screenshot. Here's the extracted text:\n\n"
                    f'"{extracted.text}"\n\n'
                    "Please briefly summarize what this problem is asking (2-3 sentences max), "
                    "then ask what kind of help I need."
                ),
            }
        )
        analysis = await run_in_threadpool(analyze_code, request, settings)
        return JSONResponse(
            content={
                "extractedText": extracted.text,
                "isCode": False,
                "message": analysis.get("reply") or "Got it! I can see the problem. What would you like help with?",
                "analysis": analysis,
            }
        )

    return JSONResponse(content={"extractedText": extracted.text, "isCode": False, "message": PROBLEM_IMAGE_MESSAGE})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "3001")))
