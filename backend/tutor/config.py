import os
from dataclasses import dataclass, field
from typing import List, Optional

_PLACEHOLDER_KEYS = {"", "PASTE_YOUR_API_KEY_HERE", "your-api-key"}


def _env_key(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name, "").strip()
        if value not in _PLACEHOLDER_KEYS:
            return value
    return None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    llm_api_key: Optional[str] = None
    llm_base_url: str = "https://api.groq.com/openai/v1"
    llm_model: str = "llama-3.3-70b-versatile"
    llm_timeout_seconds: float = 5.0

    executor_url: str = "https://emkc.org/api/v2/piston"
    executor_timeout_seconds: float = 10.0

    ocr_api_url: str = "https://api.ocr.space/parse/image"
    ocr_api_key: Optional[str] = None
    ocr_timeout_seconds: float = 20.0

    max_code_chars: int = 20000
    max_image_bytes: int = 5 * 1024 * 1024
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])

    @property
    def llm_enabled(self) -> bool:
        return bool(self.llm_api_key)


def load_settings() -> Settings:
    """Read settings from the environment.

    Called per request so a changed environment (or a test's monkeypatch)
    takes effect without restarting the process.
    """
    allowed = os.getenv("ALLOWED_ORIGINS", "*")
    allow_list = [origin.strip() for origin in allowed.split(",") if origin.strip()]
    if not allow_list:
        allow_list = ["*"]

    return Settings(
        llm_api_key=_env_key("LLM_API_KEY", "GROQ_API_KEY"),
        llm_base_url=os.getenv("LLM_BASE_URL", Settings.llm_base_url).rstrip("/"),
        llm_model=os.getenv("LLM_MODEL") or os.getenv("AI_MODEL") or Settings.llm_model,
        llm_timeout_seconds=_env_float("LLM_TIMEOUT_SECONDS", Settings.llm_timeout_seconds),
        executor_url=os.getenv("EXECUTOR_URL", Settings.executor_url).rstrip("/"),
        executor_timeout_seconds=_env_float("EXECUTOR_TIMEOUT_SECONDS", Settings.executor_timeout_seconds),
        ocr_api_url=os.getenv("OCR_API_URL", Settings.ocr_api_url),
        ocr_api_key=_env_key("OCR_API_KEY"),
        ocr_timeout_seconds=_env_float("OCR_TIMEOUT_SECONDS", Settings.ocr_timeout_seconds),
        max_code_chars=_env_int("MAX_CODE_CHARS", Settings.max_code_chars),
        max_image_bytes=_env_int("MAX_IMAGE_BYTES", Settings.max_image_bytes),
        allowed_origins=allow_list,
    )
