import os
from pathlib import Path
from dotenv import load_dotenv

_BACKEND_ROOT = Path(__file__).resolve().parents[1]
_BACKEND_ENV_PATH = _BACKEND_ROOT / ".env"
load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=False)


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default


def _env_flag(name: str, default: str = "false") -> bool:
    return str(os.getenv(name, default)).strip().lower() in {"1", "true", "yes", "on"}


INTERVIEW_API_BASE_URL = str(os.getenv("INTERVIEW_API_BASE_URL") or "http://localhost:8002").strip().rstrip("/")
INTERVIEW_API_TIMEOUT_SEC = max(1.0, _env_float("INTERVIEW_API_TIMEOUT_SEC", 30.0))

START_TIMEOUT_SEC = max(1, int(_env_float("START_TIMEOUT_SEC", 30)))
ANSWER_TIMEOUT_SEC = max(1, int(_env_float("ANSWER_TIMEOUT_SEC", 120)))
SPEECH_ERROR_GRACE_SEC = max(0.0, _env_float("SPEECH_ERROR_GRACE_SEC", 0.1))
SPEECH_UNSUPPORTED_GRACE_SEC = max(0.0, _env_float("SPEECH_UNSUPPORTED_GRACE_SEC", 2.0))
SPEECH_ACK_TIMEOUT_SEC = max(1.0, _env_float("SPEECH_ACK_TIMEOUT_SEC", 60.0))
TRANSCRIPTION_GRACE_SEC = max(0.0, _env_float("TRANSCRIPTION_GRACE_SEC", 5.0))

OPENAI_API_KEY = str(os.getenv("OPENAI_API_KEY") or "").strip()
TTS_MODEL = str(os.getenv("TTS_MODEL") or "tts-1").strip()
TTS_VOICE = str(os.getenv("TTS_VOICE") or "alloy").strip()
TRANSCRIPTION_MODEL = str(os.getenv("TRANSCRIPTION_MODEL") or "whisper-1").strip()

USE_FILE_INTERVIEW_STORE = _env_flag("USE_FILE_INTERVIEW_STORE")
INTERVIEW_STORE_PATH = Path(os.getenv("INTERVIEW_STORE_PATH") or (_BACKEND_ROOT / "data" / "interviews.json"))

QA_MODE = _env_flag("QA_MODE")
