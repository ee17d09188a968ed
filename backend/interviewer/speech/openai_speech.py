import asyncio
import logging

from openai import AsyncOpenAI

from core.config import OPENAI_API_KEY, TRANSCRIPTION_MODEL, TTS_MODEL, TTS_VOICE
from interviewer.errors import SpeechError

logger = logging.getLogger("openai_speech")

_client: AsyncOpenAI | None = None


def get_client() -> AsyncOpenAI:
    """Built on first use so the service starts without an OpenAI key."""
    global _client
    if _client is None:
        if not OPENAI_API_KEY:
            raise SpeechError("OpenAI speech is not configured (OPENAI_API_KEY missing)")
        _client = AsyncOpenAI(api_key=OPENAI_API_KEY)
    return _client


async def synthesize_speech(text: str, timeout_sec: float = 20.0, retries: int = 1) -> bytes:
    """
    Renders a question prompt to audio (mp3) for the candidate's browser.
    Raises SpeechError once retries are exhausted.
    """
    if not str(text or "").strip():
        raise SpeechError("nothing to synthesize")

    client = get_client()
    last_error: Exception | None = None
    for attempt in range(max(1, retries + 1)):
        try:
            response = await asyncio.wait_for(
                client.audio.speech.create(
                    model=TTS_MODEL,
                    voice=TTS_VOICE,
                    input=text,
                ),
                timeout=timeout_sec,
            )
            return bytes(response.content)
        except asyncio.TimeoutError as exc:
            last_error = exc
            logger.warning("synthesize_speech timeout | attempt=%s", attempt + 1)
        except Exception as exc:
            last_error = exc
            logger.warning("synthesize_speech failure | attempt=%s err=%s", attempt + 1, exc)

        if attempt < retries:
            await asyncio.sleep(0.35 * (attempt + 1))

    raise SpeechError(f"speech synthesis unavailable: {last_error}") from last_error


async def transcribe_audio(
    audio: bytes,
    file_name: str = "answer.webm",
    timeout_sec: float = 30.0,
    retries: int = 1,
) -> str:
    if not audio:
        return ""

    client = get_client()
    last_error: Exception | None = None
    for attempt in range(max(1, retries + 1)):
        try:
            response = await asyncio.wait_for(
                client.audio.transcriptions.create(
                    model=TRANSCRIPTION_MODEL,
                    file=(file_name, audio),
                ),
                timeout=timeout_sec,
            )
            return str(getattr(response, "text", "") or "").strip()
        except asyncio.TimeoutError as exc:
            last_error = exc
            logger.warning("transcribe_audio timeout | attempt=%s", attempt + 1)
        except Exception as exc:
            last_error = exc
            logger.warning("transcribe_audio failure | attempt=%s err=%s", attempt + 1, exc)

        if attempt < retries:
            await asyncio.sleep(0.35 * (attempt + 1))

    raise SpeechError(f"transcription unavailable: {last_error}") from last_error
