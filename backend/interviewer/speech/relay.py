"""Speech channels whose device lives in the candidate's browser.

The browser plays the prompt and transcribes the answer itself; these
adapters turn its HTTP acknowledgements into the awaitable channel calls the
session controller expects.
"""
from __future__ import annotations

import asyncio
import logging

from core.config import SPEECH_ACK_TIMEOUT_SEC
from interviewer.errors import SpeechError

logger = logging.getLogger("speech_relay")


class ClientSpeechOutput:
    def __init__(self, ack_timeout_sec: float = SPEECH_ACK_TIMEOUT_SEC):
        self.ack_timeout_sec = float(ack_timeout_sec)
        self.prompt_id = 0
        self.pending_text: str | None = None
        self._ack: asyncio.Future | None = None

    @property
    def speaking(self) -> bool:
        return self._ack is not None and not self._ack.done()

    async def speak(self, text: str) -> None:
        await self.cancel()
        ack = asyncio.get_running_loop().create_future()
        self._ack = ack
        self.prompt_id += 1
        self.pending_text = text
        try:
            await asyncio.wait_for(ack, timeout=self.ack_timeout_sec)
        except asyncio.TimeoutError as exc:
            logger.warning("speech prompt %s never acknowledged", self.prompt_id)
            raise SpeechError("speech playback was not acknowledged") from exc
        finally:
            if self._ack is ack:
                self._ack = None
                self.pending_text = None

    def acknowledge(self, error: str | None = None) -> bool:
        ack = self._ack
        if ack is None or ack.done():
            return False
        if error:
            ack.set_exception(SpeechError(error))
        else:
            ack.set_result(None)
        return True

    async def cancel(self) -> None:
        ack = self._ack
        if ack is not None and not ack.done():
            ack.cancel()
        self._ack = None
        self.pending_text = None


class ClientTranscriptionInput:
    """Waits for the browser's final transcript.

    The recording window itself is enforced by the session controller's
    countdown; ``max_duration_sec`` is informational here.
    """

    def __init__(self):
        self.max_duration_sec: float | None = None
        self._partial = ""
        self._result: asyncio.Future | None = None

    @property
    def listening(self) -> bool:
        return self._result is not None and not self._result.done()

    async def transcribe(self, max_duration_sec: float) -> str:
        await self.cancel()
        self.max_duration_sec = float(max_duration_sec)
        self._partial = ""
        result = asyncio.get_running_loop().create_future()
        self._result = result
        try:
            return str(await result or "")
        finally:
            if self._result is result:
                self._result = None

    def update_partial(self, text: str) -> None:
        self._partial = str(text or "")

    def partial_text(self) -> str:
        return self._partial

    def submit(self, text: str) -> bool:
        result = self._result
        if result is None or result.done():
            return False
        result.set_result(str(text or ""))
        return True

    async def stop(self) -> None:
        self.submit(self._partial)

    async def cancel(self) -> None:
        result = self._result
        if result is not None and not result.done():
            result.cancel()
        self._result = None
