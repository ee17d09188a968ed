from __future__ import annotations

from typing import Protocol


class SpeechOutput(Protocol):
    async def speak(self, text: str) -> None:
        """Return once playback finished; raise ``SpeechError`` if it failed."""
        ...

    async def cancel(self) -> None:
        ...


class SpeechInput(Protocol):
    async def transcribe(self, max_duration_sec: float) -> str:
        """Return the final transcription, after a manual stop or the window closing."""
        ...

    async def stop(self) -> None:
        ...

    async def cancel(self) -> None:
        ...

    def partial_text(self) -> str:
        ...
