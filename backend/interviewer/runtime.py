from __future__ import annotations

from interviewer.interview.session_controller import InterviewSessionController, InterviewTimings
from interviewer.notifications import BufferedNotifier
from interviewer.resume.profile import CandidateProfile
from interviewer.services.interview_api import InterviewApiClient
from interviewer.speech.relay import ClientSpeechOutput, ClientTranscriptionInput
from interviewer.storage.interview_store import InterviewStore, build_interview_store


class InterviewRuntime:
    """The one candidate profile and live interview served by this process."""

    def __init__(
        self,
        api_client: InterviewApiClient | None = None,
        store: InterviewStore | None = None,
        timings: InterviewTimings | None = None,
    ):
        self.api_client = api_client or InterviewApiClient()
        self.store = store if store is not None else build_interview_store()
        self.notifier = BufferedNotifier()
        self.speech_output = ClientSpeechOutput()
        self.speech_input = ClientTranscriptionInput()
        self.profile: CandidateProfile | None = None
        self.controller = InterviewSessionController(
            question_service=self.api_client,
            speech_output=self.speech_output,
            speech_input=self.speech_input,
            store=self.store,
            notifier=self.notifier,
            timings=timings,
        )

    async def set_profile(self, profile: CandidateProfile | None):
        await self.controller.clear()
        self.notifier.clear()
        self.profile = profile

    def state(self, since: float = 0.0) -> dict:
        payload = self.controller.snapshot()
        payload["speech"] = {
            "prompt_id": self.speech_output.prompt_id,
            "pending_text": self.speech_output.pending_text,
            "speaking": self.speech_output.speaking,
        }
        payload["listening"] = self.speech_input.listening
        payload["has_profile"] = self.profile is not None
        payload["notifications"] = self.notifier.recent(since=since)
        return payload

    async def shutdown(self):
        await self.controller.stop()


_runtime: InterviewRuntime | None = None


def get_runtime() -> InterviewRuntime:
    global _runtime
    if _runtime is None:
        _runtime = InterviewRuntime()
    return _runtime
