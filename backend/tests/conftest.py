import asyncio
import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from interviewer.errors import ServiceUnavailableError  # noqa: E402
from interviewer.interview.session_controller import InterviewSessionController, InterviewTimings  # noqa: E402
from interviewer.notifications import BufferedNotifier  # noqa: E402
from interviewer.schemas import (  # noqa: E402
    FinalScore,
    GeneratedQuestion,
    GenerateQuestionsResponse,
    QuestionScore,
    ScoringResponse,
)
from interviewer.storage.interview_store import InMemoryInterviewStore  # noqa: E402


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("QA_MODE", "true")
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("INTERVIEW_API_BASE_URL", "http://interview-api.test")


async def settle(rounds: int = 50):
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeClock:
    """Virtual time for countdowns: sleepers only wake when the test advances."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start
        self._sleepers: list[tuple[float, int, asyncio.Future]] = []
        self._seq = 0

    def time(self) -> float:
        return self.now

    async def sleep(self, delay: float):
        fut = asyncio.get_running_loop().create_future()
        self._seq += 1
        self._sleepers.append((self.now + max(0.0, float(delay)), self._seq, fut))
        await fut

    async def advance(self, seconds: float):
        target = self.now + seconds
        await settle()
        while True:
            self._sleepers = [item for item in self._sleepers if not item[2].done()]
            due = [item for item in self._sleepers if item[0] <= target]
            if not due:
                break
            item = min(due, key=lambda entry: (entry[0], entry[1]))
            self._sleepers.remove(item)
            self.now = max(self.now, item[0])
            item[2].set_result(None)
            await settle()
        self.now = target
        await settle()


class FakeQuestionService:
    def __init__(
        self,
        count: int = 3,
        fail_generate: bool = False,
        fail_scoring: bool = False,
        overall_score: float = 82.5,
        hold_scoring: bool = False,
        hold_generate: bool = False,
    ):
        self.count = count
        self.fail_generate = fail_generate
        self.fail_scoring = fail_scoring
        self.overall_score = overall_score
        self.hold_scoring = hold_scoring
        self.scoring_gate: asyncio.Event | None = None
        self.hold_generate = hold_generate
        self.generate_gate: asyncio.Event | None = None
        self.generate_calls: list[dict] = []
        self.score_calls: list = []

    def questions(self) -> list[GeneratedQuestion]:
        difficulties = ["easy", "medium", "hard"]
        return [
            GeneratedQuestion(
                id=index + 1,
                question=f"Question {index + 1}?",
                difficulty=difficulties[index % 3],
                category="backend",
                expected_topics=[f"topic-{index + 1}"],
            )
            for index in range(self.count)
        ]

    async def generate_questions(self, resume_data: dict) -> GenerateQuestionsResponse:
        self.generate_calls.append(resume_data)
        if self.hold_generate:
            self.generate_gate = asyncio.Event()
            await self.generate_gate.wait()
        if self.fail_generate:
            raise ServiceUnavailableError("generate-questions", "503 Service Unavailable", status_code=503)
        return GenerateQuestionsResponse(
            questions=self.questions(),
            technology="Python",
            candidate_name="Ada Lovelace",
        )

    async def score_answers(self, payload) -> ScoringResponse:
        self.score_calls.append(payload)
        if self.hold_scoring:
            self.scoring_gate = asyncio.Event()
            await self.scoring_gate.wait()
        if self.fail_scoring:
            raise ServiceUnavailableError("score-answers", "request timed out")
        return ScoringResponse(
            candidate_name=payload.candidate_info.name,
            total_questions=len(payload.interview_data),
            questions_attempted=len(payload.interview_data),
            question_scores=[
                QuestionScore(question_id=item.question_id, question=item.question, score=7, feedback="Good")
                for item in payload.interview_data
            ],
            final_score=FinalScore(overall_score=self.overall_score),
            overall_feedback="Solid fundamentals.",
            recommendation="hire",
            strengths_summary=["Clear communication"],
            areas_for_improvement=["System design depth"],
        )


class FakeSpeechOutput:
    def __init__(self, fail: bool = False, hold: bool = False):
        self.fail = fail
        self.hold = hold
        self.spoken: list[str] = []
        self.cancelled = 0
        self._release: asyncio.Event | None = None

    async def speak(self, text: str):
        self.spoken.append(text)
        if self.fail:
            raise RuntimeError("speech synthesis not allowed")
        if self.hold:
            self._release = asyncio.Event()
            await self._release.wait()

    def release(self):
        if self._release is not None:
            self._release.set()

    async def cancel(self):
        self.cancelled += 1


class FakeSpeechInput:
    def __init__(self, respond_to_stop: bool = True):
        self.respond_to_stop = respond_to_stop
        self.partial = ""
        self.windows: list[float] = []
        self.stops = 0
        self.cancels = 0
        self._result: asyncio.Future | None = None

    async def transcribe(self, max_duration_sec: float) -> str:
        self.windows.append(max_duration_sec)
        self._result = asyncio.get_running_loop().create_future()
        return await self._result

    def deliver(self, text: str):
        if self._result is not None and not self._result.done():
            self._result.set_result(text)

    def update_partial(self, text: str):
        self.partial = text

    def partial_text(self) -> str:
        return self.partial

    async def stop(self):
        self.stops += 1
        if self.respond_to_stop:
            self.deliver(self.partial)

    async def cancel(self):
        self.cancels += 1
        if self._result is not None and not self._result.done():
            self._result.cancel()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def question_service() -> FakeQuestionService:
    return FakeQuestionService()


@pytest.fixture
def speech_output() -> FakeSpeechOutput:
    return FakeSpeechOutput()


@pytest.fixture
def speech_input() -> FakeSpeechInput:
    return FakeSpeechInput()


@pytest.fixture
def resume_data() -> dict:
    return {
        "personal_info": {"name": "Ada Lovelace", "email": "ada@example.com", "phone": "555-0100"},
        "skills": {"languages": ["Python"], "frameworks": ["FastAPI"]},
        "experience": [],
        "projects": [],
        "education": [],
    }


@pytest.fixture
def make_controller(fake_clock, question_service, speech_output, speech_input):
    def _make(**overrides) -> InterviewSessionController:
        options = {
            "question_service": question_service,
            "speech_output": speech_output,
            "speech_input": speech_input,
            "store": InMemoryInterviewStore(),
            "notifier": BufferedNotifier(),
            "timings": InterviewTimings(
                start_timeout_sec=30,
                answer_timeout_sec=120,
                speech_error_grace_sec=0.1,
                speech_unsupported_grace_sec=2.0,
                transcription_grace_sec=5.0,
            ),
            "clock": fake_clock.time,
            "sleep": fake_clock.sleep,
        }
        options.update(overrides)
        return InterviewSessionController(**options)

    return _make


@pytest.fixture
def fakes():
    class _Fakes:
        Clock = FakeClock
        QuestionService = FakeQuestionService
        SpeechOutput = FakeSpeechOutput
        SpeechInput = FakeSpeechInput

    _Fakes.settle = staticmethod(settle)
    return _Fakes
