import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Protocol

from core.config import (
    ANSWER_TIMEOUT_SEC,
    SPEECH_ERROR_GRACE_SEC,
    SPEECH_UNSUPPORTED_GRACE_SEC,
    START_TIMEOUT_SEC,
    TRANSCRIPTION_GRACE_SEC,
)
from core.logger import log_event
from core.state import ACTIVE_QUESTION_PHASES, AnswerStatus, InterviewPhase
from interviewer.errors import (
    InvalidTransitionError,
    MissingProfileError,
    ServiceUnavailableError,
    SessionReplacedError,
)
from interviewer.interview import scorer
from interviewer.interview.countdown import Countdown, SleepFn
from interviewer.interview.models import Answer, Question, SessionState
from interviewer.interview.turn import QuestionTurn
from interviewer.notifications import LoggingNotifier, Notifier
from interviewer.schemas import GenerateQuestionsResponse, ScoringPayload, ScoringResponse
from interviewer.speech.base import SpeechInput, SpeechOutput
from interviewer.storage.interview_store import InterviewStore

logger = logging.getLogger("session_controller")

TIME_EXPIRED_TEXT = "No answer provided (time expired)"
SKIPPED_TEXT = "Question skipped by candidate"
SKIPPED_SUFFIX = " (Question skipped by candidate)"

MISSING_PROFILE_NOTICE = "Please upload resume first."
START_FAILED_NOTICE = "Failed to start interview. Please try again."
START_EXPIRED_NOTICE = "Time expired to start answer. Moving to next question."
ANSWER_EXPIRED_NOTICE = "Time limit reached. Submitting answer..."
SKIP_NOTICE = "Question skipped. Moving to next question."
SCORING_FAILED_NOTICE = "Scoring failed, but interview is saved."


class QuestionService(Protocol):
    async def generate_questions(self, resume_data: dict) -> GenerateQuestionsResponse:
        ...

    async def score_answers(self, payload: ScoringPayload) -> ScoringResponse:
        ...


@dataclass
class InterviewTimings:
    start_timeout_sec: int = START_TIMEOUT_SEC
    answer_timeout_sec: int = ANSWER_TIMEOUT_SEC
    speech_error_grace_sec: float = SPEECH_ERROR_GRACE_SEC
    speech_unsupported_grace_sec: float = SPEECH_UNSUPPORTED_GRACE_SEC
    transcription_grace_sec: float = TRANSCRIPTION_GRACE_SEC


def _new_session(**kwargs) -> SessionState:
    return SessionState(session_id=str(uuid.uuid4()), **kwargs)


class InterviewSessionController:
    """Drives one interview from question generation to the final score.

    Every event (speech finished, countdown expired, transcript delivered,
    candidate action) is handled on the event loop, one at a time, and every
    answer is recorded through ``_finalize_turn`` so a question can only be
    answered once.
    """

    def __init__(
        self,
        question_service: QuestionService,
        speech_output: SpeechOutput | None = None,
        speech_input: SpeechInput | None = None,
        store: InterviewStore | None = None,
        notifier: Notifier | None = None,
        timings: InterviewTimings | None = None,
        clock: Callable[[], float] = time.time,
        sleep: SleepFn = asyncio.sleep,
        on_complete: Callable[[int, str], None] | None = None,
    ):
        self.question_service = question_service
        self.speech_output = speech_output
        self.speech_input = speech_input
        self.store = store
        self.notifier = notifier or LoggingNotifier()
        self.timings = timings or InterviewTimings()
        self.on_complete = on_complete
        self._clock = clock
        self._sleep = sleep

        self.session = _new_session()
        self.candidate: dict[str, Any] = {}
        self.tasks: list[asyncio.Task] = []
        self._turn: QuestionTurn | None = None
        self._countdown: Countdown | None = None
        self._speech_task: asyncio.Task | None = None
        self._transcription_task: asyncio.Task | None = None
        self._answer_buffer = ""
        self._recording_started_at: float | None = None

    # ------------------------------------------------------------------ tasks

    def create_task(self, coro):
        self.tasks = [task for task in self.tasks if not task.done()]
        task = asyncio.create_task(coro)
        self.tasks.append(task)
        return task

    @staticmethod
    def _cancel_task(task: asyncio.Task | None):
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def _now_iso(self) -> str:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc).isoformat()

    def _log(self, event: str, **kwargs):
        log_event("session_controller", event, self.session.session_id, phase=self.session.phase.value, **kwargs)

    # -------------------------------------------------------------- countdown

    def _start_countdown(self, label: str, duration: int, on_expire: Callable[[], None]):
        self._stop_countdown()
        self.session.time_remaining_seconds = int(duration)
        self._countdown = Countdown(
            label=label,
            duration=duration,
            on_expire=on_expire,
            on_tick=self._on_tick,
            sleep=self._sleep,
        ).start()

    def _stop_countdown(self):
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None

    def _on_tick(self, remaining: int):
        self.session.time_remaining_seconds = remaining

    @property
    def countdown(self) -> Countdown | None:
        return self._countdown

    # ----------------------------------------------------------------- speech

    async def _stop_speech(self):
        self._cancel_task(self._speech_task)
        self._speech_task = None
        if self.speech_output is not None:
            await self.speech_output.cancel()

    async def _cancel_transcription(self):
        self._cancel_task(self._transcription_task)
        self._transcription_task = None
        if self.speech_input is not None:
            await self.speech_input.cancel()

    async def _read_question(self, turn: QuestionTurn, text: str):
        if self.speech_output is None:
            logger.info("speech output unsupported, holding question %s for %.1fs", turn.question_index, self.timings.speech_unsupported_grace_sec)
            await self._sleep(self.timings.speech_unsupported_grace_sec)
        else:
            try:
                await self.speech_output.speak(text)
            except Exception as exc:
                logger.warning("speech output failed for question %s | err=%s", turn.question_index, exc)
                await self._sleep(self.timings.speech_error_grace_sec)

        if turn is not self._turn or not turn.is_active or self.session.phase != InterviewPhase.READING:
            logger.info("stale speech completion ignored | question=%s", turn.question_index)
            return
        self._enter_waiting(turn)

    async def _play_prompt(self, text: str):
        if self.speech_output is None:
            return
        try:
            await self.speech_output.speak(text)
        except Exception as exc:
            logger.warning("replay failed | err=%s", exc)

    # ------------------------------------------------------------ transitions

    async def start(self, resume_data: dict | None, candidate: dict | None = None) -> bool:
        """Generate questions and read the first one.

        Returns False when the question service failed; the controller is then
        back in a fresh idle session and the candidate may retry. Raises
        SessionReplacedError when the session was cleared while generating.
        """
        if not resume_data:
            self.notifier.notify("error", MISSING_PROFILE_NOTICE)
            raise MissingProfileError(MISSING_PROFILE_NOTICE)
        if self.session.phase not in (InterviewPhase.IDLE, InterviewPhase.COMPLETED):
            raise InvalidTransitionError("start interview", self.session.phase)

        await self.stop()
        self.candidate = dict(candidate or {})
        session = _new_session(phase=InterviewPhase.GENERATING)
        self.session = session
        self._turn = None
        self._log("generating")

        try:
            response = await self.question_service.generate_questions(resume_data)
            questions = [Question.from_generated(item) for item in response.questions]
            if not questions:
                raise ServiceUnavailableError("generate-questions", "no questions returned")
        except ServiceUnavailableError as exc:
            if self.session is not session:
                raise SessionReplacedError("Interview was reset while questions were being generated") from exc
            logger.warning("question generation failed | err=%s", exc)
            self.session = _new_session(last_error=str(exc))
            self.notifier.notify("error", START_FAILED_NOTICE)
            self._log("generation_failed", error=str(exc))
            return False

        if self.session is not session:
            logger.info("session replaced while generating questions")
            raise SessionReplacedError("Interview was reset while questions were being generated")

        session.questions = questions
        session.technology = response.technology
        session.candidate_name = str(self.candidate.get("name") or response.candidate_name or "")
        session.started_at_epoch_ms = int(self._clock() * 1000)
        session.current_question_index = 0
        self._log("questions_ready", questions_count=len(questions), technology=response.technology)
        self._load_question(0)
        return True

    def _load_question(self, index: int):
        session = self.session
        question = session.questions[index]
        self._turn = QuestionTurn(question_index=index, question_id=question.id)
        self._answer_buffer = ""
        self._recording_started_at = None
        session.phase = InterviewPhase.READING
        session.time_remaining_seconds = 0
        self._log("question_loaded", question_index=index, question_id=question.id, difficulty=question.difficulty)
        self._speech_task = self.create_task(self._read_question(self._turn, question.text))

    def _enter_waiting(self, turn: QuestionTurn):
        self.session.phase = InterviewPhase.WAITING_TO_START
        self._log("waiting_to_start", question_index=turn.question_index)
        self._start_countdown(
            "start_window",
            self.timings.start_timeout_sec,
            lambda: self.create_task(self._on_start_window_expired(turn)),
        )

    async def _on_start_window_expired(self, turn: QuestionTurn):
        if turn is not self._turn or self.session.phase != InterviewPhase.WAITING_TO_START:
            return
        await self._finalize_turn(
            turn,
            TIME_EXPIRED_TEXT,
            AnswerStatus.TIME_EXPIRED,
            time_taken=0,
            reason="start_timeout",
            notice=("warning", START_EXPIRED_NOTICE),
        )

    async def start_recording(self):
        session = self.session
        if session.phase != InterviewPhase.WAITING_TO_START or self._turn is None:
            raise InvalidTransitionError("start recording", session.phase)

        turn = self._turn
        self._stop_countdown()
        await self._stop_speech()
        session.phase = InterviewPhase.RECORDING
        self._recording_started_at = self._clock()
        self._answer_buffer = ""
        self._log("recording", question_index=turn.question_index)
        self._start_countdown(
            "answer_window",
            self.timings.answer_timeout_sec,
            lambda: self.create_task(self._on_answer_window_expired(turn)),
        )
        if self.speech_input is not None:
            self._transcription_task = self.create_task(self._record_answer(turn))

    async def _record_answer(self, turn: QuestionTurn):
        try:
            text = await self.speech_input.transcribe(self.timings.answer_timeout_sec)
        except Exception as exc:
            logger.warning("transcription failed for question %s | err=%s", turn.question_index, exc)
            text = self._partial_text()
        await self._submit_answer(turn, text, reason="transcribed")

    async def _on_answer_window_expired(self, turn: QuestionTurn):
        if turn is not self._turn or self.session.phase != InterviewPhase.RECORDING:
            return
        self.notifier.notify("info", ANSWER_EXPIRED_NOTICE)

        if self.speech_input is not None:
            try:
                await self.speech_input.stop()
            except Exception as exc:
                logger.warning("transcription stop failed | err=%s", exc)
            await asyncio.sleep(0)
            if turn.is_active and self.timings.transcription_grace_sec > 0:
                await self._sleep(self.timings.transcription_grace_sec)

        if not turn.is_active or turn is not self._turn:
            return
        logger.info("transcription never delivered for question %s, submitting partial text", turn.question_index)
        await self._submit_answer(turn, self._partial_text(), reason="answer_timeout")

    async def stop_recording(self):
        """Candidate finished speaking; the transcription channel delivers the text."""
        if self.session.phase != InterviewPhase.RECORDING or self._turn is None:
            raise InvalidTransitionError("stop recording", self.session.phase)
        if self.speech_input is not None:
            await self.speech_input.stop()
            return
        await self._submit_answer(self._turn, self._answer_buffer, reason="manual_stop")

    async def submit_transcript(self, text: str) -> bool:
        if self.session.phase != InterviewPhase.RECORDING or self._turn is None:
            raise InvalidTransitionError("submit answer", self.session.phase)
        return await self._submit_answer(self._turn, text, reason="transcribed")

    def update_partial_transcript(self, text: str):
        if self.session.phase != InterviewPhase.RECORDING:
            raise InvalidTransitionError("update transcript", self.session.phase)
        self._answer_buffer = str(text or "")
        update = getattr(self.speech_input, "update_partial", None)
        if callable(update):
            update(self._answer_buffer)

    def _partial_text(self) -> str:
        if self._answer_buffer:
            return self._answer_buffer
        if self.speech_input is not None:
            return str(self.speech_input.partial_text() or "")
        return ""

    async def _submit_answer(self, turn: QuestionTurn, text: str, reason: str) -> bool:
        answer_text = str(text or "").strip()
        started = self._recording_started_at if self._recording_started_at is not None else self._clock()
        time_taken = int(max(0.0, self._clock() - started))
        if answer_text:
            status = AnswerStatus.ANSWERED
        else:
            answer_text = TIME_EXPIRED_TEXT
            status = AnswerStatus.TIME_EXPIRED
        return await self._finalize_turn(turn, answer_text, status, time_taken=time_taken, reason=reason)

    async def skip(self) -> bool:
        session = self.session
        if session.phase not in ACTIVE_QUESTION_PHASES or self._turn is None:
            raise InvalidTransitionError("skip question", session.phase)

        partial = self._partial_text().strip() if session.phase == InterviewPhase.RECORDING else ""
        text = f"{partial}{SKIPPED_SUFFIX}" if partial else SKIPPED_TEXT
        return await self._finalize_turn(
            self._turn,
            text,
            AnswerStatus.SKIPPED,
            time_taken=0,
            reason="skipped",
            notice=("info", SKIP_NOTICE),
        )

    async def replay_question(self):
        session = self.session
        question = session.current_question
        if question is None or self._turn is None:
            raise InvalidTransitionError("replay question", session.phase)

        if session.phase == InterviewPhase.READING:
            await self._stop_speech()
            self._speech_task = self.create_task(self._read_question(self._turn, question.text))
        elif session.phase == InterviewPhase.WAITING_TO_START:
            await self._stop_speech()
            self._speech_task = self.create_task(self._play_prompt(question.text))
        else:
            raise InvalidTransitionError("replay question", session.phase)

    async def _finalize_turn(
        self,
        turn: QuestionTurn,
        answer_text: str,
        status: AnswerStatus,
        time_taken: int,
        reason: str,
        notice: tuple[str, str] | None = None,
    ) -> bool:
        if turn is not self._turn or not await turn.try_finalize(reason):
            return False

        session = self.session
        question = session.questions[turn.question_index]
        self._stop_countdown()
        await self._cancel_transcription()
        await self._stop_speech()

        session.phase = InterviewPhase.SUBMITTING
        session.answers.append(
            Answer(
                question_id=question.id,
                question_text=question.text,
                answer_text=answer_text,
                timestamp=self._now_iso(),
                difficulty=question.difficulty,
                category=question.category,
                time_taken_seconds=int(time_taken),
                status=status,
            )
        )
        session.current_question_index += 1
        session.time_remaining_seconds = 0
        await turn.mark_finalized()
        self._log(
            "answer_recorded",
            question_index=turn.question_index,
            reason=reason,
            status=status.value,
            time_taken=int(time_taken),
            answer_text=answer_text,
        )
        if notice is not None:
            self.notifier.notify(*notice)

        if session.current_question_index < len(session.questions):
            self._load_question(session.current_question_index)
        else:
            await self._finish_interview()
        return True

    async def _finish_interview(self):
        session = self.session
        self._turn = None
        session.phase = InterviewPhase.SCORING
        self._log("scoring", answers_count=len(session.answers))

        payload = scorer.build_scoring_payload(
            session.questions,
            session.answers,
            candidate_name=session.candidate_name,
            technology=session.technology,
        )
        try:
            result = await self.question_service.score_answers(payload)
        except ServiceUnavailableError as exc:
            logger.warning("scoring failed, using local estimate | err=%s", exc)
            session.final_score = scorer.fallback_score(session.answers)
            session.summary = scorer.fallback_summary(len(payload.interview_data))
            session.used_fallback_score = True
            session.last_error = str(exc)
            self.notifier.notify("error", SCORING_FAILED_NOTICE)
        else:
            session.scoring_result = result.model_dump()
            session.final_score = scorer.overall_score(result)
            session.summary = result.overall_feedback

        if self.session is not session:
            return
        session.phase = InterviewPhase.COMPLETED
        session.completed_at = self._now_iso()
        self._log("completed", final_score=session.final_score, fallback=session.used_fallback_score)
        self._auto_save()

        if self.on_complete is not None:
            try:
                self.on_complete(session.final_score, session.summary)
            except Exception:
                logger.exception("on_complete hook failed")

    # ------------------------------------------------------------ persistence

    def build_record(self) -> dict[str, Any]:
        session = self.session
        started_at = None
        if session.started_at_epoch_ms is not None:
            started_at = datetime.fromtimestamp(session.started_at_epoch_ms / 1000, tz=timezone.utc).isoformat()
        return {
            "id": session.session_id,
            "candidate_id": self.candidate.get("candidate_id"),
            "candidate_name": session.candidate_name or scorer.UNKNOWN_CANDIDATE,
            "profile": {k: v for k, v in self.candidate.items() if k != "resume_data"},
            "technology": session.technology,
            "questions": [q.to_dict() for q in session.questions],
            "answers": [a.to_dict() for a in session.answers],
            "is_complete": session.phase == InterviewPhase.COMPLETED,
            "final_score": session.final_score,
            "summary": session.summary,
            "scoring_result": session.scoring_result,
            "used_fallback_score": session.used_fallback_score,
            "started_at": started_at,
            "completed_at": session.completed_at,
        }

    def _auto_save(self):
        if self.store is None:
            return
        try:
            self.store.save(self.build_record())
        except Exception as exc:
            logger.warning("interview auto-save failed | session=%s err=%s", self.session.session_id, exc)
            return
        self._log("saved")

    # -------------------------------------------------------------- lifecycle

    def snapshot(self) -> dict:
        return self.session.snapshot()

    async def stop(self):
        self._stop_countdown()
        await self._stop_speech()
        await self._cancel_transcription()

        pending = [task for task in self.tasks if task is not asyncio.current_task()]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self.tasks = []

    async def clear(self):
        await self.stop()
        self.session = _new_session()
        self.candidate = {}
        self._turn = None
        self._answer_buffer = ""
        self._recording_started_at = None
