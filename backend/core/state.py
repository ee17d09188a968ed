# backend/core/state.py

from enum import Enum


class InterviewPhase(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    READING = "reading"
    WAITING_TO_START = "waiting_to_start"
    RECORDING = "recording"
    SUBMITTING = "submitting"
    SCORING = "scoring"
    COMPLETED = "completed"


# Phases in which a question is on screen and the candidate may skip it.
ACTIVE_QUESTION_PHASES = frozenset({
    InterviewPhase.READING,
    InterviewPhase.WAITING_TO_START,
    InterviewPhase.RECORDING,
})


class AnswerStatus(str, Enum):
    ANSWERED = "answered"
    SKIPPED = "skipped"
    TIME_EXPIRED = "time_expired"
