from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from core.state import AnswerStatus, InterviewPhase
from interviewer.schemas import GeneratedQuestion


@dataclass(frozen=True)
class Question:
    id: int
    text: str
    difficulty: str
    category: str
    expected_topics: tuple[str, ...] = ()

    @classmethod
    def from_generated(cls, item: GeneratedQuestion) -> "Question":
        return cls(
            id=int(item.id),
            text=str(item.question or ""),
            difficulty=str(item.difficulty or "medium").strip().lower(),
            category=str(item.category or "general"),
            expected_topics=tuple(str(topic) for topic in (item.expected_topics or [])),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "question": self.text,
            "difficulty": self.difficulty,
            "category": self.category,
            "expected_topics": list(self.expected_topics),
        }


@dataclass(frozen=True)
class Answer:
    question_id: int
    question_text: str
    answer_text: str
    timestamp: str
    difficulty: str
    category: str
    time_taken_seconds: int
    status: AnswerStatus = AnswerStatus.ANSWERED

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["status"] = self.status.value
        return payload


@dataclass
class SessionState:
    """The single live interview. Only the session controller mutates it."""

    session_id: str
    phase: InterviewPhase = InterviewPhase.IDLE
    current_question_index: int = 0
    questions: list[Question] = field(default_factory=list)
    answers: list[Answer] = field(default_factory=list)
    time_remaining_seconds: int = 0
    started_at_epoch_ms: int | None = None
    technology: str = ""
    candidate_name: str = ""
    final_score: int | None = None
    summary: str = ""
    scoring_result: dict[str, Any] | None = None
    used_fallback_score: bool = False
    last_error: str | None = None
    completed_at: str | None = None

    @property
    def current_question(self) -> Question | None:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None

    def snapshot(self) -> dict:
        current = self.current_question
        return {
            "session_id": self.session_id,
            "phase": self.phase.value,
            "current_question_index": self.current_question_index,
            "total_questions": len(self.questions),
            "current_question": current.to_dict() if current else None,
            "questions": [q.to_dict() for q in self.questions],
            "answers": [a.to_dict() for a in self.answers],
            "time_remaining_seconds": self.time_remaining_seconds,
            "started_at_epoch_ms": self.started_at_epoch_ms,
            "technology": self.technology,
            "candidate_name": self.candidate_name,
            "final_score": self.final_score,
            "summary": self.summary,
            "scoring_result": self.scoring_result,
            "used_fallback_score": self.used_fallback_score,
            "last_error": self.last_error,
            "completed_at": self.completed_at,
        }
