import math

from interviewer.interview.models import Answer, Question
from interviewer.schemas import CandidateInfo, InterviewDataItem, ScoringPayload, ScoringResponse

# Idealized per-question budget sent to the scorer, independent
# of the runtime recording window.
MAX_TIME_BY_DIFFICULTY = {
    "easy": 20,
    "medium": 60,
    "hard": 120,
}

UNKNOWN_CANDIDATE = "Unknown Candidate"
MISSING_ANSWER_TEXT = "No answer provided"


def _safe_float(value, default: float = 0.0) -> float:
    try:
        return float(value)
    except Exception:
        return default


def round_half_up(value: float) -> int:
    return int(math.floor(_safe_float(value) + 0.5))


def max_time_allowed(difficulty: str) -> int:
    return MAX_TIME_BY_DIFFICULTY.get(str(difficulty or "").lower(), MAX_TIME_BY_DIFFICULTY["hard"])


def build_scoring_payload(
    questions: list[Question],
    answers: list[Answer],
    candidate_name: str = "",
    technology: str = "",
) -> ScoringPayload:
    answers_by_question = {answer.question_id: answer for answer in answers}

    interview_data = []
    for question in questions:
        answer = answers_by_question.get(question.id)
        interview_data.append(
            InterviewDataItem(
                question_id=question.id,
                question=question.text,
                difficulty=question.difficulty,
                category=question.category,
                expected_topics=list(question.expected_topics),
                answer=(answer.answer_text if answer else "") or MISSING_ANSWER_TEXT,
                time_taken=int(answer.time_taken_seconds) if answer else 0,
                max_time_allowed=max_time_allowed(question.difficulty),
            )
        )

    return ScoringPayload(
        candidate_info=CandidateInfo(
            name=str(candidate_name or "").strip() or UNKNOWN_CANDIDATE,
            technology=str(technology or "").strip(),
        ),
        interview_data=interview_data,
    )


def overall_score(result: ScoringResponse) -> int:
    return max(0, min(100, round_half_up(result.final_score.overall_score)))


def fallback_score(answers: list[Answer]) -> int:
    """Length-based estimate used when the scoring service is down."""
    if not answers:
        average_length = 0.0
    else:
        average_length = sum(len(answer.answer_text or "") for answer in answers) / len(answers)

    base_score = min(100.0, max(0.0, (average_length / 50.0) * 60.0 + 20.0))
    return round_half_up(base_score)


def fallback_summary(question_count: int) -> str:
    return (
        f"Interview completed with {question_count} questions answered. "
        "Scoring service temporarily unavailable."
    )
