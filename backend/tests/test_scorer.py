import pytest

from core.state import AnswerStatus
from interviewer.interview import scorer
from interviewer.interview.models import Answer, Question
from interviewer.schemas import FinalScore, GeneratedQuestion, ScoringResponse


def _question(qid: int, difficulty: str) -> Question:
    return Question(id=qid, text=f"Q{qid}", difficulty=difficulty, category="general", expected_topics=("a", "b"))


def _answer(qid: int, text: str, seconds: int = 10) -> Answer:
    return Answer(
        question_id=qid,
        question_text=f"Q{qid}",
        answer_text=text,
        timestamp="2024-01-01T00:00:00+00:00",
        difficulty="easy",
        category="general",
        time_taken_seconds=seconds,
        status=AnswerStatus.ANSWERED,
    )


@pytest.mark.parametrize(
    "difficulty,expected",
    [("easy", 20), ("medium", 60), ("hard", 120), ("HARD", 120), ("unknown", 120)],
)
def test_max_time_allowed_by_difficulty(difficulty, expected):
    assert scorer.max_time_allowed(difficulty) == expected


def test_payload_preserves_question_order_and_fills_missing_answers():
    questions = [_question(1, "easy"), _question(2, "medium"), _question(3, "hard")]
    answers = [_answer(1, "first", 15), _answer(3, "third", 90)]

    payload = scorer.build_scoring_payload(questions, answers, candidate_name="", technology="Go")

    assert payload.candidate_info.name == scorer.UNKNOWN_CANDIDATE
    assert payload.candidate_info.technology == "Go"
    assert [item.question_id for item in payload.interview_data] == [1, 2, 3]
    assert [item.answer for item in payload.interview_data] == ["first", scorer.MISSING_ANSWER_TEXT, "third"]
    assert [item.time_taken for item in payload.interview_data] == [15, 0, 90]
    assert payload.interview_data[0].expected_topics == ["a", "b"]


@pytest.mark.parametrize(
    "raw,expected",
    [(82.5, 83), (82.4, 82), (-5, 0), (140, 100), (0, 0)],
)
def test_overall_score_rounds_half_up_and_clamps(raw, expected):
    result = ScoringResponse(final_score=FinalScore(overall_score=raw))
    assert scorer.overall_score(result) == expected


def test_fallback_score_from_answer_length():
    assert scorer.fallback_score([]) == 20
    assert scorer.fallback_score([_answer(1, "x" * 50)]) == 80
    assert scorer.fallback_score([_answer(1, "x" * 500)]) == 100
    # average of 10 and 30 chars -> 20 / 50 * 60 + 20 = 44
    assert scorer.fallback_score([_answer(1, "x" * 10), _answer(2, "x" * 30)]) == 44


def test_fallback_summary_mentions_count():
    assert scorer.fallback_summary(3) == (
        "Interview completed with 3 questions answered. Scoring service temporarily unavailable."
    )


def test_generated_difficulty_is_normalized_for_budget():
    question = Question.from_generated(GeneratedQuestion(id=7, question="Q7", difficulty=" Medium "))
    unknown = Question.from_generated(GeneratedQuestion(id=8, question="Q8", difficulty="Expert"))

    assert question.difficulty == "medium"
    assert scorer.max_time_allowed(question.difficulty) == 60
    assert unknown.difficulty == "expert"
    assert scorer.max_time_allowed(unknown.difficulty) == 120
