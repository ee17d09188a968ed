from interviewer.interview.countdown import Countdown
from interviewer.interview.models import Answer, Question, SessionState
from interviewer.interview.session_controller import InterviewSessionController, InterviewTimings
from interviewer.interview.turn import QuestionTurn

__all__ = [
    "Answer",
    "Countdown",
    "InterviewSessionController",
    "InterviewTimings",
    "Question",
    "QuestionTurn",
    "SessionState",
]
