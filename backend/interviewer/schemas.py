from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class GeneratedQuestion(BaseModel):
    id: int
    question: str
    difficulty: str | None = "medium"
    category: str = "general"
    expected_topics: list[str] = Field(default_factory=list)


class GenerateQuestionsResponse(BaseModel):
    questions: list[GeneratedQuestion]
    technology: str = ""
    candidate_name: str = ""


class CandidateInfo(BaseModel):
    name: str
    technology: str


class InterviewDataItem(BaseModel):
    question_id: int
    question: str
    difficulty: str
    category: str
    expected_topics: list[str]
    answer: str
    time_taken: int
    max_time_allowed: int


class ScoringPayload(BaseModel):
    candidate_info: CandidateInfo
    interview_data: list[InterviewDataItem]


class QuestionScore(BaseModel):
    model_config = ConfigDict(extra="allow")

    question_id: int | None = None
    question: str = ""
    category: str = ""
    candidate_answer: str = ""
    time_taken: float = 0
    score: float = 0
    feedback: str = ""
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    key_points_covered: list[str] = Field(default_factory=list)
    key_points_missed: list[str] = Field(default_factory=list)


class FinalScore(BaseModel):
    model_config = ConfigDict(extra="allow")

    overall_score: float = 0


class ScoringResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    candidate_name: str = ""
    technology: str | None = None
    total_questions: int = 0
    questions_attempted: int = 0
    question_scores: list[QuestionScore] = Field(default_factory=list)
    final_score: FinalScore = Field(default_factory=FinalScore)
    overall_feedback: str = ""
    recommendation: str = ""
    strengths_summary: list[str] = Field(default_factory=list)
    areas_for_improvement: list[str] = Field(default_factory=list)


class HealthStatus(BaseModel):
    status: Literal["success", "error"]
    message: str


# --- HTTP control surface bodies ---

class PartialTranscriptRequest(BaseModel):
    text: str = ""


class AnswerRequest(BaseModel):
    text: str = ""


class SpeechErrorRequest(BaseModel):
    reason: str | None = None


class ProfileUpdateRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    linkedin: str | None = None
    github: str | None = None
    website: str | None = None


class ResumeUploadResponse(BaseModel):
    candidate_id: str
    profile: dict[str, Any]
    missing_fields: list[str]
    file_name: str
    file_size: int
    uploaded_at: str
