from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Any

from interviewer.errors import UnsupportedResumeError

NOT_FOUND = "not found"

ALLOWED_CONTENT_TYPES = {
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
ALLOWED_SUFFIXES = (".pdf", ".docx")
MAX_RESUME_BYTES = 5 * 1024 * 1024

SKILL_GROUPS = ("languages", "frameworks", "databases", "tools", "cloud_platforms", "other")
MANDATORY_FIELDS = ("name", "email", "phone")
LINK_FIELDS = ("linkedin", "github", "website")
CONTACT_FIELDS = MANDATORY_FIELDS + LINK_FIELDS


def validate_resume_file(file_name: str, content_type: str | None = None) -> None:
    name = str(file_name or "").lower().strip()
    if content_type in ALLOWED_CONTENT_TYPES or name.endswith(ALLOWED_SUFFIXES):
        return
    raise UnsupportedResumeError("Unsupported file format. Please upload a PDF or DOCX file.")


def validate_resume_size(size: int) -> None:
    if int(size or 0) > MAX_RESUME_BYTES:
        raise UnsupportedResumeError("File must be smaller than 5MB!")


def _clean(value: Any) -> str:
    text = str(value or "").strip()
    return "" if text.lower() == NOT_FOUND else text


def _list_of_str(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item]
    return [str(value)]


def flatten_skills(skills: Any) -> list[str]:
    if not isinstance(skills, dict):
        return []
    flat: list[str] = []
    for group in SKILL_GROUPS:
        flat.extend(_list_of_str(skills.get(group)))
    return flat


@dataclass
class CandidateProfile:
    candidate_id: str
    name: str = ""
    email: str = ""
    phone: str = ""
    linkedin: str | None = None
    github: str | None = None
    website: str | None = None
    education: list[dict] = field(default_factory=list)
    experience: list[dict] = field(default_factory=list)
    projects: list[dict] = field(default_factory=list)
    skills: list[str] = field(default_factory=list)
    # The parse-resume payload exactly as returned; question generation wants all of it.
    resume_data: dict[str, Any] | None = None

    def missing_fields(self) -> list[str]:
        return [name for name in MANDATORY_FIELDS if not str(getattr(self, name) or "").strip()]

    def with_contact(self, **changes: Any) -> "CandidateProfile":
        """Copy with edited contact fields; None leaves a field unchanged."""
        updates: dict[str, Any] = {}
        for key, value in changes.items():
            if value is None or key not in CONTACT_FIELDS:
                continue
            text = str(value).strip()
            updates[key] = (text or None) if key in LINK_FIELDS else text
        updated = replace(self, **updates)
        if isinstance(self.resume_data, dict) and updates:
            resume_data = dict(self.resume_data)
            personal = dict(resume_data.get("personal_info") or {})
            personal.update(updates)
            resume_data["personal_info"] = personal
            updated.resume_data = resume_data
        return updated

    def to_dict(self, include_resume: bool = False) -> dict:
        payload = {
            "candidate_id": self.candidate_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "linkedin": self.linkedin,
            "github": self.github,
            "website": self.website,
            "education": list(self.education),
            "experience": list(self.experience),
            "projects": list(self.projects),
            "skills": list(self.skills),
        }
        if include_resume:
            payload["resume_data"] = self.resume_data
        return payload

    def question_request(self) -> dict[str, Any]:
        """Resume object for generate-questions: the parsed upload as-is, else one rebuilt from the profile."""
        if isinstance(self.resume_data, dict) and self.resume_data:
            return self.resume_data

        return {
            "personal_info": {
                "name": self.name or NOT_FOUND,
                "email": self.email or NOT_FOUND,
                "phone": self.phone or NOT_FOUND,
                "linkedin": self.linkedin,
                "github": self.github,
                "website": self.website,
                "location": None,
            },
            "education": [
                {
                    "institution": item.get("institution", ""),
                    "degree": NOT_FOUND,
                    "field_of_study": None,
                    "grade": None,
                    "start_date": NOT_FOUND,
                    "end_date": None,
                    "achievements": None,
                }
                for item in self.education
            ],
            "experience": [
                {
                    "company": item.get("key", ""),
                    "role": NOT_FOUND,
                    "start_date": item.get("start", ""),
                    "end_date": None if item.get("end") == "Present" else item.get("end"),
                    "duration": None,
                    "location": None,
                    "responsibilities": list(item.get("description") or []),
                    "technologies_used": [],
                    "key_achievements": None,
                }
                for item in self.experience
            ],
            "projects": [
                {
                    "title": item.get("title", ""),
                    "description": " ".join(item.get("description") or []),
                    "role": NOT_FOUND,
                    "technologies": [],
                    "key_features": [],
                    "challenges_solved": [],
                    "link": None,
                    "duration": NOT_FOUND,
                }
                for item in self.projects
            ],
            "skills": {
                "languages": self.skills[:5],
                "frameworks": [],
                "databases": [],
                "tools": [],
                "cloud_platforms": [],
                "other": self.skills[5:],
            },
            "certifications": [],
            "achievements": [],
            "publications": None,
            "languages": None,
        }


def extract_profile(parsed: dict[str, Any], now_ms: int | None = None) -> CandidateProfile:
    parsed = parsed if isinstance(parsed, dict) else {}
    personal = parsed.get("personal_info") if isinstance(parsed.get("personal_info"), dict) else {}
    stamp = int(now_ms if now_ms is not None else time.time() * 1000)

    return CandidateProfile(
        candidate_id=f"CAND-{stamp}",
        name=_clean(personal.get("name")),
        email=_clean(personal.get("email")),
        phone=_clean(personal.get("phone")),
        linkedin=_clean(personal.get("linkedin")) or None,
        github=_clean(personal.get("github")) or None,
        website=_clean(personal.get("website")) or None,
        education=[
            {"institution": str(item.get("institution") or "")}
            for item in parsed.get("education") or []
            if isinstance(item, dict)
        ],
        experience=[
            {
                "key": str(item.get("company") or ""),
                "start": str(item.get("start_date") or ""),
                "end": str(item.get("end_date") or "Present"),
                "description": _list_of_str(item.get("responsibilities")),
            }
            for item in parsed.get("experience") or []
            if isinstance(item, dict)
        ],
        projects=[
            {
                "title": str(item.get("title") or ""),
                "description": [str(item["description"])] if item.get("description") else [],
            }
            for item in parsed.get("projects") or []
            if isinstance(item, dict)
        ],
        skills=flatten_skills(parsed.get("skills")),
        resume_data=parsed or None,
    )
