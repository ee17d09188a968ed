import pytest

from interviewer.errors import UnsupportedResumeError
from interviewer.resume.profile import (
    MAX_RESUME_BYTES,
    CandidateProfile,
    extract_profile,
    flatten_skills,
    validate_resume_file,
    validate_resume_size,
)


PARSED = {
    "personal_info": {
        "name": "Grace Hopper",
        "email": "not found",
        "phone": "555-0101",
        "linkedin": "linkedin.com/in/grace",
        "github": "not found",
    },
    "education": [{"institution": "Yale", "degree": "PhD"}],
    "experience": [
        {"company": "Navy", "start_date": "1943", "end_date": None, "responsibilities": ["COBOL", "Compilers"]},
    ],
    "projects": [{"title": "A-0", "description": "First compiler"}],
    "skills": {
        "languages": ["COBOL", "FLOW-MATIC"],
        "frameworks": [],
        "tools": ["UNIVAC"],
        "other": ["Leadership"],
    },
}


@pytest.mark.parametrize(
    "file_name,content_type",
    [
        ("cv.pdf", None),
        ("CV.DOCX", None),
        ("upload", "application/pdf"),
        ("upload", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
    ],
)
def test_accepts_pdf_and_docx(file_name, content_type):
    validate_resume_file(file_name, content_type)


def test_rejects_other_formats():
    with pytest.raises(UnsupportedResumeError):
        validate_resume_file("cv.txt", "text/plain")


def test_flatten_skills_keeps_group_order():
    assert flatten_skills(PARSED["skills"]) == ["COBOL", "FLOW-MATIC", "UNIVAC", "Leadership"]
    assert flatten_skills(None) == []


def test_extract_profile_cleans_placeholders():
    profile = extract_profile(PARSED, now_ms=1700000000000)

    assert profile.candidate_id == "CAND-1700000000000"
    assert profile.name == "Grace Hopper"
    assert profile.email == ""
    assert profile.github is None
    assert profile.linkedin == "linkedin.com/in/grace"
    assert profile.missing_fields() == ["email"]
    assert profile.experience == [{"key": "Navy", "start": "1943", "end": "Present", "description": ["COBOL", "Compilers"]}]
    assert profile.projects == [{"title": "A-0", "description": ["First compiler"]}]
    assert profile.question_request() is PARSED


def test_question_request_rebuilt_without_parsed_resume():
    profile = CandidateProfile(
        candidate_id="CAND-1",
        name="Linus",
        skills=["C", "Git", "Make", "Perl", "Shell", "Kernel", "Email"],
        experience=[{"key": "OSDL", "start": "2003", "end": "Present", "description": ["Maintainer"]}],
    )

    request = profile.question_request()

    assert request["personal_info"]["name"] == "Linus"
    assert request["personal_info"]["email"] == "not found"
    assert request["skills"]["languages"] == ["C", "Git", "Make", "Perl", "Shell"]
    assert request["skills"]["other"] == ["Kernel", "Email"]
    assert request["experience"][0]["company"] == "OSDL"
    assert request["experience"][0]["end_date"] is None
    assert request["experience"][0]["responsibilities"] == ["Maintainer"]


def test_to_dict_hides_resume_unless_requested():
    profile = extract_profile(PARSED, now_ms=1)

    assert "resume_data" not in profile.to_dict()
    assert profile.to_dict(include_resume=True)["resume_data"] is PARSED


def test_resume_size_limit_is_five_megabytes():
    validate_resume_size(MAX_RESUME_BYTES)

    with pytest.raises(UnsupportedResumeError, match="smaller than 5MB"):
        validate_resume_size(MAX_RESUME_BYTES + 1)


def test_with_contact_fills_missing_fields_and_resume_payload():
    profile = extract_profile(PARSED, now_ms=1)

    updated = profile.with_contact(email=" grace@navy.mil ", github="", website=None, skills=["ignored"])

    assert updated.email == "grace@navy.mil"
    assert updated.github is None
    assert updated.missing_fields() == []
    assert updated.skills == profile.skills
    assert updated.question_request()["personal_info"]["email"] == "grace@navy.mil"
    # the uploaded parse stays untouched
    assert PARSED["personal_info"]["email"] == "not found"
    assert profile.email == ""
