import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response

from interviewer.errors import (
    InvalidTransitionError,
    MissingProfileError,
    ServiceUnavailableError,
    SessionReplacedError,
    SpeechError,
    UnsupportedResumeError,
)
from interviewer.interview.session_controller import START_FAILED_NOTICE
from interviewer.resume.profile import extract_profile, validate_resume_file, validate_resume_size
from interviewer.runtime import InterviewRuntime, get_runtime
from interviewer.schemas import (
    AnswerRequest,
    PartialTranscriptRequest,
    ProfileUpdateRequest,
    ResumeUploadResponse,
    SpeechErrorRequest,
)
from interviewer.speech.openai_speech import synthesize_speech, transcribe_audio

logger = logging.getLogger("interviewer.api")

router = APIRouter(prefix="/api")


def _conflict(exc: InvalidTransitionError) -> HTTPException:
    return HTTPException(status_code=409, detail=str(exc))


@router.get("/service/health")
async def service_health(runtime: InterviewRuntime = Depends(get_runtime)):
    status = await runtime.api_client.health_check()
    return status.model_dump()


@router.post("/resume/upload", response_model=ResumeUploadResponse)
async def upload_resume(file: UploadFile = File(...), runtime: InterviewRuntime = Depends(get_runtime)):
    try:
        validate_resume_file(file.filename, file.content_type)
    except UnsupportedResumeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    content = await file.read()
    try:
        validate_resume_size(len(content))
    except UnsupportedResumeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    try:
        parsed = await runtime.api_client.parse_resume(file.filename, content, file.content_type)
    except ServiceUnavailableError as exc:
        raise HTTPException(status_code=502, detail=f"Resume parsing failed: {exc}")

    profile = extract_profile(parsed)
    await runtime.set_profile(profile)
    missing = profile.missing_fields()
    if missing:
        runtime.notifier.notify("warning", f"Please fill in the missing mandatory fields: {', '.join(missing)}")
    else:
        runtime.notifier.notify("info", "Resume uploaded and processed successfully!")

    return ResumeUploadResponse(
        candidate_id=profile.candidate_id,
        profile=profile.to_dict(),
        missing_fields=missing,
        file_name=str(file.filename or ""),
        file_size=len(content),
        uploaded_at=datetime.now(timezone.utc).isoformat(),
    )


@router.put("/profile")
async def update_profile(body: ProfileUpdateRequest, runtime: InterviewRuntime = Depends(get_runtime)):
    if runtime.profile is None:
        raise HTTPException(status_code=400, detail="Please upload resume first.")

    updated = runtime.profile.with_contact(**body.model_dump())
    missing = updated.missing_fields()
    if missing:
        raise HTTPException(
            status_code=400,
            detail={
                "message": f"Please fill in the missing mandatory fields: {', '.join(missing)}",
                "missing_fields": missing,
            },
        )

    runtime.profile = updated
    runtime.notifier.notify("info", "Profile updated successfully!")
    return {"profile": updated.to_dict(), "missing_fields": []}


@router.delete("/profile")
async def clear_profile(runtime: InterviewRuntime = Depends(get_runtime)):
    await runtime.set_profile(None)
    return {"status": "cleared"}


@router.post("/interview/start")
async def start_interview(runtime: InterviewRuntime = Depends(get_runtime)):
    profile = runtime.profile
    try:
        started = await runtime.controller.start(
            profile.question_request() if profile else None,
            candidate=profile.to_dict() if profile else None,
        )
    except MissingProfileError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except SessionReplacedError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except InvalidTransitionError as exc:
        raise _conflict(exc)

    if not started:
        raise HTTPException(status_code=502, detail=START_FAILED_NOTICE)
    return runtime.state()


@router.get("/interview/state")
async def interview_state(since: float = 0.0, runtime: InterviewRuntime = Depends(get_runtime)):
    return runtime.state(since=since)


@router.post("/interview/speech/done")
async def speech_done(runtime: InterviewRuntime = Depends(get_runtime)):
    return {"acknowledged": runtime.speech_output.acknowledge()}


@router.post("/interview/speech/error")
async def speech_error(body: SpeechErrorRequest, runtime: InterviewRuntime = Depends(get_runtime)):
    return {"acknowledged": runtime.speech_output.acknowledge(error=body.reason or "speech playback failed")}


@router.get("/interview/question/audio")
async def question_audio(runtime: InterviewRuntime = Depends(get_runtime)):
    question = runtime.controller.session.current_question
    if question is None:
        raise HTTPException(status_code=409, detail="No question is active")
    try:
        audio = await synthesize_speech(question.text)
    except SpeechError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    return Response(content=audio, media_type="audio/mpeg")


@router.post("/interview/replay")
async def replay_question(runtime: InterviewRuntime = Depends(get_runtime)):
    try:
        await runtime.controller.replay_question()
    except InvalidTransitionError as exc:
        raise _conflict(exc)
    return runtime.state()


@router.post("/interview/recording/start")
async def start_recording(runtime: InterviewRuntime = Depends(get_runtime)):
    try:
        await runtime.controller.start_recording()
    except InvalidTransitionError as exc:
        raise _conflict(exc)
    return runtime.state()


@router.post("/interview/recording/partial")
async def update_partial(body: PartialTranscriptRequest, runtime: InterviewRuntime = Depends(get_runtime)):
    try:
        runtime.controller.update_partial_transcript(body.text)
    except InvalidTransitionError as exc:
        raise _conflict(exc)
    return {"status": "ok"}


@router.post("/interview/recording/stop")
async def stop_recording(runtime: InterviewRuntime = Depends(get_runtime)):
    try:
        await runtime.controller.stop_recording()
    except InvalidTransitionError as exc:
        raise _conflict(exc)
    return runtime.state()


@router.post("/interview/answer")
async def submit_answer(body: AnswerRequest, runtime: InterviewRuntime = Depends(get_runtime)):
    try:
        await runtime.controller.submit_transcript(body.text)
    except InvalidTransitionError as exc:
        raise _conflict(exc)
    return runtime.state()


@router.post("/interview/answer/audio")
async def submit_answer_audio(file: UploadFile = File(...), runtime: InterviewRuntime = Depends(get_runtime)):
    if runtime.controller.session.current_question is None:
        raise HTTPException(status_code=409, detail="No question is active")
    audio = await file.read()
    try:
        text = await transcribe_audio(audio, file_name=file.filename or "answer.webm")
    except SpeechError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    try:
        await runtime.controller.submit_transcript(text)
    except InvalidTransitionError as exc:
        raise _conflict(exc)
    return runtime.state()


@router.post("/interview/skip")
async def skip_question(runtime: InterviewRuntime = Depends(get_runtime)):
    try:
        await runtime.controller.skip()
    except InvalidTransitionError as exc:
        raise _conflict(exc)
    return runtime.state()


@router.get("/interviews")
def list_interviews(limit: int = 50, runtime: InterviewRuntime = Depends(get_runtime)):
    return {"items": runtime.store.list(limit=limit)}


@router.get("/interviews/{interview_id}")
def get_interview(interview_id: str, runtime: InterviewRuntime = Depends(get_runtime)):
    record = runtime.store.get(interview_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Interview not found")
    return record
