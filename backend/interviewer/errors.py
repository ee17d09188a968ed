class InterviewError(Exception):
    """Base class for errors raised by the interview session layer."""


class ServiceUnavailableError(InterviewError):
    """The remote resume/question/scoring service could not be used."""

    def __init__(self, endpoint: str, message: str, status_code: int | None = None):
        super().__init__(f"{endpoint} failed: {message}")
        self.endpoint = endpoint
        self.status_code = status_code


class MissingProfileError(InterviewError):
    """An interview was requested before a resume was parsed."""


class InvalidTransitionError(InterviewError):
    """A candidate action arrived in a phase that does not accept it."""

    def __init__(self, action: str, phase):
        phase_value = getattr(phase, "value", phase)
        super().__init__(f"Cannot {action} while interview is {phase_value}")
        self.action = action
        self.phase = phase


class SpeechError(InterviewError):
    """Speech output or transcription failed."""


class UnsupportedResumeError(InterviewError):
    """Uploaded file is not a PDF or DOCX resume."""


class SessionReplacedError(InterviewError):
    """The session being started was cleared or replaced before it got its questions."""
