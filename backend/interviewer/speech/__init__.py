from interviewer.speech.base import SpeechInput, SpeechOutput
from interviewer.speech.relay import ClientSpeechOutput, ClientTranscriptionInput

__all__ = ["ClientSpeechOutput", "ClientTranscriptionInput", "SpeechInput", "SpeechOutput"]
