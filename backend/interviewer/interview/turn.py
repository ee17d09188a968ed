import asyncio
from enum import Enum
import uuid
import logging

logger = logging.getLogger("turn")


class TurnState(Enum):
    ACTIVE = "active"
    FINALIZING = "finalizing"
    FINALIZED = "finalized"


class QuestionTurn:
    """One question's lifetime inside a session.

    Every path that records an answer (transcription, skip, timeout) must win
    ``try_finalize`` first, so a late speech or transcription callback can
    never produce a second answer for the same question.
    """

    def __init__(self, question_index: int, question_id: int):
        self.turn_id = str(uuid.uuid4())
        self.question_index = question_index
        self.question_id = question_id
        self.state = TurnState.ACTIVE
        self.lock = asyncio.Lock()
        self.finalize_reason: str | None = None

    @property
    def is_active(self) -> bool:
        return self.state == TurnState.ACTIVE

    async def try_finalize(self, reason: str) -> bool:
        async with self.lock:
            if self.state in [TurnState.FINALIZING, TurnState.FINALIZED]:
                logger.info(f"[TURN {self.question_index}] Finalize skipped (already {self.finalize_reason}) | reason={reason}")
                return False

            logger.info(f"[TURN {self.question_index}] Transition ACTIVE → FINALIZING | reason={reason}")
            self.state = TurnState.FINALIZING
            self.finalize_reason = reason
            return True

    async def mark_finalized(self):
        async with self.lock:
            self.state = TurnState.FINALIZED
            logger.info(f"[TURN {self.question_index}] FINALIZED | reason={self.finalize_reason}")
