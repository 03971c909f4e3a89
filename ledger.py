# ledger.py
import logging
import time
from datetime import date, datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from models import CORRECT_ANSWER_TEXT, Answer, additional_info

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    pass


class ValidationError(LedgerError):
    pass


class NotFound(LedgerError):
    def __init__(self, answer_id: int):
        super().__init__(f"Unknown answer id: {answer_id}")
        self.answer_id = answer_id


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def filter_by_date(answers: Iterable[Answer], day: Optional[date] = None) -> List[Answer]:
    """
    Select the answers logged on a given calendar day

    Args:
        answers: Answers in ledger order
        day: Calendar day to match exactly, or None for no filter

    Returns:
        List[Answer]: Matching answers, order preserved
    """
    if day is None:
        return list(answers)
    return [answer for answer in answers if answer.created_on == day]


class AnswerLedger:
    """
    Append-only, ordered collection of answers.

    Days are UTC calendar days unless another `today` callable is supplied.
    """
    def __init__(self, today: Optional[Callable[[], date]] = None,
                 clock_ms: Optional[Callable[[], int]] = None):
        self._today = today or utc_today
        self._clock_ms = clock_ms or _now_ms
        self._answers: Dict[int, Answer] = {}
        self._last_id = 0

    def _next_id(self) -> int:
        # Ids follow the clock but must stay strictly increasing
        self._last_id = max(self._clock_ms(), self._last_id + 1)
        return self._last_id

    def _append(self, correct: bool, text: str) -> Answer:
        answer = Answer(
            id=self._next_id(),
            correct=correct,
            text=text,
            created_on=self._today(),
        )
        self._answers[answer.id] = answer
        logger.info("Recorded %s answer %d on %s",
                    "correct" if correct else "missed", answer.id, answer.created_on)
        return answer

    def add_correct(self) -> Answer:
        return self._append(True, CORRECT_ANSWER_TEXT)

    def add_missed(self, text: str, strict: bool = False) -> Optional[Answer]:
        cleaned = (text or "").strip()
        if not cleaned:
            if strict:
                raise ValidationError("Missed answer text cannot be empty")
            logger.debug("Ignoring empty missed answer")
            return None
        return self._append(False, cleaned)

    def get(self, answer_id: int) -> Answer:
        answer = self._answers.get(answer_id)
        if answer is None:
            raise NotFound(answer_id)
        return answer

    def toggle_visibility(self, answer_id: int, strict: bool = False) -> Optional[Answer]:
        answer = self._answers.get(answer_id)
        if answer is None:
            if strict:
                raise NotFound(answer_id)
            return None
        answer.toggle()
        return answer

    def info(self, answer_id: int) -> str:
        """Return the additional info for a missed answer, filling it on first use"""
        answer = self.get(answer_id)
        if answer.correct:
            raise ValidationError("Additional info is only available for missed answers")
        return answer.set_info(additional_info(answer.text))

    def list(self) -> List[Answer]:
        return list(self._answers.values())

    def filter_by_date(self, day: Optional[date] = None) -> List[Answer]:
        return filter_by_date(self._answers.values(), day)

    def __len__(self) -> int:
        return len(self._answers)

    def __contains__(self, answer_id) -> bool:
        return answer_id in self._answers
