# models.py
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

CORRECT_ANSWER_TEXT = "Correct Answer"


def additional_info(text: str) -> str:
    return f"This is additional info about {text}."


class Answer:
    """
    A tracked quiz answer, correct or missed.

    Identity fields are read-only. Study material and info are set once
    through their setters; visibility changes only through toggle().
    """
    def __init__(self, id: int, correct: bool, text: str, created_on: date):
        self._id = id
        self._correct = correct
        self._text = text
        self._created_on = created_on
        self._visible = False
        self._study_material: Optional[str] = None
        self._info: Optional[str] = None

    @property
    def id(self) -> int:
        return self._id

    @property
    def correct(self) -> bool:
        return self._correct

    @property
    def text(self) -> str:
        return self._text

    @property
    def created_on(self) -> date:
        return self._created_on

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def study_material(self) -> Optional[str]:
        return self._study_material

    @property
    def info(self) -> Optional[str]:
        return self._info

    def set_study_material(self, material: str) -> bool:
        """
        Store study material on a missed answer.

        The first write wins; later writes are ignored.

        Returns:
            bool: True if this call stored the material
        """
        if self._correct:
            raise ValueError("Correct answers do not carry study material")
        if self._study_material is not None:
            return False
        self._study_material = material
        return True

    def set_info(self, info: str) -> str:
        if self._info is None:
            self._info = info
        return self._info

    def toggle(self) -> bool:
        self._visible = not self._visible
        return self._visible

    def __repr__(self):
        return (f"Answer(id={self._id!r}, correct={self._correct!r}, text={self._text!r}, "
                f"created_on={self._created_on!r}, visible={self._visible!r})")


class LookupState(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    ERROR = "error"
    DONE = "done"


@dataclass(frozen=True)
class LookupStatus:
    """Enrichment status of a single answer id."""
    state: LookupState = LookupState.IDLE
    message: Optional[str] = None
