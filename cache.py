# cache.py
import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

from ledger import AnswerLedger, ValidationError
from models import LookupState, LookupStatus
from study_material import ConfigurationError, StudyMaterialClient

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Failed to fetch study material. Please try again."


class EnrichmentCache:
    """
    Serves study material for missed answers, fetching it at most once per answer.

    Concurrent reveals of the same answer join the lookup already in flight.
    Results are stored on the ledger entry itself.
    """
    def __init__(self, ledger: AnswerLedger,
                 lookup: Optional[Callable[[str], Awaitable[str]]] = None):
        self.ledger = ledger
        self.lookup = lookup or StudyMaterialClient()
        self._in_flight: Dict[int, asyncio.Task] = {}
        self._status: Dict[int, LookupStatus] = {}

    def status(self, answer_id: int) -> LookupStatus:
        return self._status.get(answer_id, LookupStatus())

    def in_flight(self, answer_id: int) -> bool:
        return answer_id in self._in_flight

    async def reveal(self, answer_id: int) -> str:
        answer = self.ledger.get(answer_id)
        if answer.correct:
            raise ValidationError("Study material is only available for missed answers")

        if answer.study_material is not None:
            answer.toggle()
            logger.debug("Cache hit for answer %d", answer_id)
            return answer.study_material

        task = self._in_flight.get(answer_id)
        if task is None:
            task = asyncio.create_task(self._fetch(answer_id, answer.text))
            # Failures are already logged and recorded even when no caller is left to await
            task.add_done_callback(lambda t: t.cancelled() or t.exception())
            self._in_flight[answer_id] = task
            self._status[answer_id] = LookupStatus(LookupState.IN_FLIGHT)
        else:
            logger.debug("Joining in-flight lookup for answer %d", answer_id)

        # A cancelled caller must not cancel the lookup itself
        return await asyncio.shield(task)

    async def _fetch(self, answer_id: int, text: str) -> str:
        logger.info("Fetching study material for answer %d", answer_id)
        try:
            material = await self.lookup(text)
        except Exception as e:
            logger.exception("Error fetching study material for answer %d", answer_id)
            message = str(e) if isinstance(e, ConfigurationError) else FAILURE_MESSAGE
            self._status[answer_id] = LookupStatus(LookupState.ERROR, message)
            raise
        finally:
            self._in_flight.pop(answer_id, None)

        # Re-read the record, the ledger may have changed while suspended
        answer = self.ledger.get(answer_id)
        answer.set_study_material(material)
        answer.toggle()
        self._status[answer_id] = LookupStatus(LookupState.DONE)
        return answer.study_material
