from datetime import date
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, validator
from dotenv import load_dotenv

import logging

from auth import basic_auth_gate
from cache import FAILURE_MESSAGE, EnrichmentCache
from ledger import AnswerLedger, NotFound, ValidationError
from models import Answer
from study_material import ConfigurationError, LookupFailure, StudyMaterialClient

load_dotenv()
logger = logging.getLogger(__name__)

app = FastAPI(title="Quiz Review Tracker")

# The gate sits inside CORS: preflights are answered by CORS, every
# other request must pass the gate
app.middleware("http")(basic_auth_gate)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# In-memory state for the lifetime of the process
ledger = AnswerLedger()
study_cache = EnrichmentCache(ledger, StudyMaterialClient())


class MissedAnswerRequest(BaseModel):
    text: str

    @validator('text')
    def strip_text(cls, v):
        return v.strip()


class AnswerResponse(BaseModel):
    id: int
    correct: bool
    text: str
    created_on: str
    visible: bool
    study_material: Optional[str] = None
    info: Optional[str] = None
    status: str


def serialize(answer: Answer) -> AnswerResponse:
    return AnswerResponse(
        id=answer.id,
        correct=answer.correct,
        text=answer.text,
        created_on=answer.created_on.isoformat(),
        visible=answer.visible,
        study_material=answer.study_material,
        info=answer.info,
        status=study_cache.status(answer.id).state.value,
    )


@app.get("/")
async def health_check():
    return {"status": "healthy", "message": "Quiz Review Tracker is running"}


@app.get("/answers", response_model=List[AnswerResponse])
async def list_answers(day: Optional[date] = Query(None, alias="date")):
    """List recorded answers, optionally only those logged on one UTC day"""
    return [serialize(answer) for answer in ledger.filter_by_date(day)]


@app.post("/answers/correct", response_model=AnswerResponse)
async def add_correct_answer():
    return serialize(ledger.add_correct())


@app.post("/answers/missed", response_model=AnswerResponse)
async def add_missed_answer(request: MissedAnswerRequest):
    answer = ledger.add_missed(request.text)
    if answer is None:
        raise HTTPException(status_code=400, detail="Missed answer text cannot be empty")
    return serialize(answer)


@app.post("/answers/{answer_id}/visibility", response_model=AnswerResponse)
async def toggle_visibility(answer_id: int):
    answer = ledger.toggle_visibility(answer_id)
    if answer is None:
        raise HTTPException(status_code=404, detail=f"Unknown answer id: {answer_id}")
    return serialize(answer)


@app.get("/answers/{answer_id}/info")
async def get_additional_info(answer_id: int):
    try:
        return {"id": answer_id, "info": ledger.info(answer_id)}
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/answers/{answer_id}/study-material")
async def reveal_study_material(answer_id: int):
    """
    Return study material for a missed answer.

    The first call fetches it from OpenAI; later calls are served from the
    answer itself and toggle its visibility.
    """
    try:
        material = await study_cache.reveal(answer_id)
        answer = ledger.get(answer_id)
        return {
            "id": answer_id,
            "study_material": material,
            "visible": answer.visible,
            "status": study_cache.status(answer_id).state.value,
        }
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except LookupFailure:
        raise HTTPException(status_code=502, detail=FAILURE_MESSAGE)
    except Exception as e:
        logger.exception("Unexpected error revealing study material for %d", answer_id)
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/answers/{answer_id}/status")
async def get_lookup_status(answer_id: int):
    if answer_id not in ledger:
        raise HTTPException(status_code=404, detail=f"Unknown answer id: {answer_id}")
    status = study_cache.status(answer_id)
    return {
        "id": answer_id,
        "status": status.state.value,
        "message": status.message,
        "in_flight": study_cache.in_flight(answer_id),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8080, reload=False)
