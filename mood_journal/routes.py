import logging
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from typing import List, Optional
from mood_journal import schemas
from mood_journal.crud import JournalStore, TaskStore
from mood_journal.database import Database, get_database
from mood_journal.errors import UpstreamServiceError
from mood_journal.services import journal_service, task_service
from mood_journal.services.chat_service import APOLOGY_REPLY, ChatRelay

logger = logging.getLogger("routes")
router = APIRouter(prefix="/api", tags=["Core"])


def get_task_store(database: Database = Depends(get_database)) -> TaskStore:
    return TaskStore(database)


def get_journal_store(database: Database = Depends(get_database)) -> JournalStore:
    return JournalStore(database)


def get_chat_relay(request: Request) -> ChatRelay:
    return request.app.state.chat_relay


# --- Tasks -------------------------------------------------------------------

@router.get("/tasks", response_model=List[schemas.TaskOut])
async def get_tasks(store: TaskStore = Depends(get_task_store)):
    return await task_service.list_tasks(store)


@router.post("/tasks", response_model=schemas.TaskOut, status_code=201)
async def post_task(body: schemas.TaskCreate, store: TaskStore = Depends(get_task_store)):
    return await task_service.create_task(
        store, body.text, done=body.done, created_at=body.created_at, source=body.source
    )


@router.get("/tasks/weekly", response_model=List[schemas.WeeklyDayOut])
async def get_weekly(store: TaskStore = Depends(get_task_store)):
    return await task_service.weekly_counts(store)


@router.patch("/tasks/{task_id}", response_model=Optional[schemas.TaskOut])
async def patch_task(task_id: int, body: schemas.TaskUpdate, store: TaskStore = Depends(get_task_store)):
    # An unknown id answers 200 with a null body
    return await task_service.update_task(store, task_id, text=body.text, done=body.done)


@router.delete("/tasks/{task_id}", status_code=204, response_class=Response)
async def delete_task(task_id: int, store: TaskStore = Depends(get_task_store)):
    await task_service.delete_task(store, task_id)
    return Response(status_code=204)


# --- Journal -----------------------------------------------------------------

@router.post("/journal", response_model=schemas.JournalOut)
async def post_journal(body: schemas.JournalSave, store: JournalStore = Depends(get_journal_store)):
    return await journal_service.save_entry(store, body.date_key, mood=body.mood, note=body.note)


@router.get("/journal/{date_key}", response_model=schemas.JournalOut)
async def get_journal(date_key: str, store: JournalStore = Depends(get_journal_store)):
    return await journal_service.get_entry(store, date_key)


# --- Chat --------------------------------------------------------------------

@router.post("/chat", response_model=schemas.ChatReply, responses={500: {"model": schemas.ChatErrorOut}})
async def post_chat(body: schemas.ChatRequest, relay: ChatRelay = Depends(get_chat_relay)):
    try:
        reply = await relay.complete(body.messages)
    except UpstreamServiceError as e:
        logger.error("POST /api/chat error: %s", e.__cause__ or e)
        return JSONResponse(status_code=500, content={"error": e.message, "reply": APOLOGY_REPLY})
    return {"reply": reply}
