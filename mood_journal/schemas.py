from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr
from typing import Any, Optional, Union
from datetime import datetime


# ---------------------------------------------------------------------------
# Task Schemas
# ---------------------------------------------------------------------------
class TaskCreate(BaseModel):
    text: Optional[StrictStr] = Field(None, description="Task text; required and non-empty")
    done: Optional[bool] = Field(False, description="Whether the task starts out completed")
    created_at: Optional[Union[str, float]] = Field(None, alias="createdAt", description="Client creation time (ISO-8601 or epoch)")
    source: Optional[str] = Field("web", description="Origin of the task: 'web' or 'extension'")

    model_config = ConfigDict(populate_by_name=True)


class TaskUpdate(BaseModel):
    text: Optional[StrictStr] = Field(None, description="Updated task text")
    done: Optional[StrictBool] = Field(None, description="New completion state")


class TaskOut(BaseModel):
    id: int = Field(..., description="Unique identifier for the task")
    text: str = Field(..., description="The content of the task")
    done: bool = Field(..., description="Whether the task is completed")
    created_at: datetime = Field(..., description="Timestamp when the task was created")
    source: str = Field("web", description="Which surface created the task")

    model_config = ConfigDict(from_attributes=True)


class WeeklyDayOut(BaseModel):
    day: str = Field(..., description="Calendar date (YYYY-MM-DD)")
    completed: int = Field(..., description="Tasks created that day and marked done")


# ---------------------------------------------------------------------------
# Journal Schemas
# ---------------------------------------------------------------------------
class JournalSave(BaseModel):
    date_key: Optional[str] = Field(None, alias="dateKey", description="Calendar date the entry belongs to")
    mood: Optional[int] = Field(None, description="Mood on a 1-5 scale")
    note: Optional[str] = Field(None, description="Free-text note for the day")

    model_config = ConfigDict(populate_by_name=True)


class JournalOut(BaseModel):
    id: int = Field(..., description="Unique identifier for the journal entry")
    date_key: str = Field(..., description="Calendar date of the entry")
    mood: Optional[int] = Field(None, description="Mood on a 1-5 scale")
    note: Optional[str] = Field(None, description="Free-text note")
    created_at: datetime = Field(..., description="When the entry was first saved")
    updated_at: datetime = Field(..., description="When the entry was last saved")

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Chat Schemas
# ---------------------------------------------------------------------------
class ChatRequest(BaseModel):
    # Malformed entries are skipped by the relay
    messages: Any = Field(None, description="Conversation so far, oldest first: [{role, content}]")


class ChatReply(BaseModel):
    reply: str = Field(..., description="Assistant reply")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
class ErrorOut(BaseModel):
    error: str = Field(..., description="Human-readable error message")


class ChatErrorOut(ErrorOut):
    reply: str = Field(..., description="Fallback reply to show the user")
