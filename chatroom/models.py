# Pydantic models for request bodies and the documents persisted with Motor.
import time
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

BROADCAST = 'Todos'
JOIN_TEXT = 'entra na sala...'
LEAVE_TEXT = 'sai da sala...'


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


def time_of_day() -> str:
    return datetime.now().strftime('%H:%M:%S')


class ParticipantIn(BaseModel):
    name: str = Field(..., min_length=1)


class MessageIn(BaseModel):
    to: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    type: Literal['message', 'private_message']


class Participant(BaseModel):
    name: str
    last_status: int = Field(default_factory=now_ms, alias='lastStatus')

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class Message(BaseModel):
    frm: str = Field(..., alias='from')
    to: str
    text: str
    type: Literal['message', 'private_message', 'status']
    time: str = Field(default_factory=time_of_day)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


def status_message(name: str, text: str) -> Message:
    # join/leave events are system generated and skip MessageIn validation
    return Message(**{'from': name, 'to': BROADCAST, 'text': text, 'type': 'status'})
