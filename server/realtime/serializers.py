"""
Pydantic models for the websocket protocol and the HTTP side-channel.

Wire names are camelCase (`sessionCode`, `connectionId`); Python attributes are
snake_case. Always serialize with `dump()` so aliases are applied.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

SESSION_CODE_MAX_LENGTH = 64


class WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


def dump(model: BaseModel) -> Dict[str, Any]:
    return model.model_dump(by_alias=True, exclude_none=True)


# Connection -> server

class JoinSessionRequest(WireModel):
    type: Literal["join-session"]
    session_code: str = Field(alias="sessionCode", min_length=1, max_length=SESSION_CODE_MAX_LENGTH)


class CopyTextRequest(WireModel):
    type: Literal["copy-text"]
    session_code: str = Field(alias="sessionCode", min_length=1, max_length=SESSION_CODE_MAX_LENGTH)
    text: str


class GetHistoryRequest(WireModel):
    type: Literal["get-history"]
    session_code: str = Field(alias="sessionCode", min_length=1, max_length=SESSION_CODE_MAX_LENGTH)
    request_id: Optional[str] = Field(default=None, alias="requestId")


class DebugInfoRequest(WireModel):
    type: Literal["debug-info"]


ClientMessage = Annotated[
    Union[JoinSessionRequest, CopyTextRequest, GetHistoryRequest, DebugInfoRequest],
    Field(discriminator="type"),
]
client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


# Server -> connection

class ConnectedEvent(WireModel):
    type: Literal["connected"] = "connected"
    connection_id: str = Field(alias="connectionId")


class PasteTextEvent(WireModel):
    type: Literal["paste-text"] = "paste-text"
    text: str


class SessionUpdateEvent(WireModel):
    type: Literal["session-update"] = "session-update"
    connections: int


class ErrorEvent(WireModel):
    type: Literal["error"] = "error"
    message: str


class HistoryEvent(WireModel):
    """Reply to get-history: either `history` or `error` is set."""
    type: Literal["history"] = "history"
    request_id: Optional[str] = Field(default=None, alias="requestId")
    history: Optional[List[str]] = None
    error: Optional[str] = None


class DebugInfoEvent(WireModel):
    type: Literal["debug-info"] = "debug-info"
    connection_id: str = Field(alias="connectionId")
    session: Optional[str] = None
    members: int = 0


# HTTP side-channel

class NewSessionResponse(WireModel):
    session_code: str = Field(alias="sessionCode")


class CheckSessionResponse(WireModel):
    exists: bool
    connections: int


class SessionDebugEntry(WireModel):
    created_at: str = Field(alias="createdAt")
    last_activity: str = Field(alias="lastActivity")
    connections: int
    history_size: int = Field(alias="historySize")
