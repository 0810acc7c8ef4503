import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def message_preview(value) -> str:
    """Older documents store lastMessage as a whole message map; keep only its text."""
    if isinstance(value, dict):
        value = value.get("content")
    return value or ""


class FirestoreModel(BaseModel):
    """Base for documents stored with camelCase field names."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Message(FirestoreModel):
    """A single chat message. Never edited after creation."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utcnow)


class Conversation(FirestoreModel):
    """Full conversation document under users/{uid}/conversations/{id}."""
    id: str
    title: str
    created_at: datetime
    updated_at: datetime
    messages: List[Message] = Field(default_factory=list)
    user_id: str
    last_message: str = ""

    @field_validator("last_message", mode="before")
    @classmethod
    def normalize_last_message(cls, value):
        return message_preview(value)


class ConversationListItem(FirestoreModel):
    """Projection of a conversation used for list views."""
    id: str
    title: str
    updated_at: Optional[datetime] = None
    last_message: str = ""

    @field_validator("last_message", mode="before")
    @classmethod
    def normalize_last_message(cls, value):
        return message_preview(value)


class SendMessageRequest(BaseModel):
    message: str
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")

    model_config = ConfigDict(populate_by_name=True)


class SendMessageResponse(FirestoreModel):
    conversation_id: str
    user_message: Message
    assistant_message: Message


class AddMessageRequest(BaseModel):
    role: MessageRole = MessageRole.USER
    content: str


class UpdateTitleRequest(BaseModel):
    title: str
