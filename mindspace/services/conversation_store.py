# conversation_store.py
#
# Conversation documents live under users/{uid}/conversations/{id}.
# Each document holds the full ordered message list; appends go through
# ArrayUnion so concurrent writers never overwrite each other.

from typing import Callable, List, Optional

from google.api_core.exceptions import NotFound
from google.cloud import firestore

from mindspace.errors import ConversationNotFoundError, ValidationError
from mindspace.models.chat import Conversation, ConversationListItem, Message, message_preview, utcnow
from mindspace.utils.logger import logger

TITLE_MAX_WORDS = 6
TITLE_MAX_LENGTH = 50


def generate_title(content: str) -> str:
    """First six words of the message, cut to 50 characters with an ellipsis."""
    title = " ".join(content.split()[:TITLE_MAX_WORDS])
    if len(title) > TITLE_MAX_LENGTH:
        title = title[:TITLE_MAX_LENGTH - 3] + "..."
    return title


def _require(value: str, name: str):
    if not value:
        raise ValidationError(f"{name} is required", field=name)


def _to_conversation(snapshot) -> Conversation:
    # The document id is authoritative; the stored "id" field may be absent
    return Conversation.model_validate({**(snapshot.to_dict() or {}), "id": snapshot.id})


def _to_list_item(snapshot) -> ConversationListItem:
    data = snapshot.to_dict() or {}
    return ConversationListItem(
        id=snapshot.id,
        title=data.get("title", ""),
        updated_at=data.get("updatedAt"),
        last_message=message_preview(data.get("lastMessage")),
    )


class Subscription:
    """Handle for a snapshot listener. unsubscribe() is safe to call twice."""

    def __init__(self, watch, description: str):
        self._watch = watch
        self.description = description
        self.active = True

    def unsubscribe(self):
        if not self.active:
            return
        self.active = False
        self._watch.unsubscribe()
        logger.debug(f"Unsubscribed from {self.description}")


class ConversationRepository:
    """CRUD and live subscriptions for one Firestore client."""

    def __init__(self, db: firestore.Client):
        self.db = db

    def _conversations_ref(self, user_id: str):
        return self.db.collection("users").document(user_id).collection("conversations")

    def _conversation_ref(self, user_id: str, conversation_id: str):
        return self._conversations_ref(user_id).document(conversation_id)

    def create_conversation(self, user_id: str, initial_message: Message) -> str:
        _require(user_id, "user_id")
        if not isinstance(initial_message, Message) or not initial_message.content.strip():
            raise ValidationError("Initial message must have content", field="initial_message")

        conversation_ref = self._conversations_ref(user_id).document()
        now = utcnow()
        conversation = Conversation(
            id=conversation_ref.id,
            title=generate_title(initial_message.content),
            created_at=now,
            updated_at=now,
            messages=[initial_message],
            user_id=user_id,
            last_message=initial_message.content,
        )
        conversation_ref.set(conversation.to_document())
        logger.info(f"✅ Created conversation {conversation_ref.id} for user {user_id}")
        return conversation_ref.id

    def get_conversations(self, user_id: str) -> List[ConversationListItem]:
        _require(user_id, "user_id")
        query = self._conversations_ref(user_id).order_by(
            "updatedAt", direction=firestore.Query.DESCENDING
        )
        return [_to_list_item(doc) for doc in query.stream()]

    def get_conversation(self, user_id: str, conversation_id: str) -> Optional[Conversation]:
        _require(user_id, "user_id")
        _require(conversation_id, "conversation_id")
        doc = self._conversation_ref(user_id, conversation_id).get()
        if not doc.exists:
            logger.debug(f"Conversation {conversation_id} not found for user {user_id}")
            return None
        return _to_conversation(doc)

    def add_message(self, user_id: str, conversation_id: str, message: Message):
        _require(user_id, "user_id")
        _require(conversation_id, "conversation_id")
        try:
            self._conversation_ref(user_id, conversation_id).update({
                "messages": firestore.ArrayUnion([message.to_document()]),
                "updatedAt": utcnow(),
                "lastMessage": message.content,
            })
        except NotFound:
            logger.warning(f"❌ Cannot append to missing conversation {conversation_id}")
            raise ConversationNotFoundError(conversation_id)
        logger.debug(f"Appended {message.role} message {message.id} to {conversation_id}")

    def update_conversation_title(self, user_id: str, conversation_id: str, new_title: str):
        _require(user_id, "user_id")
        _require(conversation_id, "conversation_id")
        if not new_title or not new_title.strip():
            raise ValidationError("Title cannot be empty", field="title")
        try:
            self._conversation_ref(user_id, conversation_id).update({
                "title": new_title.strip(),
                "updatedAt": utcnow(),
            })
        except NotFound:
            raise ConversationNotFoundError(conversation_id)

    def delete_conversation(self, user_id: str, conversation_id: str):
        _require(user_id, "user_id")
        _require(conversation_id, "conversation_id")
        self._conversation_ref(user_id, conversation_id).delete()
        logger.info(f"🗑️ Deleted conversation {conversation_id} for user {user_id}")

    def delete_all_conversations(self, user_id: str) -> int:
        """
        Delete every conversation one at a time. Not atomic: an error part
        way through propagates and leaves the earlier deletes in place.
        """
        _require(user_id, "user_id")
        deleted = 0
        for item in self.get_conversations(user_id):
            self.delete_conversation(user_id, item.id)
            deleted += 1
        logger.info(f"🗑️ Deleted {deleted} conversations for user {user_id}")
        return deleted

    def subscribe_to_conversation(
        self,
        user_id: str,
        conversation_id: str,
        callback: Callable[[Conversation], None],
        on_deleted: Optional[Callable[[], None]] = None,
    ) -> Subscription:
        """
        Deliver the full conversation on every remote change. Snapshots of a
        missing document are not passed to callback; on_deleted, when given,
        is called instead. Nothing is replayed while detached.
        """
        _require(user_id, "user_id")
        _require(conversation_id, "conversation_id")

        def on_snapshot(doc_snapshots, changes, read_time):
            for doc in doc_snapshots:
                try:
                    if doc.exists:
                        callback(_to_conversation(doc))
                    elif on_deleted is not None:
                        on_deleted()
                except Exception as e:
                    logger.error(f"❌ Error in conversation subscription: {e}", exc_info=True)

        watch = self._conversation_ref(user_id, conversation_id).on_snapshot(on_snapshot)
        return Subscription(watch, f"conversation {conversation_id}")

    def subscribe_to_conversations(
        self,
        user_id: str,
        callback: Callable[[List[ConversationListItem]], None],
    ) -> Subscription:
        """Deliver the full, newest-first conversation list on every change."""
        _require(user_id, "user_id")
        query = self._conversations_ref(user_id).order_by(
            "updatedAt", direction=firestore.Query.DESCENDING
        )

        def on_snapshot(query_snapshot, changes, read_time):
            try:
                callback([_to_list_item(doc) for doc in query_snapshot])
            except Exception as e:
                logger.error(f"❌ Error in conversations subscription: {e}", exc_info=True)

        watch = query.on_snapshot(on_snapshot)
        return Subscription(watch, f"conversations of {user_id}")
