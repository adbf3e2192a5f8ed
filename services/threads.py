"""Thread service: thread lifecycle and AI-turn orchestration."""
from typing import Optional, List, Tuple, Dict
import logging

from sqlalchemy import desc
from sqlalchemy.orm import Session

from database import storage_errors
from errors import ValidationError, NotFoundError
from models.threads import Thread
from models.messages import Message, MessageRole
from services.completion import CompletionClient

logger = logging.getLogger(__name__)


def _require_content(content: Optional[str]) -> str:
    if content is None or not content.strip():
        raise ValidationError("Message is required")
    return content


def _as_context(messages: List[Message]) -> List[Dict[str, str]]:
    return [{"role": m.role, "content": m.content} for m in messages]


class ThreadService:
    """
    Service class for threads and their messages.

    A turn is a user message followed by the assistant's reply. No
    transaction stays open while the completion service is awaited. With
    `atomic_turns` the reply is fetched first and the whole turn (and, for a
    new conversation, the thread) is inserted in one short transaction, so an
    upstream failure leaves nothing behind. Without it the user message is
    committed before the completion call, so a failed call leaves a user
    message without a reply.
    """

    def __init__(self, completion: CompletionClient, atomic_turns: bool = True):
        self.completion = completion
        self.atomic_turns = atomic_turns

    def list_threads(self, db: Session, user_id: int) -> List[Thread]:
        """Retrieve all threads for a user, newest first."""
        with storage_errors(db, "fetch threads"):
            return db.query(Thread).filter(
                Thread.user_id == user_id
            ).order_by(
                desc(Thread.created_at), desc(Thread.id)
            ).all()

    def get_thread(self, db: Session, thread_id: int, user_id: Optional[int] = None) -> Optional[Thread]:
        """Retrieve a thread by ID."""
        with storage_errors(db, "fetch thread"):
            query = db.query(Thread).filter(Thread.id == thread_id)
            if user_id is not None:
                query = query.filter(Thread.user_id == user_id)
            return query.first()

    def get_messages(self, db: Session, thread_id: int, user_id: Optional[int] = None) -> List[Message]:
        """
        Retrieve the messages of a thread, oldest first.

        A thread that does not exist (or does not belong to `user_id`) has
        no messages.
        """
        with storage_errors(db, "fetch messages"):
            query = db.query(Message).filter(Message.thread_id == thread_id)
            if user_id is not None:
                query = query.join(Thread, Thread.id == Message.thread_id).filter(Thread.user_id == user_id)
            newest_first = query.order_by(desc(Message.created_at), desc(Message.id)).all()
        return list(reversed(newest_first))

    async def create_thread(self, db: Session, user_id: int, content: Optional[str]) -> Tuple[Thread, List[Message]]:
        """Start a conversation: create the thread, record the first turn."""
        content = _require_content(content)
        self._release(db)

        title = await self.completion.summarize_title(content)
        context = [{"role": MessageRole.USER.value, "content": content}]

        if self.atomic_turns:
            reply = await self.completion.generate_reply(context)
            with storage_errors(db, "create thread"):
                thread = self._add_thread(db, user_id, title)
                user_message = self._add_message(db, thread.id, MessageRole.USER, content)
                assistant_message = self._add_message(db, thread.id, MessageRole.ASSISTANT, reply["content"])
                db.commit()
        else:
            with storage_errors(db, "create thread"):
                thread = self._add_thread(db, user_id, title)
                user_message = self._add_message(db, thread.id, MessageRole.USER, content)
                db.commit()

            reply = await self.completion.generate_reply(context)
            with storage_errors(db, "save reply"):
                assistant_message = self._add_message(db, thread.id, MessageRole.ASSISTANT, reply["content"])
                db.commit()

        with storage_errors(db, "create thread"):
            for row in (thread, user_message, assistant_message):
                db.refresh(row)
        logger.info(f"Created thread {thread.id} for user {user_id}")
        return thread, [user_message, assistant_message]

    async def append_message(self, db: Session, thread_id: int, user_id: Optional[int], content: Optional[str]) -> List[Message]:
        """Add a user message to an existing thread and record the reply."""
        content = _require_content(content)

        if self.get_thread(db, thread_id, user_id) is None:
            raise NotFoundError("Thread not found")

        context = _as_context(self.get_messages(db, thread_id))
        context.append({"role": MessageRole.USER.value, "content": content})

        if self.atomic_turns:
            self._release(db)
            reply = await self.completion.generate_reply(context)
            with storage_errors(db, "add message"):
                # The thread may have been deleted while waiting for the reply
                if self.get_thread(db, thread_id, user_id) is None:
                    raise NotFoundError("Thread not found")
                user_message = self._add_message(db, thread_id, MessageRole.USER, content)
                assistant_message = self._add_message(db, thread_id, MessageRole.ASSISTANT, reply["content"])
                db.commit()
        else:
            with storage_errors(db, "add message"):
                user_message = self._add_message(db, thread_id, MessageRole.USER, content)
                db.commit()

            reply = await self.completion.generate_reply(context)
            with storage_errors(db, "save reply"):
                assistant_message = self._add_message(db, thread_id, MessageRole.ASSISTANT, reply["content"])
                db.commit()

        with storage_errors(db, "add message"):
            db.refresh(user_message)
            db.refresh(assistant_message)
        return [user_message, assistant_message]

    def delete_thread(self, db: Session, thread_id: int, user_id: Optional[int] = None) -> None:
        """
        Delete a thread and all its messages.

        Messages go first so none is ever left pointing at a missing
        thread. Deleting an unknown thread is a no-op.
        """
        with storage_errors(db, "delete thread"):
            if user_id is not None and self.get_thread(db, thread_id, user_id) is None:
                return
            db.query(Message).filter(Message.thread_id == thread_id).delete(synchronize_session=False)
            db.query(Thread).filter(Thread.id == thread_id).delete(synchronize_session=False)
            db.commit()
        logger.info(f"Deleted thread {thread_id}")

    def _add_thread(self, db: Session, user_id: int, title: str) -> Thread:
        thread = Thread(user_id=user_id, title=title)
        db.add(thread)
        db.flush()
        return thread

    def _add_message(self, db: Session, thread_id: int, role: MessageRole, content: str) -> Message:
        message = Message(thread_id=thread_id, role=role.value, content=content)
        db.add(message)
        db.flush()
        return message

    def _release(self, db: Session) -> None:
        """End the open read transaction so no connection is held while waiting upstream."""
        with storage_errors(db, "end transaction"):
            db.commit()
