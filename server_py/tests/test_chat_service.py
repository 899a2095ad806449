"""Tests for the conversation store."""

import pytest
from sqlalchemy import func, select

from onboard.core.database import utcnow
from onboard.core.errors import AuthorizationError, NotFoundError, ValidationError
from onboard.core.security import ROLE_ADMIN, ROLE_USER, Identity
from onboard.models.chat_message import ChatMessage
from onboard.services.chat import (
    ChatService,
    conversation_id_for,
    ensure_conversation_access,
    user_id_from_conversation,
)


def as_identity(user) -> Identity:
    return Identity(user_id=user.id, role=user.role)


async def count_messages(db) -> int:
    return (await db.execute(select(func.count()).select_from(ChatMessage))).scalar_one()


class TestConversationIds:
    def test_derived_from_user_id(self) -> None:
        assert conversation_id_for(42) == "user_42"
        assert user_id_from_conversation("user_42") == 42

    @pytest.mark.parametrize("conversation_id", ["", "42", "user_", "user_abc", "admin_1"])
    def test_malformed_ids_are_not_found(self, conversation_id: str) -> None:
        with pytest.raises(NotFoundError):
            user_id_from_conversation(conversation_id)

    def test_user_limited_to_own_thread(self) -> None:
        ensure_conversation_access(Identity(1, ROLE_USER), "user_1")
        ensure_conversation_access(Identity(9, ROLE_ADMIN), "user_1")
        with pytest.raises(AuthorizationError):
            ensure_conversation_access(Identity(2, ROLE_USER), "user_1")


class TestAppendMessage:
    async def test_persists_with_server_fields(self, db, alice) -> None:
        before = utcnow()
        service = ChatService(db)

        message = await service.append_message(as_identity(alice), conversation_id_for(alice.id), "Hello")

        assert message.id is not None
        assert message.created_at >= before
        assert message.sender_role == ROLE_USER
        assert message.conversation_id == f"user_{alice.id}"
        assert message.read is False

        listed = await service.list_messages(conversation_id_for(alice.id), limit=100, reader_role=ROLE_USER)
        assert [(m.id, m.message) for m in listed] == [(message.id, "Hello")]

    async def test_accepts_max_length(self, db, alice) -> None:
        text = "x" * 2000
        message = await ChatService(db).append_message(as_identity(alice), conversation_id_for(alice.id), text)
        assert message.message == text

    @pytest.mark.parametrize("text", ["", "   ", "x" * 2001, "x" * 2000 + " ", " " * 5 + "x" * 1996])
    async def test_rejects_bad_length_and_persists_nothing(self, db, alice, text: str) -> None:
        with pytest.raises(ValidationError):
            await ChatService(db).append_message(as_identity(alice), conversation_id_for(alice.id), text)
        assert await count_messages(db) == 0

    async def test_rejects_role_mismatch(self, db, alice) -> None:
        with pytest.raises(ValidationError):
            await ChatService(db).append_message(
                as_identity(alice), conversation_id_for(alice.id), "hi", sender_role=ROLE_ADMIN
            )
        assert await count_messages(db) == 0

    async def test_user_cannot_write_into_other_thread(self, db, alice, bob) -> None:
        with pytest.raises(AuthorizationError):
            await ChatService(db).append_message(as_identity(alice), conversation_id_for(bob.id), "hi")

    async def test_body_is_trimmed(self, db, alice) -> None:
        message = await ChatService(db).append_message(as_identity(alice), conversation_id_for(alice.id), "  hi  ")
        assert message.message == "hi"


class TestListMessages:
    async def test_order_and_content_preserved(self, db, alice, admin) -> None:
        service = ChatService(db)
        conversation = conversation_id_for(alice.id)
        sent = []
        for i in range(5):
            author = alice if i % 2 == 0 else admin
            sent.append(await service.append_message(as_identity(author), conversation, f"m{i}"))

        listed = await service.list_messages(conversation, limit=100, reader_role=ROLE_ADMIN)

        assert [m.id for m in listed] == [m.id for m in sent]
        assert [m.message for m in listed] == ["m0", "m1", "m2", "m3", "m4"]
        stamps = [m.created_at for m in listed]
        assert stamps == sorted(stamps)

    async def test_limit_keeps_most_recent(self, db, alice) -> None:
        service = ChatService(db)
        conversation = conversation_id_for(alice.id)
        for i in range(5):
            await service.append_message(as_identity(alice), conversation, f"m{i}")

        listed = await service.list_messages(conversation, limit=3, reader_role=ROLE_USER)

        assert [m.message for m in listed] == ["m2", "m3", "m4"]

    async def test_marks_only_counterpart_messages_read(self, db, alice, admin) -> None:
        service = ChatService(db)
        conversation = conversation_id_for(alice.id)
        await service.append_message(as_identity(alice), conversation, "question")
        await service.append_message(as_identity(admin), conversation, "answer")

        await service.list_messages(conversation, limit=100, reader_role=ROLE_USER)

        rows = (await db.execute(select(ChatMessage).order_by(ChatMessage.id))).scalars().all()
        assert [(m.sender_role, m.read) for m in rows] == [(ROLE_USER, False), (ROLE_ADMIN, True)]

    async def test_read_marking_is_idempotent(self, db, alice, admin) -> None:
        service = ChatService(db)
        conversation = conversation_id_for(alice.id)
        await service.append_message(as_identity(alice), conversation, "hello")

        first = await service.list_messages(conversation, limit=200, reader_role=ROLE_ADMIN)
        second = await service.list_messages(conversation, limit=200, reader_role=ROLE_ADMIN)

        assert first[0].read is False
        assert second[0].read is True
        assert await service.mark_read(conversation, ROLE_USER) == 0


class TestListConversations:
    async def test_summaries_sorted_by_recency(self, db, alice, bob, admin) -> None:
        service = ChatService(db)
        alice_thread = conversation_id_for(alice.id)
        bob_thread = conversation_id_for(bob.id)
        await service.append_message(as_identity(alice), alice_thread, "first")
        await service.append_message(as_identity(alice), alice_thread, "second")
        await service.append_message(as_identity(admin), alice_thread, "reply")
        await service.append_message(as_identity(bob), bob_thread, "bob here")

        summaries = await service.list_conversations()

        assert [s["conversation_id"] for s in summaries] == [bob_thread, alice_thread]
        bob_summary, alice_summary = summaries
        assert bob_summary["last_message"] == "bob here"
        assert bob_summary["unread_count"] == 1
        assert bob_summary["user_name"] == "Bob"
        assert alice_summary["last_message"] == "reply"
        assert alice_summary["unread_count"] == 2
        assert alice_summary["user_id"] == str(alice.id)
        assert alice_summary["user_email"] == "alice@example.com"

    async def test_unread_count_drops_after_admin_reads(self, db, alice) -> None:
        service = ChatService(db)
        conversation = conversation_id_for(alice.id)
        await service.append_message(as_identity(alice), conversation, "ping")

        await service.list_messages(conversation, limit=200, reader_role=ROLE_ADMIN)

        (summary,) = await service.list_conversations()
        assert summary["unread_count"] == 0

    async def test_empty_store(self, db) -> None:
        assert await ChatService(db).list_conversations() == []
