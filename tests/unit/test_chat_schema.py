"""Unit tests for chat value objects."""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from chat_sync.schemas.chat_schema import Chat, Message, SendResult


def _message(**overrides: object) -> Message:
    fields: dict[str, object] = {
        "id": "m1",
        "chat_id": "c1",
        "content": "hi",
        "sender": "user",
        "created_at": datetime(2026, 1, 1, tzinfo=UTC),
    }
    fields.update(overrides)
    return Message.model_validate(fields)


class TestMessage:
    def test_naive_timestamp_treated_as_utc(self) -> None:
        message = _message(created_at=datetime(2026, 1, 1, 8, 0))
        assert message.created_at == datetime(2026, 1, 1, 8, 0, tzinfo=UTC)

    def test_offset_timestamp_converted_to_utc(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        message = _message(created_at=datetime(2026, 1, 1, 10, 0, tzinfo=plus_two))
        assert message.created_at == datetime(2026, 1, 1, 8, 0, tzinfo=UTC)
        assert message.created_at.tzinfo == UTC

    def test_rejects_unknown_sender(self) -> None:
        with pytest.raises(ValidationError):
            _message(sender="system")

    def test_frozen(self) -> None:
        message = _message()
        with pytest.raises(ValidationError):
            message.content = "edited"  # type: ignore[misc]

    def test_json_roundtrip(self) -> None:
        message = _message()
        assert Message.model_validate_json(message.model_dump_json()) == message


class TestChat:
    def test_from_attributes(self) -> None:
        class Row:
            id = "c1"
            user_id = "u1"
            title = "Chat"
            created_at = datetime(2026, 1, 1)

        chat = Chat.model_validate(Row())
        assert chat.created_at.tzinfo == UTC


class TestSendResult:
    def test_ai_message_optional(self) -> None:
        result = SendResult(user_message=_message())
        assert result.ai_message is None
        assert result.used_fallback is False
