from __future__ import annotations

import datetime as dt
from typing import Any, AsyncGenerator

from aiogram import Bot
from aiogram.client.session.base import BaseSession
from aiogram.methods import AnswerCallbackQuery, SendMessage
from aiogram.types import Chat, InlineKeyboardMarkup, Message, User


class RecordingSession(BaseSession):
    """Bot session that never touches the network and keeps what the bot sent."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.messages_by_chat: dict[int, list[Message]] = {}
        self.callback_answers: list[str | None] = []
        self._message_ids: dict[int, int] = {}

    async def close(self) -> None:
        return None

    async def stream_content(
        self,
        url: str,
        headers: dict[str, Any] | None = None,
        timeout: int = 30,
        chunk_size: int = 65536,
        raise_for_status: bool = True,
    ) -> AsyncGenerator[bytes, None]:
        if False:
            yield b""
        return

    def texts(self, chat_id: int) -> list[str]:
        return [m.text or "" for m in self.messages_by_chat.get(chat_id, [])]

    def _sent_message(self, chat_id: int, text: str | None, reply_markup: Any) -> Message:
        if isinstance(reply_markup, dict):
            reply_markup = InlineKeyboardMarkup.model_validate(reply_markup)
        message_id = self._message_ids.get(chat_id, 0) + 1
        self._message_ids[chat_id] = message_id
        message = Message.model_validate(
            {
                "message_id": message_id,
                "date": dt.datetime.now(tz=dt.timezone.utc),
                "chat": Chat.model_validate({"id": chat_id, "type": "private"}),
                "from": {"id": 0, "is_bot": True, "first_name": "Hablar", "username": "hablar_bot"},
                "text": text,
                "reply_markup": reply_markup,
            }
        )
        self.messages_by_chat.setdefault(chat_id, []).append(message)
        return message

    async def make_request(self, bot: Bot, method: Any, timeout: int | None = None) -> Any:
        payload = method.model_dump(exclude_none=True)
        self.calls.append((method.__class__.__name__, payload))

        if isinstance(method, SendMessage):
            return self._sent_message(int(payload["chat_id"]), payload.get("text"), payload.get("reply_markup"))
        if isinstance(method, AnswerCallbackQuery):
            self.callback_answers.append(payload.get("text"))
            return True
        return True
