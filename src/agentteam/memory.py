"""
Shared Conversation Memory
==========================

A caller-supplied, lock-guarded handle to a conversation log.

The team executor only ever reads through this handle, under a short-lived
lock, to seed its children's inputs with chat history. Writes made by
children during a team run are the caller's concern.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Dict, List

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """One entry of a conversation log."""

    role: str
    content: str
    timestamp: float = Field(default_factory=time.time)


class ConversationMemory(ABC):
    """Storage interface for a conversation log."""

    @abstractmethod
    def messages(self) -> List[ChatMessage]: ...

    @abstractmethod
    def add_message(self, message: ChatMessage) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...


class InMemoryConversation(ConversationMemory):
    """Bounded in-process conversation log."""

    def __init__(self, max_messages: int | None = None):
        self.max_messages = max_messages
        self._messages: List[ChatMessage] = []

    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    def add_message(self, message: ChatMessage) -> None:
        self._messages.append(message)
        if self.max_messages is not None and len(self._messages) > self.max_messages:
            self._messages = self._messages[-self.max_messages :]

    def add_user_message(self, content: str) -> None:
        self.add_message(ChatMessage(role="user", content=content))

    def add_ai_message(self, content: str) -> None:
        self.add_message(ChatMessage(role="assistant", content=content))

    def clear(self) -> None:
        self._messages.clear()


class SharedMemory:
    """Exclusive-access handle around a ConversationMemory.

    Usage:
        shared = SharedMemory(InMemoryConversation())
        async with shared.lock():
            shared.memory.add_message(ChatMessage(role="user", content="hi"))
        history = await shared.snapshot()
    """

    def __init__(self, memory: ConversationMemory):
        self.memory = memory
        self._lock = asyncio.Lock()

    def lock(self) -> asyncio.Lock:
        return self._lock

    async def snapshot(self) -> List[Dict[str, str]]:
        """Copy the current log as plain dicts while holding the lock."""
        async with self._lock:
            return [
                {"role": m.role, "content": m.content}
                for m in self.memory.messages()
            ]

    def __repr__(self) -> str:
        return f"SharedMemory({type(self.memory).__name__})"
