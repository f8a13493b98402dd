"""Tests for the shared conversation memory handle."""

import asyncio

import pytest

from agentteam import ChatMessage, InMemoryConversation, SharedMemory


class TestInMemoryConversation:
    def test_roles(self):
        memory = InMemoryConversation()
        memory.add_user_message("question")
        memory.add_ai_message("answer")
        assert [(m.role, m.content) for m in memory.messages()] == [
            ("user", "question"),
            ("assistant", "answer"),
        ]

    def test_bounded(self):
        memory = InMemoryConversation(max_messages=2)
        for i in range(5):
            memory.add_message(ChatMessage(role="user", content=str(i)))
        assert [m.content for m in memory.messages()] == ["3", "4"]

    def test_messages_returns_copy(self):
        memory = InMemoryConversation()
        memory.add_user_message("x")
        memory.messages().clear()
        assert len(memory.messages()) == 1

    def test_clear(self):
        memory = InMemoryConversation()
        memory.add_user_message("x")
        memory.clear()
        assert memory.messages() == []


class TestSharedMemory:
    @pytest.mark.asyncio
    async def test_snapshot(self):
        shared = SharedMemory(InMemoryConversation())
        shared.memory.add_user_message("hi")
        assert await shared.snapshot() == [{"role": "user", "content": "hi"}]

    @pytest.mark.asyncio
    async def test_snapshot_waits_for_writer(self):
        shared = SharedMemory(InMemoryConversation())
        order = []

        async def writer():
            async with shared.lock():
                order.append("write-start")
                await asyncio.sleep(0.05)
                shared.memory.add_user_message("late")
                order.append("write-end")

        async def reader():
            await asyncio.sleep(0.01)
            snapshot = await shared.snapshot()
            order.append("read")
            return snapshot

        _, snapshot = await asyncio.gather(writer(), reader())

        assert order == ["write-start", "write-end", "read"]
        assert snapshot == [{"role": "user", "content": "late"}]
