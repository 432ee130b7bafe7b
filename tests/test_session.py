"""Tests for voxstream.session — the streaming chat session."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator

import pytest

from voxstream.errors import (
    EmptyInputError,
    NoStreamBodyError,
    StreamingFailedError,
)
from voxstream.schemas.document import ParagraphBlock, SegmentKind
from voxstream.schemas.session import ChatRequest
from voxstream.schemas.streaming import StreamChunk
from voxstream.session import ChatSession
from voxstream.transport.base import ChatTransport


def _frame(content: str) -> bytes:
    record = {"choices": [{"delta": {"content": content}}]}
    return f"data: {json.dumps(record)}\n".encode()


class FakeTransport(ChatTransport):
    """Yields scripted chunks and records every request."""

    def __init__(self, chunks: list[bytes], error: Exception | None = None) -> None:
        self.chunks = chunks
        self.error = error
        self.requests: list[ChatRequest] = []
        self.delivered = 0

    async def stream(self, request: ChatRequest) -> AsyncIterator[bytes]:
        self.requests.append(request)
        for chunk in self.chunks:
            self.delivered += 1
            yield chunk
        if self.error is not None:
            raise self.error


class NoBodyTransport(ChatTransport):
    async def stream(self, request: ChatRequest) -> AsyncIterator[bytes]:
        raise NoStreamBodyError("HTTP 502")
        yield b""  # pragma: no cover


class HeldFirstStreamTransport(ChatTransport):
    """First stream pauses mid-answer until released; later streams run straight."""

    def __init__(self) -> None:
        self.release_first = asyncio.Event()
        self.calls = 0

    async def stream(self, request: ChatRequest) -> AsyncIterator[bytes]:
        self.calls += 1
        if self.calls == 1:
            yield _frame("old-1 ")
            await self.release_first.wait()
            yield _frame("old-2")
        else:
            yield _frame("new")
        yield b"data: [DONE]\n"


class RaisingTransport(ChatTransport):
    async def stream(self, request: ChatRequest) -> AsyncIterator[bytes]:
        yield _frame("part")
        raise RuntimeError("socket gone")


def _hello_chunks() -> list[bytes]:
    return [_frame("Hel"), _frame("lo"), b"data: [DONE]\n"]


# ── End to end ───────────────────────────────────────────────────


class TestAsk:
    @pytest.mark.asyncio
    async def test_end_to_end_hello(self):
        session = ChatSession(FakeTransport(_hello_chunks()), "role")
        answer = await session.ask("greet me")

        assert answer == "Hello"
        assert session.answer == "Hello"
        assert len(session.document.segments) == 1
        assert session.document.segments[0].kind == SegmentKind.PROSE
        assert session.document.blocks == [ParagraphBlock(text="Hello")]

    @pytest.mark.asyncio
    async def test_republishes_after_every_token(self):
        updates: list[StreamChunk] = []
        session = ChatSession(
            FakeTransport(_hello_chunks()), "role", on_update=updates.append
        )
        await session.ask("greet me")

        assert [u.accumulated for u in updates] == ["Hel", "Hello", "Hello"]
        assert [u.delta for u in updates] == ["Hel", "lo", ""]
        assert updates[-1].is_complete is True
        assert all(not u.is_complete for u in updates[:-1])
        assert updates[0].document.blocks == [ParagraphBlock(text="Hel")]

    @pytest.mark.asyncio
    async def test_async_callback_awaited(self):
        seen: list[str] = []

        async def on_update(chunk: StreamChunk) -> None:
            seen.append(chunk.accumulated)

        session = ChatSession(FakeTransport(_hello_chunks()), "role", on_update=on_update)
        await session.ask("q")
        assert seen == ["Hel", "Hello", "Hello"]

    @pytest.mark.asyncio
    async def test_done_stops_reading_transport(self):
        transport = FakeTransport(
            [_frame("a"), b"data: [DONE]\n", _frame("never")]
        )
        session = ChatSession(transport, "role")
        assert await session.ask("q") == "a"
        assert transport.delivered == 2

    @pytest.mark.asyncio
    async def test_stream_close_without_done(self):
        session = ChatSession(FakeTransport([_frame("a"), _frame("b")]), "role")
        assert await session.ask("q") == "ab"
        assert session.state.loading is False

    @pytest.mark.asyncio
    async def test_frame_split_across_chunks(self):
        frame = _frame("Hello")
        session = ChatSession(FakeTransport([frame[:10], frame[10:]]), "role")
        assert await session.ask("q") == "Hello"

    @pytest.mark.asyncio
    async def test_malformed_frame_does_not_abort(self):
        chunks = [_frame("a"), b"data: {oops\n", _frame("b"), b"data: [DONE]\n"]
        session = ChatSession(FakeTransport(chunks), "role")
        assert await session.ask("q") == "ab"
        assert session.state.error == ""

    @pytest.mark.asyncio
    async def test_request_body(self):
        transport = FakeTransport(_hello_chunks())
        session = ChatSession(transport, "You are a Java expert.", api_key="k1")
        await session.ask("  what is jvm  ")

        request = transport.requests[0]
        assert request.to_payload() == {
            "prompt": "what is jvm",
            "role": "You are a Java expert.",
            "apiKey": "k1",
        }
        assert session.recall_last_question() == "what is jvm"

    @pytest.mark.asyncio
    async def test_answer_reset_per_question(self):
        transport = FakeTransport(_hello_chunks())
        session = ChatSession(transport, "role")
        await session.ask("one")
        transport.chunks = [_frame("Bye")]
        assert await session.ask("two") == "Bye"
        assert session.state.generation == 2


# ── Errors ───────────────────────────────────────────────────────


class TestErrors:
    @pytest.mark.asyncio
    async def test_empty_input(self):
        transport = FakeTransport(_hello_chunks())
        session = ChatSession(transport, "role")
        with pytest.raises(EmptyInputError):
            await session.ask("   ")
        assert transport.requests == []
        assert session.state.error == "Say something first"
        assert session.state.loading is False
        assert session.state.generation == 0

    @pytest.mark.asyncio
    async def test_no_stream_body(self):
        session = ChatSession(NoBodyTransport(), "role")
        with pytest.raises(NoStreamBodyError):
            await session.ask("q")
        assert session.state.loading is False
        assert session.state.error == "Streaming failed"

    @pytest.mark.asyncio
    async def test_transport_failure_keeps_partial_answer(self):
        transport = FakeTransport(
            [_frame("partial "), _frame("answer")],
            error=StreamingFailedError("connection closed"),
        )
        session = ChatSession(transport, "role")
        with pytest.raises(StreamingFailedError):
            await session.ask("q")

        assert session.answer == "partial answer"
        assert session.document.blocks == [ParagraphBlock(text="partial answer")]
        assert session.state.error == "Streaming failed"
        assert session.state.loading is False

    @pytest.mark.asyncio
    async def test_foreign_transport_error_becomes_streaming_failed(self):
        session = ChatSession(RaisingTransport(), "role")
        with pytest.raises(StreamingFailedError, match="socket gone") as exc_info:
            await session.ask("q")

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert session.answer == "part"
        assert session.state.error == "Streaming failed"
        assert session.state.loading is False

    @pytest.mark.asyncio
    async def test_ready_again_after_failure(self):
        transport = FakeTransport([], error=StreamingFailedError("boom"))
        session = ChatSession(transport, "role")
        with pytest.raises(StreamingFailedError):
            await session.ask("q")

        transport.error = None
        transport.chunks = _hello_chunks()
        assert await session.ask("q") == "Hello"
        assert session.state.error == ""


# ── Conversation context ─────────────────────────────────────────


class TestContext:
    @pytest.mark.asyncio
    async def test_context_off_sends_only_latest(self):
        transport = FakeTransport(_hello_chunks())
        session = ChatSession(transport, "role")
        await session.ask("first")
        await session.ask("second")
        assert transport.requests[-1].prompt == "second"
        assert session.state.saved_prompts == []

    @pytest.mark.asyncio
    async def test_context_on_joins_previous_questions(self):
        transport = FakeTransport(_hello_chunks())
        session = ChatSession(transport, "role", remember_context=True)
        await session.ask("what is java")
        await session.ask("what is spring")
        await session.ask("compare them")

        assert transport.requests[0].prompt == "what is java"
        assert transport.requests[2].prompt == (
            "what is java and also what is spring and also compare them"
        )
        assert session.state.saved_prompts == [
            "what is java", "what is spring", "compare them",
        ]

    @pytest.mark.asyncio
    async def test_turning_off_clears_context(self):
        transport = FakeTransport(_hello_chunks())
        session = ChatSession(transport, "role", remember_context=True)
        await session.ask("one")
        assert session.toggle_context() is False
        assert session.state.saved_prompts == []
        await session.ask("two")
        assert transport.requests[-1].prompt == "two"

    @pytest.mark.asyncio
    async def test_turning_on_is_not_retroactive(self):
        transport = FakeTransport(_hello_chunks())
        session = ChatSession(transport, "role")
        await session.ask("forgotten")
        session.set_remember_context(True)
        await session.ask("one")
        await session.ask("two")
        assert transport.requests[-1].prompt == "one and also two"

    @pytest.mark.asyncio
    async def test_failed_question_not_remembered(self):
        transport = FakeTransport([], error=StreamingFailedError("boom"))
        session = ChatSession(transport, "role", remember_context=True)
        with pytest.raises(StreamingFailedError):
            await session.ask("lost")
        assert session.state.saved_prompts == []

    def test_build_prompt_is_pure(self):
        session = ChatSession(FakeTransport([]), "role", remember_context=True)
        session.state.saved_prompts = ["a"]
        assert session.build_prompt("b") == "a and also b"
        assert session.state.saved_prompts == ["a"]


# ── Generations and cancellation ────────────────────────────────


class TestGenerations:
    @pytest.mark.asyncio
    async def test_cancel_discards_further_tokens(self):
        session = ChatSession(
            FakeTransport([_frame("a"), _frame("b"), _frame("c")]), "role"
        )

        def on_update(chunk: StreamChunk) -> None:
            if chunk.accumulated == "a":
                session.cancel()

        session.on_update = on_update
        answer = await session.ask("q")
        assert answer == "a"
        assert session.state.cancelled is True
        assert session.state.loading is False

    @pytest.mark.asyncio
    async def test_cancel_reads_remaining_stream(self):
        transport = FakeTransport([_frame("a"), _frame("b"), _frame("c")])
        session = ChatSession(transport, "role")
        session.on_update = lambda chunk: session.cancel()
        await session.ask("q")
        assert transport.delivered == 3

    @pytest.mark.asyncio
    async def test_cancelled_question_not_remembered(self):
        session = ChatSession(
            FakeTransport(_hello_chunks()), "role", remember_context=True
        )
        session.on_update = lambda chunk: session.cancel()
        await session.ask("stopped")
        assert session.state.saved_prompts == []

    @pytest.mark.asyncio
    async def test_superseded_stream_does_not_touch_new_answer(self):
        session = ChatSession(FakeTransport(_hello_chunks()), "role")
        await session.ask("current")
        current_generation = session.state.generation

        # Tokens from an older generation arrive late
        await session._publish(current_generation - 1, ["stale"])
        assert session.answer == "Hello"

    @pytest.mark.asyncio
    async def test_interleaved_asks_keep_only_newest_answer(self):
        transport = HeldFirstStreamTransport()
        session = ChatSession(transport, "role")
        seen: list[StreamChunk] = []
        session.on_update = seen.append

        first = asyncio.create_task(session.ask("first"))
        for _ in range(100):
            if session.answer:
                break
            await asyncio.sleep(0)
        assert session.answer == "old-1 "

        assert await session.ask("second") == "new"
        transport.release_first.set()
        assert await first == ""

        assert session.answer == "new"
        assert session.state.generation == 2
        assert session.state.loading is False
        # Nothing from the first stream arrives once the second has started
        first_new = next(i for i, c in enumerate(seen) if c.generation == 2)
        assert all(c.generation == 2 for c in seen[first_new:])
        assert [c.delta for c in seen if c.generation == 1] == ["old-1 "]

    def test_cancel_when_idle_is_noop(self):
        session = ChatSession(FakeTransport([]), "role")
        session.cancel()
        assert session.state.cancelled is False


class TestStateOperations:
    def test_set_role(self):
        session = ChatSession(FakeTransport([]), "old")
        session.set_role("  new role ")
        assert session.state.role == "new role"

    def test_set_role_rejects_blank(self):
        session = ChatSession(FakeTransport([]), "old")
        with pytest.raises(ValueError):
            session.set_role("  ")

    @pytest.mark.asyncio
    async def test_clear(self):
        session = ChatSession(FakeTransport(_hello_chunks()), "role")
        await session.ask("q")
        session.clear()
        assert session.answer == ""
        assert session.document.is_empty

    def test_recall_last_question_empty(self):
        session = ChatSession(FakeTransport([]), "role")
        assert session.recall_last_question() == ""
