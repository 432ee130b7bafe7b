"""Chat session: one question in, one streamed answer out.

ChatSession owns the explicit SessionState record, the answer
Accumulator and the current Document. ``ask()`` drives a single
read-decode-append loop; after every appended token the Document is
rebuilt from the full answer and handed to the ``on_update`` callback.

Every question gets a new generation id. Tokens are appended only while
their generation is current and not cancelled, so a superseded or
stopped stream can keep arriving without touching the newer answer.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextlib import aclosing
from typing import Any

from voxstream.errors import EmptyInputError, StreamingFailedError, VoxstreamError
from voxstream.render.builder import build_document
from voxstream.schemas.document import Document
from voxstream.schemas.session import CONTEXT_SEPARATOR, ChatRequest, SessionState
from voxstream.schemas.streaming import StreamChunk
from voxstream.stream.accumulator import Accumulator
from voxstream.stream.decoder import EventDecoder
from voxstream.transport.base import ChatTransport

logger = logging.getLogger(__name__)

# Sync or async callable receiving every StreamChunk
UpdateCallback = Callable[[StreamChunk], Any]


class ChatSession:
    """Session state plus the streaming pipeline for one user."""

    def __init__(
        self,
        transport: ChatTransport,
        role: str,
        *,
        api_key: str | None = None,
        remember_context: bool = False,
        on_update: UpdateCallback | None = None,
    ) -> None:
        self.state = SessionState(role=role, remember_context=remember_context)
        self.on_update = on_update
        self._transport = transport
        self._api_key = api_key
        self._answer = Accumulator()
        self._document = Document()

    @property
    def answer(self) -> str:
        """Answer text of the current question so far."""
        return self._answer.value

    @property
    def document(self) -> Document:
        """Document derived from the current answer text."""
        return self._document

    @property
    def is_ready(self) -> bool:
        return not self.state.loading

    @property
    def has_api_key(self) -> bool:
        return self._api_key is not None

    # ── State operations ──────────────────────────────────────

    def set_role(self, role: str) -> None:
        role = role.strip()
        if not role:
            raise ValueError("Role must not be empty")
        self.state.role = role

    def set_api_key(self, api_key: str | None) -> None:
        self._api_key = api_key or None

    def set_remember_context(self, enabled: bool) -> None:
        """Turn context memory on or off.

        Turning it off drops the saved questions. Turning it on starts
        from an empty context; earlier questions are not added back.
        """
        self.state.remember_context = enabled
        if not enabled:
            self.state.saved_prompts = []

    def toggle_context(self) -> bool:
        """Flip the remember-context toggle and return the new value."""
        self.set_remember_context(not self.state.remember_context)
        return self.state.remember_context

    def recall_last_question(self) -> str:
        """Return the most recently submitted question (empty if none)."""
        return self.state.last_question

    def cancel(self) -> None:
        """Stop the answer in flight.

        The transport keeps delivering; every later token of this
        generation is discarded.
        """
        if self.state.loading:
            logger.info("Generation %d cancelled", self.state.generation)
            self.state.cancelled = True

    def clear(self) -> None:
        """Drop the displayed answer and error message."""
        if self.state.loading:
            return
        self._answer.reset()
        self._document = Document()
        self.state.error = ""

    def build_prompt(self, question: str) -> str:
        """Combine saved context with the question when memory is on."""
        if self.state.remember_context:
            return CONTEXT_SEPARATOR.join([*self.state.saved_prompts, question])
        return question

    # ── Streaming ─────────────────────────────────────────────

    async def ask(self, question: str) -> str:
        """Submit a question and stream its answer.

        Args:
            question: Finalized question text from the question source.

        Returns:
            The answer text accumulated for this question.

        Raises:
            EmptyInputError: If the question is blank. No request is sent.
            NoStreamBodyError: If the service returned no readable stream.
            StreamingFailedError: If the transport failed; the partial
                answer is kept. Any other exception from the transport
                is re-raised as this, chained to the original.
        """
        question = question.strip()
        if not question:
            self.state.error = EmptyInputError.user_message
            raise EmptyInputError("Question is empty")

        prompt = self.build_prompt(question)
        if not self.state.remember_context:
            self.state.saved_prompts = []

        self.state.generation += 1
        generation = self.state.generation
        self.state.cancelled = False
        self.state.last_question = question
        self.state.loading = True
        self.state.error = ""
        self._answer.reset()
        self._document = build_document("")

        request = ChatRequest(prompt=prompt, role=self.state.role, api_key=self._api_key)
        decoder = EventDecoder()
        logger.info("Generation %d: asking (%d chars, context=%s)",
                    generation, len(prompt), self.state.remember_context)

        try:
            async with aclosing(self._transport.stream(request)) as body:
                async for data in body:
                    await self._publish(generation, decoder.feed(data))
                    if decoder.done:
                        break
            await self._publish(generation, decoder.close())
        except VoxstreamError as e:
            if generation == self.state.generation:
                self.state.error = e.user_message
            logger.warning("Generation %d failed: %s", generation, e)
            raise
        except Exception as e:
            # Third-party transports and callbacks may raise their own errors
            if generation == self.state.generation:
                self.state.error = StreamingFailedError.user_message
            logger.warning("Generation %d failed: %s: %s",
                           generation, type(e).__name__, e)
            raise StreamingFailedError(f"{type(e).__name__}: {e}") from e
        finally:
            if generation == self.state.generation:
                self.state.loading = False

        if decoder.malformed_count:
            logger.debug("Generation %d dropped %d malformed frames",
                         generation, decoder.malformed_count)

        if self._accepts(generation):
            if self.state.remember_context:
                self.state.saved_prompts.append(question)
            await self._notify(StreamChunk(
                generation=generation,
                delta="",
                accumulated=self._answer.value,
                token_count=self._answer.token_count,
                is_complete=True,
                document=self._document,
            ))
        return self._answer.value if generation == self.state.generation else ""

    def _accepts(self, generation: int) -> bool:
        return generation == self.state.generation and not self.state.cancelled

    async def _publish(self, generation: int, tokens: list[str]) -> None:
        """Append tokens one at a time, rebuilding and notifying after each."""
        if not tokens:
            return
        if not self._accepts(generation):
            logger.debug("Discarding %d tokens from generation %d", len(tokens), generation)
            return

        for token in tokens:
            accumulated = self._answer.append(token)
            self._document = build_document(accumulated)
            await self._notify(StreamChunk(
                generation=generation,
                delta=token,
                accumulated=accumulated,
                token_count=self._answer.token_count,
                document=self._document,
            ))
            # The callback may have cancelled or superseded this generation
            if not self._accepts(generation):
                return

    async def _notify(self, chunk: StreamChunk) -> None:
        if self.on_update is None:
            return
        result = self.on_update(chunk)
        if asyncio.iscoroutine(result):
            await result
