"""Conversation over the current report, gated on a complete context."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional

from pharma_forecast.clients import ForecastApiClient
from pharma_forecast.core.errors import (
    ApiError,
    ContextNotReady,
    ForecastClientError,
    ValidationError,
)
from pharma_forecast.services.artifacts import ChatMessage, Sender
from pharma_forecast.services.report_assembler import ReportAssembler

logger = logging.getLogger(__name__)

FAILURE_PREFIX = "Sorry, I'm unable to answer that right now."


class ChatState(str, Enum):
    NO_CONTEXT = "no_context"
    READY = "ready"
    SENDING = "sending"


class ChatOrchestrator:
    """Keep the transcript and run one request/response exchange per question."""

    def __init__(self, api: ForecastApiClient, assembler: ReportAssembler) -> None:
        self._api = api
        self._assembler = assembler
        self._transcript: list[ChatMessage] = []
        self._generation = assembler.generation
        self._sending = False
        assembler.add_reset_listener(self._on_reset)

    @property
    def transcript(self) -> tuple[ChatMessage, ...]:
        return tuple(self._transcript)

    @property
    def state(self) -> ChatState:
        if self._sending:
            return ChatState.SENDING
        if self._assembler.snapshot.context.ready():
            return ChatState.READY
        return ChatState.NO_CONTEXT

    async def ask(self, question: str) -> Optional[ChatMessage]:
        """Ask one question and return the assistant's reply.

        Returns ``None`` for a blank question or when the report was replaced
        while the answer was in flight. Remote failures are returned as an
        assistant message rather than raised.
        """
        if not question or not question.strip():
            return None
        context = self._assembler.snapshot.context
        if not context.ready():
            raise ContextNotReady()
        if self._sending:
            raise ValidationError("Please wait for the current answer before asking again.")

        generation = self._generation
        self._transcript.append(ChatMessage(Sender.USER, question))
        self._sending = True
        try:
            try:
                answer = await self._api.ask(question, context.to_form())
            except ForecastClientError as exc:
                logger.warning("Question could not be answered: %s", exc.message)
                answer = f"{FAILURE_PREFIX} {_failure_detail(exc)}"

            if generation != self._generation:
                logger.info(
                    "Dropping answer for generation %d; transcript was reset",
                    generation,
                )
                return None
            reply = ChatMessage(Sender.ASSISTANT, answer)
            self._transcript.append(reply)
            return reply
        finally:
            if generation == self._generation:
                self._sending = False

    def _on_reset(self, generation: int) -> None:
        self._transcript = []
        self._generation = generation
        self._sending = False


def _failure_detail(exc: ForecastClientError) -> str:
    if isinstance(exc, ApiError):
        return f"AI API Error: {exc.detail}"
    return exc.message


__all__ = ["ChatOrchestrator", "ChatState", "FAILURE_PREFIX"]
