"""Shared test helpers: schema types and a scripted in-process chat client."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

from pydantic import BaseModel

from schemachat.models.config import RequestOptions
from schemachat.prompts.structured import FUNCTION_NAME
from schemachat.protocols import ChatMessage, CompletionResult


class Person(BaseModel):
    name: str
    age: int


class Point(BaseModel):
    x: float


class Address(BaseModel):
    street: str
    city: str


class Customer(BaseModel):
    name: str
    address: Address


class Node(BaseModel):
    value: int
    children: list[Node] = []


@dataclass(frozen=True)
class Reply:
    """One scripted provider answer."""

    content: str | None = None
    arguments: dict | None = None


def text(content: str | None) -> Reply:
    return Reply(content=content)


def call(arguments: dict) -> Reply:
    return Reply(arguments=arguments)


class ScriptedClient:
    """A ChatCompletionClient that replays scripted replies.

    Each entry of ``replies`` is a Reply, None (provider returned nothing) or
    an exception instance to raise. Every request, including continuation
    turns, is recorded in ``calls``. Running out of replies fails the test,
    so tests also pin the exact number of round-trips.
    """

    def __init__(self, *replies: Reply | BaseException | None, supports_function_calling: bool = True):
        self.supports_function_calling = supports_function_calling
        self.replies = list(replies)
        self.calls: list[tuple[list[ChatMessage], RequestOptions | None]] = []
        self.closed = False

    def chat_completion(
        self,
        messages: Sequence[ChatMessage],
        options: RequestOptions | None = None,
    ) -> CompletionResult | None:
        history = tuple(messages)
        self.calls.append((list(history), options))
        if not self.replies:
            raise AssertionError(f"unexpected request #{len(self.calls)}")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if reply is None:
            return None

        result = CompletionResult(
            content=reply.content,
            arguments=reply.arguments,
            function_name=FUNCTION_NAME if reply.arguments is not None else None,
            messages=history,
        )
        received = result.as_message()

        def respond(message, new_options=None):
            follow_up = message if isinstance(message, ChatMessage) else ChatMessage.user(message)
            return self.chat_completion(
                [*history, received, follow_up],
                new_options if new_options is not None else options,
            )

        return replace(result, continuation=respond)

    def close(self) -> None:
        self.closed = True

    def user_message(self, index: int) -> str:
        """Content of the last turn sent in request ``index``."""
        return self.calls[index][0][-1].content

    def options(self, index: int) -> RequestOptions | None:
        return self.calls[index][1]
