from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Iterable, List

from syndicate.schemas.messages import Message


class Memory(ABC):
    """Ordered, append-only message store owned by one agent or orchestrator."""

    @abstractmethod
    def add(self, message: Message) -> None:
        """Append a message."""

    @abstractmethod
    def get(self) -> List[Message]:
        """Return a copy of the stored messages, oldest first."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every stored message."""


class Transcript(Memory):
    """Append-only conversation log kept in process memory."""

    def __init__(self, initial: Iterable[Message] | None = None) -> None:
        self._lock = threading.RLock()
        self._turns: List[Message] = list(initial or [])

    def add(self, message: Message) -> None:
        with self._lock:
            self._turns.append(message)

    def get(self) -> List[Message]:
        with self._lock:
            return list(self._turns)

    def clear(self) -> None:
        with self._lock:
            self._turns = []

    def last(self, k: int = 1) -> List[Message]:
        if k <= 0:
            return []
        with self._lock:
            return self._turns[-k:]

    def __len__(self) -> int:
        with self._lock:
            return len(self._turns)


class WindowedTranscript(Transcript):
    """Transcript that only retains the ``max_messages`` most recent turns.

    Trimming is blind to tool-call pairing, so the retained window may start
    with tool results whose originating assistant message was evicted.
    """

    def __init__(self, max_messages: int, initial: Iterable[Message] | None = None) -> None:
        if max_messages <= 0:
            raise ValueError("max_messages must be positive")
        self.max_messages = max_messages
        super().__init__(list(initial or [])[-max_messages:])

    def add(self, message: Message) -> None:
        with self._lock:
            self._turns.append(message)
            overflow = len(self._turns) - self.max_messages
            if overflow > 0:
                del self._turns[:overflow]
