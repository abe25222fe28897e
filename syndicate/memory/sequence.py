from __future__ import annotations

from typing import Iterable, List, Set

from syndicate.schemas.messages import ROLE_TOOL, Message


def repair_sequence(messages: Iterable[Message]) -> List[Message]:
    """Drop tool results that no longer answer a pending tool call.

    A tool message is kept only if its ``tool_call_id`` belongs to the most
    recent assistant tool request and has not been answered yet. Any other
    message resets the pending set. The result is stable under re-application.
    """
    repaired: List[Message] = []
    pending: Set[str] = set()
    for message in messages:
        if message.role == ROLE_TOOL:
            if message.tool_call_id in pending:
                pending.discard(message.tool_call_id)
                repaired.append(message)
            continue
        if message.requests_tools():
            pending = {call.id for call in message.tool_calls}
        else:
            pending = set()
        repaired.append(message)
    return repaired
