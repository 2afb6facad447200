from __future__ import annotations

import asyncio
from typing import Any, Callable, List

import pytest

from coderoom.events import EventRouter
from coderoom.registry import SessionRegistry
from coderoom.session import Session


def _drain(session: Session) -> List[dict]:
    """Pop every queued outbound frame for *session*."""
    messages: List[dict] = []
    while not session.outbox.empty():
        item = session.outbox.get_nowait()
        if item is not None:
            messages.append(item)
    return messages


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def router(registry: SessionRegistry) -> EventRouter:
    return EventRouter(registry)


@pytest.fixture
def connect(router: EventRouter) -> Callable[[], Session]:
    def _connect() -> Session:
        session = Session()
        router.connect(session)
        return session

    return _connect


@pytest.fixture
def send(router: EventRouter) -> Callable[[Session, Any], None]:
    def _send(session: Session, frame: Any) -> None:
        asyncio.run(router.handle_message(session, frame))

    return _send


@pytest.fixture
def drain() -> Callable[[Session], List[dict]]:
    return _drain
