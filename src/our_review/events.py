"""Structured events emitted after review pool mutations commit.

Downstream collaborators (token minting, reputation updates) subscribe to
these. Delivery is fire-and-forget: a failing subscriber is logged and
never undoes the operation that produced the event.
"""

from __future__ import annotations

import base64
import json
import logging
import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from .constants import MAX_EVENT_HISTORY
from .types import EventType

logger = logging.getLogger(__name__)

EventHandler = Callable[["ReviewEvent"], None]


@dataclass
class ReviewEvent:
    """A committed state change on a pool."""

    event_type: EventType
    pool_id: int | None  # None for engine-wide events
    actor: str
    tick: int
    payload: dict[str, Any] = field(default_factory=dict)

    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=datetime.now)

    # Ed25519 signature from the emitting node, empty if unsigned
    signature: bytes = b""

    def sign(self, private_key: bytes) -> None:
        """Sign the event."""
        signing_key = Ed25519PrivateKey.from_private_bytes(private_key)
        self.signature = signing_key.sign(self._signable_content())

    def verify_signature(self, public_key: bytes) -> bool:
        """Verify the emitter's signature."""
        if not self.signature:
            return False
        try:
            Ed25519PublicKey.from_public_bytes(public_key).verify(self.signature, self._signable_content())
        except (InvalidSignature, ValueError):
            return False
        return True

    def _signable_content(self) -> bytes:
        """Get content to sign."""
        return json.dumps(
            {
                "id": str(self.id),
                "event_type": self.event_type.value,
                "pool_id": self.pool_id,
                "actor": self.actor,
                "tick": self.tick,
                "payload": self.payload,
                "created_at": self.created_at.isoformat(),
            },
            sort_keys=True,
        ).encode()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": str(self.id),
            "event_type": self.event_type.value,
            "pool_id": self.pool_id,
            "actor": self.actor,
            "tick": self.tick,
            "payload": self.payload,
            "created_at": self.created_at.isoformat(),
            "signature": (base64.b64encode(self.signature).decode() if self.signature else ""),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReviewEvent:
        """Create from dictionary."""
        return cls(
            id=UUID(data["id"]),
            event_type=EventType(data["event_type"]),
            pool_id=data.get("pool_id"),
            actor=data["actor"],
            tick=data["tick"],
            payload=data.get("payload", {}),
            created_at=(datetime.fromisoformat(data["created_at"]) if data.get("created_at") else datetime.now()),
            signature=(base64.b64decode(data["signature"]) if data.get("signature") else b""),
        )


class EventBus:
    """In-process publish/subscribe for review events.

    Args:
        signing_key: Raw Ed25519 private key; when set, every event is
            signed before delivery.
        max_history: Number of recent events retained for inspection.
    """

    def __init__(self, signing_key: bytes | None = None, max_history: int = MAX_EVENT_HISTORY) -> None:
        self._signing_key = signing_key
        self._handlers: list[tuple[EventType | None, EventHandler]] = []
        self._history: deque[ReviewEvent] = deque(maxlen=max_history)
        self._lock = threading.Lock()

    @classmethod
    def from_hex_key(cls, signing_key_hex: str | None) -> EventBus:
        """Create a bus from an optional hex-encoded private key."""
        return cls(signing_key=bytes.fromhex(signing_key_hex) if signing_key_hex else None)

    def subscribe(self, handler: EventHandler, event_type: EventType | None = None) -> None:
        """Register a handler for one event type, or all events when None."""
        with self._lock:
            self._handlers.append((event_type, handler))

    def unsubscribe(self, handler: EventHandler) -> None:
        with self._lock:
            self._handlers = [(t, h) for t, h in self._handlers if h is not handler]

    def emit(self, event: ReviewEvent) -> ReviewEvent:
        """Sign (if configured), record and deliver an event."""
        if self._signing_key is not None:
            event.sign(self._signing_key)

        with self._lock:
            self._history.append(event)
            handlers = [h for t, h in self._handlers if t is None or t == event.event_type]

        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Event handler failed for {event.event_type.value} on pool {event.pool_id}")
        return event

    def history(self, pool_id: int | None = None) -> list[ReviewEvent]:
        """Recent events, optionally for one pool."""
        with self._lock:
            events = list(self._history)
        if pool_id is None:
            return events
        return [e for e in events if e.pool_id == pool_id]
