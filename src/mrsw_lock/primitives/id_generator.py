import uuid
from typing import Protocol


class IIDGenerator(Protocol):
    """
    Source of lock tokens.

    Tokens must be globally unique across every process sharing the store:
    a read token is part of a key name and a write token is the ownership
    credential compared on release.
    """

    def next_id(self) -> str:
        """Return a fresh, never-before-issued token."""
        ...


class UUID4Generator(IIDGenerator):
    """Default token source using random UUIDv4 strings."""

    def next_id(self) -> str:
        return str(uuid.uuid4())
