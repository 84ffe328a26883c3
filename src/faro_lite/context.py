"""Session and user context attached to every envelope."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Mapping

from .envelope import normalize_attributes


@dataclass(frozen=True)
class ContextSnapshot:
    """Point-in-time copy of the session and user mappings."""
    session: dict[str, Any]
    user: dict[str, Any]


@dataclass
class ContextStore:
    """
    Mutable session/user attributes for one client.

    Session attributes describe the running application and are merged
    key by key (last write wins). User attributes describe the end user and
    are replaced wholesale on set_user / clear_user.

    Readers always get copies, so a built envelope never changes after
    the fact.
    """
    session_attributes: dict[str, Any] = field(default_factory=dict)
    user_attributes: dict[str, Any] = field(default_factory=dict)

    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        self.session_attributes = normalize_attributes(self.session_attributes)
        self.user_attributes = normalize_attributes(self.user_attributes)

    def set_session(self, attributes: Mapping[str, Any] | None) -> None:
        """Merge attributes into the session mapping."""
        update = normalize_attributes(attributes)
        if not update:
            return
        with self._lock:
            self.session_attributes = {**self.session_attributes, **update}

    def set_user(self, identity: Mapping[str, Any] | None) -> None:
        """Replace the user mapping."""
        user = normalize_attributes(identity)
        with self._lock:
            self.user_attributes = user

    def clear_user(self) -> None:
        with self._lock:
            self.user_attributes = {}

    @property
    def session(self) -> dict[str, Any]:
        return dict(self.session_attributes)

    @property
    def user(self) -> dict[str, Any]:
        return dict(self.user_attributes)

    def snapshot(self) -> ContextSnapshot:
        with self._lock:
            return ContextSnapshot(
                session=dict(self.session_attributes),
                user=dict(self.user_attributes),
            )
