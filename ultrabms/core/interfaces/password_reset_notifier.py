# ultrabms/core/interfaces/password_reset_notifier.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class PasswordResetRequestedEvent:
    user_id: str
    email: str
    first_name: str
    reset_link: str
    expires_at_iso: str


@dataclass(frozen=True)
class PasswordChangedEvent:
    user_id: str
    email: str
    changed_at_iso: str


class PasswordResetNotifier(Protocol):
    def notify_reset_requested(self, event: PasswordResetRequestedEvent) -> None: ...
    def notify_password_changed(self, event: PasswordChangedEvent) -> None: ...
