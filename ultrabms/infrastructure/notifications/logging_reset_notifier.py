# ultrabms/infrastructure/notifications/logging_reset_notifier.py
from __future__ import annotations

import logging

from ultrabms.core.interfaces.password_reset_notifier import (
    PasswordChangedEvent,
    PasswordResetNotifier,
    PasswordResetRequestedEvent,
)

logger = logging.getLogger(__name__)


class LoggingResetNotifier(PasswordResetNotifier):
    """Sem provedor de e-mail: o link vai para o log da aplicação."""

    def notify_reset_requested(self, event: PasswordResetRequestedEvent) -> None:
        logger.info(
            "Password reset link for user_id=%s <%s> (expires %s): %s",
            event.user_id, event.email, event.expires_at_iso, event.reset_link,
        )

    def notify_password_changed(self, event: PasswordChangedEvent) -> None:
        logger.info("Password changed for user_id=%s <%s> at %s", event.user_id, event.email, event.changed_at_iso)
