# Registra todos os models no metadata
from ultrabms.infrastructure.database.models.audit_log_model import AuditLogModel  # noqa: F401
from ultrabms.infrastructure.database.models.auth_attempt_model import AuthAttemptModel  # noqa: F401
from ultrabms.infrastructure.database.models.password_reset_token_model import PasswordResetTokenModel  # noqa: F401
from ultrabms.infrastructure.database.models.token_blacklist_model import TokenBlacklistModel  # noqa: F401
from ultrabms.infrastructure.database.models.user_model import UserModel  # noqa: F401
from ultrabms.infrastructure.database.models.user_session_model import UserSessionModel  # noqa: F401
