# Domain-level authorization rules that depend on the request payload,
# such as "only an admin may change a role". Token-level checks (role and
# ownership) live in src/base/auth/rbac.py.

import logging

from src.base.core.exceptions import ForbiddenError
from src.base.models.identity import Identity
from src.domain.models.user_schemas import UserUpdate

logger = logging.getLogger(__name__)


def ensure_can_change_role(identity: Identity, data: UserUpdate) -> None:
    """Reject role changes requested by non-admins, including on their own record."""
    if "role" not in data.model_fields_set or identity.is_admin:
        return
    logger.warning("Non-admin attempted to change role")
    raise ForbiddenError("Only administrators can change roles")
