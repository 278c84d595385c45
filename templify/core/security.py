"""Cookie-session helpers and the template ownership check."""

import logging
from typing import Any

from templify.core.exceptions import TemplateAccessDeniedError
from templify.models.template_models import CurrentUser
from templify.models.template_models import TemplateRecord

# Initialize logger
logger = logging.getLogger(__name__)

ACCESS_TOKEN_SESSION_KEY = "sb_access_token"
REFRESH_TOKEN_SESSION_KEY = "sb_refresh_token"
USER_ID_SESSION_KEY = "userId"


def store_login(session: dict[str, Any], user: CurrentUser, access_token: str, refresh_token: str | None) -> None:
    session[ACCESS_TOKEN_SESSION_KEY] = access_token
    if refresh_token:
        session[REFRESH_TOKEN_SESSION_KEY] = refresh_token
    session[USER_ID_SESSION_KEY] = user.id


def session_access_token(session: dict[str, Any]) -> str | None:
    token = session.get(ACCESS_TOKEN_SESSION_KEY)
    return token if isinstance(token, str) and token else None


def authorize_template_access(user: CurrentUser, template: TemplateRecord, action: str) -> None:
    """Capability check applied before reading, generating from or deleting a template.

    Raises:
        TemplateAccessDeniedError: if *user* does not own *template*.
    """
    if template.user_id != user.id:
        logger.warning(
            "User %s attempted to %s template %s owned by %s",
            user.id,
            action,
            template.id,
            template.user_id,
        )
        raise TemplateAccessDeniedError("Forbidden. You do not have access to this template.")
