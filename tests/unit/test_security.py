import pytest

from templify.core.exceptions import TemplateAccessDeniedError
from templify.core.security import authorize_template_access
from templify.core.security import session_access_token
from templify.core.security import store_login
from templify.models.template_models import CurrentUser
from templify.models.template_models import TemplateRecord

OWNER = CurrentUser(id="user-1", email="owner@example.com")


def _template(user_id: str) -> TemplateRecord:
    return TemplateRecord(id="7", user_id=user_id, name="Invoice.xlsx", file_path=f"{user_id}/x-Invoice.xlsx")


def test_owner_is_authorized():
    authorize_template_access(OWNER, _template("user-1"), "download")


def test_other_user_is_forbidden():
    with pytest.raises(TemplateAccessDeniedError) as exc:
        authorize_template_access(OWNER, _template("user-2"), "delete")
    assert exc.value.status_code == 403
    assert exc.value.message == "Forbidden. You do not have access to this template."


def test_store_login_and_read_token_back():
    session: dict = {}
    store_login(session, OWNER, "access", "refresh")
    assert session == {"sb_access_token": "access", "sb_refresh_token": "refresh", "userId": "user-1"}
    assert session_access_token(session) == "access"


def test_store_login_without_refresh_token():
    session: dict = {}
    store_login(session, OWNER, "access", None)
    assert "sb_refresh_token" not in session


@pytest.mark.parametrize("session", [{}, {"sb_access_token": ""}, {"sb_access_token": 123}])
def test_session_access_token_missing(session):
    assert session_access_token(session) is None
