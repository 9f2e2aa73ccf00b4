import pytest

from quiz_live.constants.session_constants import MASS_OPERATION_ROLES, MONITOR_ROLES
from quiz_live.core.authorization import authorize, require_role
from quiz_live.core.errors import Forbidden, NotAuthenticated
from quiz_live.core.models import Identity


def test_monitor_roles_cover_teachers_and_admins():
    assert authorize(Identity(1, "teacher"), MONITOR_ROLES).allowed
    assert authorize(Identity(1, "admin"), MONITOR_ROLES).allowed
    denied = authorize(Identity(1, "student"), MONITOR_ROLES)
    assert not denied.allowed
    assert "admin or teacher" in denied.reason


def test_mass_operations_are_admin_only():
    with pytest.raises(Forbidden):
        require_role(Identity(2, "teacher"), MASS_OPERATION_ROLES)
    admin = Identity(1, "admin")
    assert require_role(admin, MASS_OPERATION_ROLES) is admin


def test_missing_identity_is_not_authenticated():
    assert authorize(None, MONITOR_ROLES).role is None
    with pytest.raises(NotAuthenticated):
        require_role(None, MONITOR_ROLES)
