"""
Unit Tests for the Staff Credential Table
"""
import pytest

from app.core.security import (
    StaffDirectory,
    StaffIdentity,
    DEFAULT_BADGE_COLOR,
    DEPRECATED_ROLES,
    STAFF_ROLES,
)


ACCOUNTS = {
    'alpha': {'role': 'executive', 'label': 'Executive', 'color': '#111111'},
    'beta': {'role': 'developer', 'label': 'Developer'},
}


class TestStaffDirectory:
    """Test secret to identity resolution"""

    def test_resolve_known_secret(self):
        directory = StaffDirectory(ACCOUNTS)

        identity = directory.resolve('alpha')

        assert identity == StaffIdentity(role='executive', label='Executive', color='#111111')

    def test_resolve_unknown_secret_returns_none(self):
        directory = StaffDirectory(ACCOUNTS)

        assert directory.resolve('gamma') is None

    @pytest.mark.parametrize('credential', [None, ''])
    def test_resolve_missing_secret_returns_none(self, credential):
        directory = StaffDirectory(ACCOUNTS)

        assert directory.resolve(credential) is None

    def test_resolve_is_case_sensitive(self):
        directory = StaffDirectory(ACCOUNTS)

        assert directory.resolve('ALPHA') is None

    def test_missing_color_gets_default_badge(self):
        directory = StaffDirectory(ACCOUNTS)

        assert directory.resolve('beta').color == DEFAULT_BADGE_COLOR

    def test_empty_secret_is_never_registered(self):
        directory = StaffDirectory({'': {'role': 'executive', 'label': 'Nobody'}})

        assert len(directory) == 0
        assert directory.resolve('') is None

    def test_is_privileged_matches_configured_role(self):
        directory = StaffDirectory(ACCOUNTS, privileged_role='developer')

        assert directory.is_privileged(directory.resolve('beta'))
        assert not directory.is_privileged(directory.resolve('alpha'))


class TestStaffIdentity:

    def test_to_dict(self):
        identity = StaffIdentity(role='press_secretary', label='Press Secretary', color='#DB2777')

        assert identity.to_dict() == {
            'role': 'press_secretary',
            'label': 'Press Secretary',
            'color': '#DB2777',
        }

    def test_deprecated_roles_are_not_current_roles(self):
        assert not set(DEPRECATED_ROLES) & set(STAFF_ROLES)
