"""Access policy tests."""

import pytest

from confvault.policy import Action, Role, is_allowed


def test_role_ordering():
    assert Role.OWNER.privilege > Role.EDITOR.privilege > Role.VIEWER.privilege


@pytest.mark.parametrize(
    "role,action,allowed",
    [
        (Role.VIEWER, Action.READ, True),
        (Role.VIEWER, Action.WRITE, False),
        (Role.VIEWER, Action.DELETE, False),
        (Role.VIEWER, Action.UPDATE_APPLICATION, False),
        (Role.EDITOR, Action.WRITE, True),
        (Role.EDITOR, Action.DELETE, True),
        (Role.EDITOR, Action.UPDATE_APPLICATION, True),
        (Role.EDITOR, Action.DELETE_APPLICATION, False),
        (Role.EDITOR, Action.MANAGE_MEMBERS, False),
        (Role.OWNER, Action.DELETE_APPLICATION, True),
        (Role.OWNER, Action.MANAGE_MEMBERS, True),
    ],
)
def test_decision_table(role, action, allowed):
    assert is_allowed(role, action) is allowed


@pytest.mark.parametrize("action", list(Action))
def test_no_role_is_always_denied(action):
    assert is_allowed(None, action) is False
