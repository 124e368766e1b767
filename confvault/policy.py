"""Access policy — which role may perform which action.

Pure decision table, no I/O. Role resolution lives in
``confvault.services.access``.
"""

from __future__ import annotations

import enum


class Role(str, enum.Enum):
    OWNER = "OWNER"
    EDITOR = "EDITOR"
    VIEWER = "VIEWER"

    @property
    def privilege(self) -> int:
        return _PRIVILEGE[self]


_PRIVILEGE = {Role.VIEWER: 1, Role.EDITOR: 2, Role.OWNER: 3}


class Action(str, enum.Enum):
    READ = "read"
    WRITE = "write"  # create/update environments, secrets, variables and their links
    DELETE = "delete"  # environments, secrets, variables
    UPDATE_APPLICATION = "update_application"
    DELETE_APPLICATION = "delete_application"
    MANAGE_MEMBERS = "manage_members"


REQUIRED_ROLE: dict[Action, Role] = {
    Action.READ: Role.VIEWER,
    Action.WRITE: Role.EDITOR,
    Action.DELETE: Role.EDITOR,
    Action.UPDATE_APPLICATION: Role.EDITOR,
    Action.DELETE_APPLICATION: Role.OWNER,
    Action.MANAGE_MEMBERS: Role.OWNER,
}


def is_allowed(role: Role | None, action: Action) -> bool:
    if role is None:
        return False
    return role.privilege >= REQUIRED_ROLE[action].privilege
