"""
Role based access policy.

Roles form a closed enumeration and every protected operation is
named by an ``Action``.  ``authorize`` is a total mapping from
``(role, action)`` to a ``Decision``: handlers never compare role
strings themselves, they declare the action they perform and let
the policy decide (see ``core.security.require_action``).

Matrix::

    action                 USER   OWNER  ADMIN
    create_user            -      -      +
    login                  +      +      +
    update_own_password    +      +      +
    manage_users           -      -      +
    manage_stores          -      -      +
    list_stores            +      +      +
    rate_store             +      -      -
    list_own_stores        -      +      -
    view_dashboard         -      -      +
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional, Union


class Role(str, Enum):
    USER = "USER"
    OWNER = "OWNER"
    ADMIN = "ADMIN"

    @classmethod
    def parse(cls, value: Union[str, "Role", None]) -> Optional["Role"]:
        """Return the matching role or ``None`` for anything unknown."""
        if isinstance(value, Role):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class Action(str, Enum):
    CREATE_USER = "create_user"
    LOGIN = "login"
    UPDATE_OWN_PASSWORD = "update_own_password"
    MANAGE_USERS = "manage_users"
    MANAGE_STORES = "manage_stores"
    LIST_STORES = "list_stores"
    RATE_STORE = "rate_store"
    LIST_OWN_STORES = "list_own_stores"
    VIEW_DASHBOARD = "view_dashboard"


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


_ALL_ROLES: FrozenSet[Role] = frozenset(Role)

POLICY: Dict[Action, FrozenSet[Role]] = {
    Action.CREATE_USER: frozenset({Role.ADMIN}),
    Action.LOGIN: _ALL_ROLES,
    Action.UPDATE_OWN_PASSWORD: _ALL_ROLES,
    Action.MANAGE_USERS: frozenset({Role.ADMIN}),
    Action.MANAGE_STORES: frozenset({Role.ADMIN}),
    Action.LIST_STORES: _ALL_ROLES,
    Action.RATE_STORE: frozenset({Role.USER}),
    Action.LIST_OWN_STORES: frozenset({Role.OWNER}),
    Action.VIEW_DASHBOARD: frozenset({Role.ADMIN}),
}

# Message returned with a 403 when the policy denies an action.
DENIAL_MESSAGES: Dict[Action, str] = {
    Action.CREATE_USER: "Admin access required",
    Action.LOGIN: "Login not permitted",
    Action.UPDATE_OWN_PASSWORD: "Authentication required",
    Action.MANAGE_USERS: "Admin access required",
    Action.MANAGE_STORES: "Admin access required",
    Action.LIST_STORES: "Authentication required",
    Action.RATE_STORE: "Only normal users can rate stores",
    Action.LIST_OWN_STORES: "Store owner access required",
    Action.VIEW_DASHBOARD: "Admin access required",
}


def authorize(role: Union[Role, str, None], action: Action) -> Decision:
    """Decide whether ``role`` may perform ``action``.

    Unknown roles are always denied.
    """
    parsed = Role.parse(role)
    if parsed is not None and parsed in POLICY[action]:
        return Decision.ALLOW
    return Decision.DENY


def is_allowed(role: Union[Role, str, None], action: Action) -> bool:
    return authorize(role, action) is Decision.ALLOW


def denial_message(action: Action) -> str:
    return DENIAL_MESSAGES[action]
