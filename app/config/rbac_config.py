"""
Role and Permission Configuration
Defines the three application roles, the role hierarchy used by the RBAC gate,
and the per-role permission matrix returned to clients by /auth/me.
"""

from enum import Enum
from typing import Dict, Iterable, List


class Role(str, Enum):
    EXECUTIVE = "EXECUTIVE"
    PROJECT_MANAGER = "PROJECT_MANAGER"
    INSPECTOR = "INSPECTOR"


# Roles each role is allowed to act as. A manager inherits inspector-level access;
# executives only cover their own scope.
ROLE_HIERARCHY: Dict[Role, List[Role]] = {
    Role.EXECUTIVE: [Role.EXECUTIVE],
    Role.PROJECT_MANAGER: [Role.PROJECT_MANAGER, Role.INSPECTOR],
    Role.INSPECTOR: [Role.INSPECTOR],
}

# Define modules and their actions
MODULES = {
    "projects": {
        "resource": "projects",
        "actions": ["create", "read", "update", "delete", "manage_members"],
        "description": "Project and team management"
    },
    "checklists": {
        "resource": "checklists",
        "actions": ["create", "read", "update", "delete"],
        "description": "Checklist template management"
    },
    "inspections": {
        "resource": "inspections",
        "actions": ["create", "read", "update", "delete", "submit", "approve"],
        "description": "Inspection workflow"
    },
    "evidence": {
        "resource": "evidence",
        "actions": ["read", "upload", "verify", "delete"],
        "description": "Inspection evidence"
    },
    "escalations": {
        "resource": "escalations",
        "actions": ["create", "read", "update"],
        "description": "Rejection escalation queue"
    },
    "notifications": {
        "resource": "notifications",
        "actions": ["create", "read"],
        "description": "User notifications"
    },
    "reports": {
        "resource": "reports",
        "actions": ["read", "generate"],
        "description": "Reports and audit trail"
    },
}

# Actions granted to each role per module. Missing module means no access.
ROLE_GRANTS: Dict[Role, Dict[str, List[str]]] = {
    Role.EXECUTIVE: {
        "projects": ["read"],
        "checklists": ["read"],
        "inspections": ["read"],
        "evidence": ["read"],
        "escalations": ["read", "update"],
        "notifications": ["read"],
        "reports": ["read", "generate"],
    },
    Role.PROJECT_MANAGER: {
        "projects": ["create", "read", "update", "delete", "manage_members"],
        "checklists": ["create", "read", "update", "delete"],
        "inspections": ["create", "read", "update", "delete", "approve"],
        "evidence": ["read", "upload", "verify", "delete"],
        "escalations": ["create", "read", "update"],
        "notifications": ["create", "read"],
        "reports": ["read", "generate"],
    },
    Role.INSPECTOR: {
        "projects": ["read"],
        "checklists": ["read"],
        "inspections": ["read", "update", "submit"],
        "evidence": ["read", "upload", "delete"],
        "escalations": ["read"],
        "notifications": ["read"],
    },
}


def covered_roles(role: str) -> List[Role]:
    """Roles that a user holding `role` may act as. Unknown roles cover nothing."""
    try:
        return ROLE_HIERARCHY[Role(role)]
    except ValueError:
        return []


def has_role(user_role: str, required_role: str) -> bool:
    try:
        required = Role(required_role)
    except ValueError:
        return False
    return required in covered_roles(user_role)


def has_any_role(user_role: str, required_roles: Iterable[str]) -> bool:
    return any(has_role(user_role, required) for required in required_roles)


def get_role_permissions(role: str) -> List[str]:
    """
    Returns the sorted permission names for a role, e.g. ["inspections:approve", ...].
    Only actions declared for a module in MODULES are emitted.
    """
    try:
        grants = ROLE_GRANTS[Role(role)]
    except ValueError:
        return []
    permissions = []
    for module_name, actions in grants.items():
        module_config = MODULES[module_name]
        for action in actions:
            if action in module_config["actions"]:
                permissions.append(f"{module_config['resource']}:{action}")
    return sorted(permissions)
