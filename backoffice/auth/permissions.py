"""Role based permission checks for administrators."""

from backoffice.models.admin import AdminRole

SUPER_ADMIN = AdminRole.SUPER_ADMIN.value
IDEAS_READER = AdminRole.IDEAS_READER.value
IDEAS_MANAGER = AdminRole.IDEAS_MANAGER.value
EVENTS_READER = AdminRole.EVENTS_READER.value
EVENTS_MANAGER = AdminRole.EVENTS_MANAGER.value

VALID_ROLES = frozenset(role.value for role in AdminRole)

# super_admin is implicitly granted everything and is not listed here
PERMISSIONS: dict[str, frozenset[str]] = {
    "ideas.read": frozenset({IDEAS_READER, IDEAS_MANAGER}),
    "ideas.write": frozenset({IDEAS_MANAGER}),
    "ideas.delete": frozenset({IDEAS_MANAGER}),
    "ideas.manage": frozenset({IDEAS_MANAGER}),
    "events.read": frozenset({EVENTS_READER, EVENTS_MANAGER}),
    "events.write": frozenset({EVENTS_MANAGER}),
    "events.delete": frozenset({EVENTS_MANAGER}),
    "events.manage": frozenset({EVENTS_MANAGER}),
    "admin.view": VALID_ROLES,
    "admin.edit": frozenset({IDEAS_MANAGER, EVENTS_MANAGER}),
    "admin.manage": frozenset(),
}


def has_permission(role: str | None, permission: str) -> bool:
    """Check whether a role grants a permission.

    Args:
        role: Administrator role value
        permission: Permission name such as ``events.write``

    Returns:
        True if granted; unknown roles are always denied, super_admin is
        always granted, other roles are denied unknown permissions
    """
    if role not in VALID_ROLES:
        return False
    if role == SUPER_ADMIN:
        return True
    return role in PERMISSIONS.get(permission, frozenset())


def permissions_for(role: str | None) -> list[str]:
    """List every known permission a role holds, sorted."""
    return sorted(p for p in PERMISSIONS if has_permission(role, p))


def check_permission(role: str | None, permission: str) -> None:
    """Raise PermissionError unless the role grants the permission."""
    if not has_permission(role, permission):
        raise PermissionError(f"Permission refusée: {permission}")
