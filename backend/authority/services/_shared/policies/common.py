from authority.services._shared.principal import Principal, Role


def is_owner(*, actor_id, owner_id) -> bool:
    """Return True if the actor owns the resource."""
    return str(actor_id) == str(owner_id)


def is_admin(caller: Principal) -> bool:
    """Return True for admin and superadmin callers."""
    return caller.role.is_admin


def is_superadmin(caller: Principal) -> bool:
    return caller.role is Role.SUPERADMIN
