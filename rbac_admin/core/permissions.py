"""
Permission naming.

Permissions are plain strings of the form `<verb>_<module>`. The modules
that manage access itself (user, role, permission) are prefixed with
`admin`, so editing a role requires `edit_admin_role` while editing a form
template requires `edit_form_template`.

The sentinel `full_permissions` grants every permission.

Usage:
    from rbac_admin.core.permissions import Module, PermissionVerb, derive_permission_name

    derive_permission_name(Module.USER, PermissionVerb.READ)   # "read_admin_user"
    derive_permission_name("forms", "edit")                    # "edit_forms"
"""

from enum import Enum
from typing import Iterable

FULL_PERMISSIONS = "full_permissions"


class PermissionVerb(str, Enum):
    """Actions a permission can grant."""

    CREATE = "create"
    EDIT = "edit"
    READ = "read"
    DELETE = "delete"
    NAVBAR = "navbar"


class Module(str, Enum):
    """Application modules that carry permissions."""

    BUILDING = "building"
    BUILDING_ADMIN = "building_admin"
    FORMS = "forms"
    FORM_TEMPLATE = "form_template"
    PERMISSION = "permission"
    PROFILE_USER = "profile_user"
    ROLE = "role"
    USER = "user"


ADMINIZED_MODULES = frozenset({Module.USER.value, Module.ROLE.value, Module.PERMISSION.value})


def derive_permission_name(module: Module | str, verb: PermissionVerb | str) -> str:
    """Build the permission name required for `verb` on `module`."""
    module_name = Module(module).value if isinstance(module, Module) else str(module)
    verb_name = PermissionVerb(verb).value

    if module_name in ADMINIZED_MODULES:
        return f"{verb_name}_admin_{module_name}"
    return f"{verb_name}_{module_name}"


def all_permission_names(
    modules: Iterable[Module | str] = tuple(Module),
    verbs: Iterable[PermissionVerb | str] = tuple(PermissionVerb),
) -> list[str]:
    """Every derived name for the cross product of modules and verbs."""
    verbs = list(verbs)
    return [derive_permission_name(module, verb) for module in modules for verb in verbs]


def has_permission(granted: Iterable[str], required: str) -> bool:
    """True if `required` or the full_permissions sentinel is granted."""
    names = set(granted)
    return FULL_PERMISSIONS in names or required in names
