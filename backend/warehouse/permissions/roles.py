# Overview: Fixed permission sets for the three user roles.

from ..models.auth import ROLE_ADMIN, ROLE_ASSISTANT_ADMIN, ROLE_USER
from .definitions import PERMISSION_DEFINITIONS


_CASHIER_PERMISSIONS = [
    "VIEW_PRODUCTS",
    "CREATE_SALE",
    "PROCESS_RETURN",
    "MANAGE_DEBTS",
]

# Admin holds every permission; assistant-admin adds reports to the cashier set
DEFAULT_ROLE_PERMISSIONS = {
    ROLE_ADMIN: [perm[0] for perm in PERMISSION_DEFINITIONS],
    ROLE_ASSISTANT_ADMIN: _CASHIER_PERMISSIONS + ["VIEW_REPORTS"],
    ROLE_USER: list(_CASHIER_PERMISSIONS),
}
