"""
Admin Permissions Registry
============================
Central registry of the back-office modules and which staff roles may open them.
Used by route protection and by /api/auth/me (client-side menu rendering).

Grants are exact: "job-cards" (small scale) does not imply
"job-cards/large-scale". SUPERADMIN reaches everything.
"""

from typing import List

# --- Module registry ---

PERMISSION_REGISTRY = {
    "dashboard":             "Dashboard",
    "pending-approvals":     "Pending Approvals",
    "reports":               "Reports",
    "payment-receipting":    "Payment Receipting",
    "settings":              "Settings",
    "setup":                 "Setup (exporters, daily prices)",
    "job-cards":             "Small Scale Job Cards",
    "job-cards/large-scale": "Large Scale Job Cards",
    "sealing-certification": "Sealing & Certification",
    "notifications":         "Notifications",
    "valuations":            "Valuations",
}

ALL_PERMISSION_KEYS = list(PERMISSION_REGISTRY.keys())

SUPERADMIN = "SUPERADMIN"

ROLE_PERMISSIONS = {
    "EXECUTIVE":           ["dashboard", "pending-approvals"],
    "FINANCE":             ["dashboard", "reports", "payment-receipting"],
    "ADMIN":               ["dashboard", "reports", "settings", "setup"],
    "SMALL_SCALE_ASSAYER": ["dashboard", "job-cards"],
    "LARGE_SCALE_ASSAYER": ["dashboard", "job-cards/large-scale"],
    SUPERADMIN:            ALL_PERMISSION_KEYS,
}


def permissions_for_role(role: str) -> List[str]:
    return list(ROLE_PERMISSIONS.get(role, []))


def role_can_access(role: str, module: str) -> bool:
    if role == SUPERADMIN:
        return True
    return module in ROLE_PERMISSIONS.get(role, [])
