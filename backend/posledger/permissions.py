"""
Role capability sets.

WHY: Menu visibility in the client is not authorization. Every protected
route checks the caller's role against these sets server-side via
permission_service.can_access.

DESIGN PRINCIPLES:
- One capability per action
- Roles map to fixed capability sets (no per-user overrides)
- Admin has every capability
"""

# =============================================================================
# CAPABILITY DEFINITIONS
# =============================================================================

# Each capability is defined as: (code, description)
PERMISSION_DEFINITIONS = [
    ("VIEW_DASHBOARD", "View dashboard statistics"),
    ("VIEW_INVENTORY", "View products and categories"),
    ("MANAGE_PRODUCTS", "Create, edit and delete products and categories"),
    ("CREATE_SALE", "Create sale and return invoices"),
    ("CREATE_PURCHASE", "Create purchase invoices"),
    ("VIEW_INVOICES", "View invoices and receipts"),
    ("VIEW_PARTIES", "View customers and suppliers"),
    ("MANAGE_PARTIES", "Create, edit and delete customers and suppliers"),
    ("VIEW_DEBTS", "View outstanding balances and payment history"),
    ("RECORD_PAYMENT", "Record payments against customer or supplier balances"),
    ("VIEW_REPORTS", "Access sales reports and analytics"),
    ("MANAGE_SETTINGS", "Edit store settings"),
    ("MANAGE_USERS", "Create users and change roles"),
]

ALL_PERMISSIONS = frozenset(code for code, _ in PERMISSION_DEFINITIONS)


# =============================================================================
# ROLES
# =============================================================================

ROLE_ADMIN = "admin"
ROLE_SALES = "sales"
ROLE_ACCOUNTANT = "accountant"
ROLE_WAREHOUSE = "warehouse"

VALID_ROLES = (ROLE_ADMIN, ROLE_SALES, ROLE_ACCOUNTANT, ROLE_WAREHOUSE)
DEFAULT_ROLE = ROLE_SALES

ROLE_PERMISSIONS = {
    ROLE_ADMIN: ALL_PERMISSIONS,
    ROLE_SALES: frozenset({
        "VIEW_DASHBOARD",
        "VIEW_INVENTORY",
        "CREATE_SALE",
        "VIEW_INVOICES",
        "VIEW_PARTIES",
        "MANAGE_PARTIES",
        "VIEW_DEBTS",
        "RECORD_PAYMENT",
    }),
    ROLE_ACCOUNTANT: frozenset({
        "VIEW_DASHBOARD",
        "VIEW_INVENTORY",
        "VIEW_INVOICES",
        "VIEW_PARTIES",
        "VIEW_DEBTS",
        "RECORD_PAYMENT",
        "VIEW_REPORTS",
    }),
    ROLE_WAREHOUSE: frozenset({
        "VIEW_DASHBOARD",
        "VIEW_INVENTORY",
        "MANAGE_PRODUCTS",
        "CREATE_PURCHASE",
        "VIEW_INVOICES",
        "VIEW_PARTIES",
    }),
}
