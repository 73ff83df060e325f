# gestion/core/constants.py

# ─────────────────────────────────────────────────────────
# CONTROLLER KEY NAMES
# ─────────────────────────────────────────────────────────
API_PAGINATION = "pagination"
API_DETAIL = "detail"
API_UPSERT = "upsert"
API_DELETE = "delete"
CRUD_APIS = (API_PAGINATION, API_DETAIL, API_UPSERT, API_DELETE)

MODAL_UPSERT = "upsert"
MODAL_DELETE = "delete"
CRUD_MODALS = (MODAL_UPSERT, MODAL_DELETE)

BUTTON_UPSERT = "upsert"
BUTTON_DELETE = "delete"
CRUD_BUTTONS = (BUTTON_UPSERT, BUTTON_DELETE)

SELECTION_ROW = "row"
SELECTION_DELETE = "delete"
CRUD_SELECTIONS = (SELECTION_ROW, SELECTION_DELETE)

DEFAULT_TABLE = "rows"

# ─────────────────────────────────────────────────────────
# PAGINATION DEFAULTS
# ─────────────────────────────────────────────────────────
DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 10
MAX_PAGE_BUTTONS = 3

# ─────────────────────────────────────────────────────────
# PERSISTED STORAGE KEYS
# ─────────────────────────────────────────────────────────
STORAGE_ACCOUNT = "account"
STORAGE_INVENTORY_SETTINGS = "inventory_settings"
AUTH_STORAGE_KEYS = (STORAGE_ACCOUNT, STORAGE_INVENTORY_SETTINGS)

# ─────────────────────────────────────────────────────────
# INVENTORY DASHBOARD REFRESH OPTIONS (milliseconds)
# ─────────────────────────────────────────────────────────
REFRESH_OFF = 0
REFRESH_INTERVAL_OPTIONS = [
    (REFRESH_OFF, "Off"),
    (5_000, "Every 5 seconds"),
    (30_000, "Every 30 seconds"),
    (60_000, "Every minute"),
    (300_000, "Every 5 minutes"),
    (600_000, "Every 10 minutes"),
]
ALLOWED_REFRESH_INTERVALS = [value for value, _ in REFRESH_INTERVAL_OPTIONS]

# ─────────────────────────────────────────────────────────
# UI MESSAGES
# ─────────────────────────────────────────────────────────
GENERIC_ERROR_CODE = "ERROR"
GENERIC_ERROR_MESSAGE = "Something unexpected happened"
NETWORK_ERROR_CODE = "NETWORK_ERROR"
LOADING_LABEL = "Loading…"
RETRY_LABEL = "Retry"
MODAL_ERROR_TITLE = "Something went wrong"
MODAL_ERROR_DESCRIPTION = "The operation could not be completed"
