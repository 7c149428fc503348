from enum import Enum


class ErrorCode(str, Enum):
    # --- Executor / DB ---
    DB_ERROR = "DB_ERROR"
    DB_UNAVAILABLE = "DB_UNAVAILABLE"

    # --- Constraint resolution ---
    CONSTRAINT_UNRESOLVED = "CONSTRAINT_UNRESOLVED"

    # --- Internal ---
    INTERNAL = "INTERNAL"
