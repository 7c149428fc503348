from tablesync.errors.codes import ErrorCode

# code -> (http_status, retryable)
ERROR_MAP = {
    ErrorCode.DB_ERROR: (500, False),
    ErrorCode.DB_UNAVAILABLE: (503, True),
    ErrorCode.CONSTRAINT_UNRESOLVED: (500, False),
    ErrorCode.INTERNAL: (500, False),
}


def map_error(code: ErrorCode | None) -> tuple[int, bool]:
    if code is None:
        return (500, False)
    return ERROR_MAP.get(code, (500, False))
