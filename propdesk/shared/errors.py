"""Mapping of database constraint failures to API error codes"""

from sqlalchemy.exc import IntegrityError

# Postgres SQLSTATE codes
PG_ERROR_CODES = {
    "23505": ("DUPLICATE_ENTRY", "A record with these values already exists"),
    "23503": ("FOREIGN_KEY_VIOLATION", "Referenced record does not exist"),
    "23502": ("NOT_NULL_VIOLATION", "A required field is missing"),
}

# SQLite only reports messages
SQLITE_MESSAGES = {
    "UNIQUE constraint failed": "23505",
    "FOREIGN KEY constraint failed": "23503",
    "NOT NULL constraint failed": "23502",
}


def classify_integrity_error(exc: IntegrityError) -> tuple[str, str]:
    """Return (code, message) for an IntegrityError from any supported backend"""
    pgcode = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
    if pgcode in PG_ERROR_CODES:
        return PG_ERROR_CODES[pgcode]

    text = str(exc.orig)
    for fragment, code in SQLITE_MESSAGES.items():
        if fragment in text:
            return PG_ERROR_CODES[code]

    return "CONSTRAINT_VIOLATION", "The request conflicts with existing data"
