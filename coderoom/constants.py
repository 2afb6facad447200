DEFAULT_LANGUAGE = "javascript"
DEFAULT_BUFFER = "// start coding here\n"

# Reasons attached to ``joinRejected``
REASON_NAME_TAKEN = "name_taken"

__all__ = [
    "DEFAULT_LANGUAGE",
    "DEFAULT_BUFFER",
    "REASON_NAME_TAKEN",
]
