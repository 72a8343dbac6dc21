"""Well-known operation names.

The operation namespace is open: any string can be registered. These are
the names the root version of the default chain implements.
"""

# Response helpers
SUCCESS = "success"
CREATED = "created"
NO_CONTENT = "no_content"
ERROR = "error"
NOT_FOUND = "not_found"
UNAUTHORIZED = "unauthorized"
FORBIDDEN = "forbidden"
PAGINATED = "paginated"

# Resource transformation
FORMAT_RESPONSE = "format_response"
RESOURCE_META = "resource_meta"

# Request validation
AUTHORIZE = "authorize"
FORMAT_VALIDATION_ERRORS = "format_validation_errors"
FORMAT_AUTHORIZATION_FAILURE = "format_authorization_failure"

RESPONSE_OPERATIONS: tuple[str, ...] = (
    SUCCESS,
    CREATED,
    NO_CONTENT,
    ERROR,
    NOT_FOUND,
    UNAUTHORIZED,
    FORBIDDEN,
    PAGINATED,
)
RESOURCE_OPERATIONS: tuple[str, ...] = (FORMAT_RESPONSE, RESOURCE_META)
REQUEST_OPERATIONS: tuple[str, ...] = (
    AUTHORIZE,
    FORMAT_VALIDATION_ERRORS,
    FORMAT_AUTHORIZATION_FAILURE,
)

ROOT_OPERATIONS: tuple[str, ...] = RESPONSE_OPERATIONS + RESOURCE_OPERATIONS + REQUEST_OPERATIONS
