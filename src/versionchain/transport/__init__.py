"""HTTP-facing helpers: version negotiation and the FastAPI integration."""

from versionchain.transport.negotiation import (
    negotiate_version,
    version_from_headers,
    version_from_path,
)
from versionchain.transport.server import (
    ERROR_STATUS_CODES,
    contract_dependency,
    create_app,
    register_error_handlers,
    to_json_response,
)

__all__ = [
    "ERROR_STATUS_CODES",
    "contract_dependency",
    "create_app",
    "negotiate_version",
    "register_error_handlers",
    "to_json_response",
    "version_from_headers",
    "version_from_path",
]
