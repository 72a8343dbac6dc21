"""Root (v1) behavior contract.

Every operation of the default chain is implemented here; later versions
only override what they change. Response format:

    Success: {"data": ..., "message": "..."}
    Error:   {"message": "...", "errors": {...}}
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from versionchain.contracts import operations as ops
from versionchain.models.responses import ApiResponse, Page

if TYPE_CHECKING:
    from versionchain.contracts.base import BehaviorContract
    from versionchain.resolver import VersionChainResolver

VERSION = "v1"

VALIDATION_FAILED_MESSAGE = "Validation failed"
NOT_AUTHORIZED_MESSAGE = "You are not authorized to perform this action."


def success(
    contract: BehaviorContract,
    data: Any = None,
    message: str | None = None,
    status_code: int = 200,
) -> ApiResponse:
    body: dict[str, Any] = {}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return ApiResponse(status_code=status_code, body=body)


def created(
    contract: BehaviorContract,
    data: Any = None,
    message: str = "Resource created successfully",
) -> ApiResponse:
    return contract.call(ops.SUCCESS, data, message, 201)


def no_content(contract: BehaviorContract) -> ApiResponse:
    return ApiResponse(status_code=204, body=None)


def error(
    contract: BehaviorContract,
    message: str,
    status_code: int = 400,
    errors: Mapping[str, Any] | None = None,
) -> ApiResponse:
    body: dict[str, Any] = {"message": message}
    if errors is not None:
        body["errors"] = dict(errors)
    return ApiResponse(status_code=status_code, body=body)


def not_found(contract: BehaviorContract, message: str = "Resource not found") -> ApiResponse:
    return contract.call(ops.ERROR, message, 404)


def unauthorized(contract: BehaviorContract, message: str = "Unauthorized") -> ApiResponse:
    return contract.call(ops.ERROR, message, 401)


def forbidden(contract: BehaviorContract, message: str = "Forbidden") -> ApiResponse:
    return contract.call(ops.ERROR, message, 403)


def paginated(
    contract: BehaviorContract,
    page: Page,
    transform: Callable[[Any], Any] | None = None,
) -> ApiResponse:
    """Format one page of a collection with ``meta`` and ``links`` blocks.

    Args:
        contract: Contract of the requesting version.
        page: The page to format.
        transform: Optional per-item transformation (e.g. a resource serializer).
    """
    data = [transform(item) for item in page.items] if transform else list(page.items)
    return ApiResponse(
        status_code=200,
        body={
            "data": data,
            "meta": {
                "current_page": page.current_page,
                "last_page": page.last_page,
                "per_page": page.per_page,
                "total": page.total,
            },
            "links": {
                "first": page.url(1),
                "last": page.url(page.last_page),
                "prev": page.previous_page_url,
                "next": page.next_page_url,
            },
        },
    )


def resource_meta(contract: BehaviorContract) -> dict[str, Any]:
    """Top-level keys added next to ``data`` in resource responses."""
    return {"api_version": VERSION}


def format_response(
    contract: BehaviorContract, resource: Any, status_code: int = 200
) -> ApiResponse:
    # resource_meta is resolved at the requesting version, not at v1.
    body = {"data": resource, **contract.call(ops.RESOURCE_META)}
    return ApiResponse(status_code=status_code, body=body)


def authorize(contract: BehaviorContract, request: Any = None) -> bool:
    return True


def group_error_messages(errors: Iterable[Mapping[str, Any]]) -> dict[str, list[str]]:
    """Group pydantic-style error dicts (``loc``, ``msg``) by dotted field path.

    Example:
        >>> group_error_messages([{"loc": ("body", "name"), "msg": "Field required"}])
        {'body.name': ['Field required']}
    """
    grouped: dict[str, list[str]] = {}
    for err in errors:
        field = ".".join(str(part) for part in err.get("loc", ())) or "__root__"
        grouped.setdefault(field, []).append(err.get("msg", "Invalid value"))
    return grouped


def format_validation_errors(
    contract: BehaviorContract,
    errors: Mapping[str, Any] | ValidationError,
) -> ApiResponse:
    if isinstance(errors, ValidationError):
        errors = group_error_messages(errors.errors())
    return ApiResponse(
        status_code=422,
        body={"message": VALIDATION_FAILED_MESSAGE, "errors": dict(errors)},
    )


def format_authorization_failure(contract: BehaviorContract) -> ApiResponse:
    return ApiResponse(status_code=403, body={"message": NOT_AUTHORIZED_MESSAGE})


IMPLEMENTATIONS: dict[str, Callable[..., Any]] = {
    ops.SUCCESS: success,
    ops.CREATED: created,
    ops.NO_CONTENT: no_content,
    ops.ERROR: error,
    ops.NOT_FOUND: not_found,
    ops.UNAUTHORIZED: unauthorized,
    ops.FORBIDDEN: forbidden,
    ops.PAGINATED: paginated,
    ops.RESOURCE_META: resource_meta,
    ops.FORMAT_RESPONSE: format_response,
    ops.AUTHORIZE: authorize,
    ops.FORMAT_VALIDATION_ERRORS: format_validation_errors,
    ops.FORMAT_AUTHORIZATION_FAILURE: format_authorization_failure,
}


def install(resolver: VersionChainResolver) -> None:
    """Register v1 as the root version with every root operation."""
    resolver.register(VERSION)
    for operation, implementation in IMPLEMENTATIONS.items():
        resolver.override(VERSION, operation, implementation)
