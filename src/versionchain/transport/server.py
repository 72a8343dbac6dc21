"""FastAPI integration for versioned request handling.

Wires a VersionChainResolver into a FastAPI application:

- contract_dependency() negotiates the request's version and injects the
  matching BehaviorContract into endpoints
- register_error_handlers() turns version chain errors into JSON error
  responses, and formats request validation errors with the
  ``format_validation_errors`` operation of the request's version

Example:
    >>> from fastapi import Depends, FastAPI
    >>> resolver = create_default_resolver(freeze=True)
    >>> app = FastAPI()
    >>> register_error_handlers(app, resolver)
    >>> get_contract = contract_dependency(resolver)
    >>>
    >>> @app.get("/api/{version}/drivers/{driver_id}")
    ... async def show_driver(version: str, driver_id: int, contract=Depends(get_contract)):
    ...     return to_json_response(contract.call("format_response", {"id": driver_id}))
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import Field

from versionchain import __version__
from versionchain.config import Settings
from versionchain.contracts import BehaviorContract, create_default_resolver
from versionchain.contracts import operations as ops
from versionchain.contracts.v1 import group_error_messages
from versionchain.errors import (
    InvalidVersionTagError,
    UnknownVersionError,
    VersionChainError,
)
from versionchain.models.base import VersionChainBaseModel
from versionchain.models.responses import ApiResponse
from versionchain.models.tags import parse_version_tag
from versionchain.observability import bind_api_version, get_logger, get_metrics
from versionchain.resolver import VersionChainResolver
from versionchain.transport.negotiation import negotiate_version

logger = get_logger(__name__)

# Errors not listed here are configuration defects and map to 500.
ERROR_STATUS_CODES: dict[type[VersionChainError], int] = {
    UnknownVersionError: 404,
    InvalidVersionTagError: 400,
}


def status_code_for(exc: VersionChainError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return 500


def to_json_response(response: ApiResponse) -> Response:
    """Convert an ApiResponse into a FastAPI response (empty body for None)."""
    if response.body is None:
        return Response(status_code=response.status_code)
    return JSONResponse(status_code=response.status_code, content=response.body)


def contract_dependency(
    resolver: VersionChainResolver, settings: Settings | None = None
) -> Callable[[Request], Awaitable[BehaviorContract]]:
    """Build a FastAPI dependency yielding the request's BehaviorContract.

    The negotiated version is bound into the logging context as
    ``api_version`` for the rest of the request.

    Raises (from the dependency):
        UnknownVersionError: If the negotiated version is not registered.
        InvalidVersionTagError: If the version header is malformed.
    """
    settings = settings or Settings()

    async def get_contract(request: Request) -> BehaviorContract:
        tag = negotiate_version(
            resolver,
            path=request.url.path,
            headers=request.headers,
            settings=settings,
        )
        bind_api_version(tag)
        return resolver.bind(tag)

    return get_contract


def register_error_handlers(
    app: FastAPI,
    resolver: VersionChainResolver,
    settings: Settings | None = None,
) -> None:
    """Install exception handlers for version chain and validation errors."""
    settings = settings or Settings()

    async def version_chain_error_handler(
        request: Request, exc: VersionChainError
    ) -> JSONResponse:
        status_code = status_code_for(exc)
        log = logger.error if status_code >= 500 else logger.warning
        log(
            "versionchain.request.error",
            path=request.url.path,
            error_code=exc.code,
            status_code=status_code,
        )
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> Response:
        try:
            tag = negotiate_version(
                resolver, path=request.url.path, headers=request.headers, settings=settings
            )
        except VersionChainError as e:
            logger.warning(
                "versionchain.validation.version_fallback",
                path=request.url.path,
                error_code=e.code,
                fallback=resolver.root,
            )
            if resolver.root is None:
                raise
            tag = resolver.root
        bind_api_version(tag)
        contract = resolver.bind(tag)
        response = contract.call(ops.FORMAT_VALIDATION_ERRORS, group_error_messages(exc.errors()))
        return to_json_response(response)

    app.add_exception_handler(VersionChainError, version_chain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)


class EchoRequest(VersionChainBaseModel):
    """Body of the echo endpoint."""

    message: str = Field(..., min_length=1, max_length=1000)


def require_version_tag(version: str) -> str:
    """Reject a ``{version}`` path segment that is not a version tag.

    Raises:
        InvalidVersionTagError: If the segment is malformed.
    """
    return parse_version_tag(version)


def create_versioned_router(
    resolver: VersionChainResolver, settings: Settings | None = None
) -> APIRouter:
    """Router exposing the chain itself under ``<prefix>/{version}``."""
    settings = settings or Settings()
    get_contract = contract_dependency(resolver, settings)
    router = APIRouter(
        prefix=f"{settings.path_prefix}/{{version}}",
        tags=["versions"],
        dependencies=[Depends(require_version_tag)],
    )

    @router.get("/versions")
    async def list_versions(
        version: str, contract: BehaviorContract = Depends(get_contract)
    ) -> Response:
        payload = {
            "current": contract.version,
            "versions": resolver.versions(),
            "lineage": resolver.lineage(contract.version),
        }
        return to_json_response(contract.call(ops.FORMAT_RESPONSE, payload))

    @router.get("/operations")
    async def list_operations(
        version: str, contract: BehaviorContract = Depends(get_contract)
    ) -> Response:
        table = resolver.resolution_table(contract.version)
        return to_json_response(contract.call(ops.FORMAT_RESPONSE, table))

    @router.get("/operations/{operation}")
    async def show_operation(
        version: str, operation: str, contract: BehaviorContract = Depends(get_contract)
    ) -> Response:
        record = resolver.override_record(contract.version, operation)
        if record.source_version is None:
            return to_json_response(
                contract.call(ops.NOT_FOUND, f"Operation not found: {operation}")
            )
        return to_json_response(contract.call(ops.FORMAT_RESPONSE, record.model_dump()))

    @router.post("/echo")
    async def echo(
        version: str, body: EchoRequest, contract: BehaviorContract = Depends(get_contract)
    ) -> Response:
        if not contract.call(ops.AUTHORIZE, body):
            return to_json_response(contract.call(ops.FORMAT_AUTHORIZATION_FAILURE))
        return to_json_response(contract.call(ops.CREATED, {"message": body.message}))

    return router


def create_app(
    resolver: VersionChainResolver | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Create a FastAPI app serving the version chain.

    Args:
        resolver: Resolver to serve; defaults to the frozen default chain.
        settings: Negotiation settings; defaults to Settings.from_env().
    """
    if resolver is None:
        resolver = create_default_resolver(freeze=True)
    if settings is None:
        settings = Settings.from_env()

    app = FastAPI(title="versionchain", version=__version__)
    app.state.resolver = resolver
    app.state.settings = settings
    register_error_handlers(app, resolver, settings)
    app.include_router(create_versioned_router(resolver, settings))

    @app.get("/metrics")
    async def metrics() -> PlainTextResponse:
        return PlainTextResponse(
            get_metrics().export_prometheus(),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    logger.info("versionchain.app.created", versions=resolver.versions())
    return app


__all__ = [
    "ERROR_STATUS_CODES",
    "EchoRequest",
    "contract_dependency",
    "create_app",
    "create_versioned_router",
    "register_error_handlers",
    "require_version_tag",
    "status_code_for",
    "to_json_response",
]
