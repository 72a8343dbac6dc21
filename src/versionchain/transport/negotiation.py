"""Request version negotiation.

Picks the API version a request targets, in priority order:

1. URL path segment after the prefix (``/api/v2/drivers`` -> ``v2``)
2. Version header (``X-API-Version: v2``), or a vendor media type in
   ``Accept`` (``application/vnd.api.v2+json``)
3. The configured default version
4. The newest registered version
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from versionchain.config import Settings
from versionchain.errors import UnknownVersionError
from versionchain.models.tags import is_version_tag, parse_version_tag
from versionchain.observability import get_logger, get_metrics
from versionchain.resolver import VersionChainResolver

logger = get_logger(__name__)

_ACCEPT_VERSION_RE = re.compile(
    r"application/vnd\.(?:[\w-]+\.)*(v\d+(?:\.\d+)?)\+json", re.IGNORECASE
)


def version_from_path(path: str, prefix: str = "/api") -> str | None:
    """Return the version tag in the first path segment after prefix, if any.

    Example:
        >>> version_from_path("/api/v2/drivers")
        'v2'
        >>> version_from_path("/api/drivers") is None
        True
    """
    prefix = prefix.rstrip("/")
    if prefix:
        if path != prefix and not path.startswith(prefix + "/"):
            return None
        path = path[len(prefix) :]
    segments = [s for s in path.split("/") if s]
    if not segments or not is_version_tag(segments[0]):
        return None
    return parse_version_tag(segments[0])


def _get_header(headers: Mapping[str, str], name: str) -> str | None:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def version_from_headers(
    headers: Mapping[str, str], header_name: str = "X-API-Version"
) -> str | None:
    """Return the version named by the version header or the Accept media type.

    Raises:
        InvalidVersionTagError: If the version header is present but malformed.
    """
    explicit = _get_header(headers, header_name)
    if explicit is not None and explicit.strip():
        return parse_version_tag(explicit)

    accept = _get_header(headers, "accept")
    if accept:
        match = _ACCEPT_VERSION_RE.search(accept)
        if match:
            return parse_version_tag(match.group(1))
    return None


def negotiate_version(
    resolver: VersionChainResolver,
    *,
    path: str | None = None,
    headers: Mapping[str, str] | None = None,
    settings: Settings | None = None,
) -> str:
    """Choose the registered version a request targets.

    Raises:
        UnknownVersionError: If the chosen version is not registered, or the
            resolver holds no versions at all.
        InvalidVersionTagError: If the version header is malformed.
    """
    settings = settings or Settings()
    source = "path"
    tag = version_from_path(path, settings.path_prefix) if path is not None else None
    if tag is None and headers is not None:
        source = "header"
        tag = version_from_headers(headers, settings.version_header)
    if tag is None and settings.default_version is not None:
        source = "default"
        tag = settings.default_version
    if tag is None:
        source = "latest"
        tag = resolver.head
    if tag is None:
        raise UnknownVersionError("<none>", details={"reason": "no versions registered"})

    if not resolver.has_version(tag):
        logger.warning("versionchain.negotiation.unknown_version", version=tag, source=source)
        get_metrics().increment_counter(
            "versionchain_resolution_errors_total", {"error": "UnknownVersionError"}
        )
        raise UnknownVersionError(tag, details={"source": source})

    tag = resolver.get_layer(tag).tag
    logger.debug("versionchain.negotiation.selected", version=tag, source=source)
    get_metrics().increment_counter(
        "versionchain_negotiations_total", {"version": tag, "source": source}
    )
    return tag
