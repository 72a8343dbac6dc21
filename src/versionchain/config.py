"""Runtime settings for version negotiation.

Environment Variables:
    VERSIONCHAIN_DEFAULT_VERSION: Version used when a request names none
        (unset: the newest registered version)
    VERSIONCHAIN_VERSION_HEADER: Header carrying the requested version
        (default: X-API-Version)
    VERSIONCHAIN_PATH_PREFIX: URL prefix preceding the version segment
        (default: /api)
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import Field, field_validator

from versionchain.models.base import VersionChainBaseModel
from versionchain.models.tags import parse_version_tag

ENV_DEFAULT_VERSION = "VERSIONCHAIN_DEFAULT_VERSION"
ENV_VERSION_HEADER = "VERSIONCHAIN_VERSION_HEADER"
ENV_PATH_PREFIX = "VERSIONCHAIN_PATH_PREFIX"

DEFAULT_VERSION_HEADER = "X-API-Version"
DEFAULT_PATH_PREFIX = "/api"


class Settings(VersionChainBaseModel):
    """Version negotiation settings.

    Attributes:
        default_version: Tag used when neither path nor header names one.
        version_header: Name of the request header carrying the version.
        path_prefix: URL prefix after which the version segment appears.
    """

    default_version: str | None = Field(default=None)
    version_header: str = Field(default=DEFAULT_VERSION_HEADER, min_length=1)
    path_prefix: str = Field(default=DEFAULT_PATH_PREFIX)

    @field_validator("default_version")
    @classmethod
    def normalize_default_version(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return parse_version_tag(v)

    @field_validator("path_prefix")
    @classmethod
    def normalize_path_prefix(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Load settings from environment variables.

        Raises:
            InvalidVersionTagError: If VERSIONCHAIN_DEFAULT_VERSION is malformed.
        """
        env = os.environ if environ is None else environ
        return cls(
            default_version=env.get(ENV_DEFAULT_VERSION),
            version_header=env.get(ENV_VERSION_HEADER, DEFAULT_VERSION_HEADER),
            path_prefix=env.get(ENV_PATH_PREFIX, DEFAULT_PATH_PREFIX),
        )
