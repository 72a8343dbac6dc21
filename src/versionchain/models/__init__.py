"""versionchain models.

Frozen pydantic records for version tags, version layers, override
records and formatted responses.
"""

from versionchain.models.base import VersionChainBaseModel
from versionchain.models.layers import Implementation, OverrideRecord, VersionLayer
from versionchain.models.responses import ApiResponse, Page
from versionchain.models.tags import (
    VERSION_TAG_PATTERN,
    compare_tags,
    is_version_tag,
    parse_version_tag,
    sort_tags,
    version_key,
)

__all__ = [
    "ApiResponse",
    "Implementation",
    "OverrideRecord",
    "Page",
    "VERSION_TAG_PATTERN",
    "VersionChainBaseModel",
    "VersionLayer",
    "compare_tags",
    "is_version_tag",
    "parse_version_tag",
    "sort_tags",
    "version_key",
]
