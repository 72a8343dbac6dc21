"""Response records produced by behavior contract operations."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from versionchain.models.base import VersionChainBaseModel


class ApiResponse(VersionChainBaseModel):
    """A formatted API response: HTTP status code plus JSON body.

    Attributes:
        status_code: HTTP status code.
        body: JSON-serializable body, or None for an empty response (204).
    """

    status_code: int = Field(default=200, ge=100, le=599)
    body: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"status_code": self.status_code, "body": self.body}


class Page(VersionChainBaseModel):
    """One page of a paginated collection.

    Attributes:
        items: Items on this page.
        current_page: 1-based page number.
        last_page: Number of the last page (at least 1).
        per_page: Page size.
        total: Total number of items across all pages.
        base_url: URL the page links are built from (``?page=N`` is appended).
    """

    items: list[Any] = Field(default_factory=list)
    current_page: int = Field(default=1, ge=1)
    last_page: int = Field(default=1, ge=1)
    per_page: int = Field(default=15, ge=1)
    total: int = Field(default=0, ge=0)
    base_url: str = ""

    def url(self, page: int) -> str:
        separator = "&" if "?" in self.base_url else "?"
        return f"{self.base_url}{separator}page={page}"

    @property
    def previous_page_url(self) -> str | None:
        if self.current_page <= 1:
            return None
        return self.url(self.current_page - 1)

    @property
    def next_page_url(self) -> str | None:
        if self.current_page >= self.last_page:
            return None
        return self.url(self.current_page + 1)
