"""
Read-only catalog queries for API consumers.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Optional

from ...config import PAGE_SIZE_DEFAULT, PAGE_SIZE_MAX
from ...shared import ErrorCode, Result
from .models import CatalogEntry, CatalogPage, ValueKind


class CatalogQueryService:
    def __init__(self, repository, page_size_default: int = PAGE_SIZE_DEFAULT, page_size_max: int = PAGE_SIZE_MAX):
        self.repository = repository
        self.page_size_max = max(1, int(page_size_max))
        self.page_size_default = min(max(1, int(page_size_default)), self.page_size_max)

    async def list_all(self) -> Result[list[CatalogEntry]]:
        return await self.repository.find_all()

    async def list_by_kind(self, kind: Any) -> Result[list[CatalogEntry]]:
        parsed = ValueKind.parse(kind)
        if parsed is None:
            return Result.Err(ErrorCode.INVALID_INPUT, f"Unknown kind: {kind}")
        return await self.repository.find_by_kind(parsed)

    async def list_by_names(self, names: Iterable[str]) -> Result[list[CatalogEntry]]:
        return await self.repository.find_by_names(list(names or ()))

    async def existing_names(self) -> Result[set[str]]:
        return await self.repository.find_existing_names()

    async def get_paginated(
        self,
        page: int = 1,
        per_page: Optional[int] = None,
        kind: Any = None,
        name_contains: Optional[str] = None,
    ) -> Result[CatalogPage]:
        if per_page is None:
            per_page = self.page_size_default
        errors: list[str] = []
        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            errors.append("page must be a positive integer")
        if isinstance(per_page, bool) or not isinstance(per_page, int) or per_page < 1:
            errors.append("per_page must be a positive integer")
        elif per_page > self.page_size_max:
            errors.append(f"per_page cannot exceed {self.page_size_max}")

        parsed_kind = None
        if kind not in (None, ""):
            parsed_kind = ValueKind.parse(kind)
            if parsed_kind is None:
                errors.append(f"Unknown kind: {kind}")
        if errors:
            return Result.Err(ErrorCode.INVALID_INPUT, "; ".join(errors), errors=errors)

        search = (name_contains or "").strip() or None
        return await self.repository.find_paginated(
            page=page,
            per_page=per_page,
            kind=parsed_kind,
            name_contains=search,
        )
