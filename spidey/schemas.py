from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class PageMeta(BaseModel):
    """Pagination block of a data page."""

    model_config = ConfigDict(extra="allow")

    next: str | None = None


class DataPage(BaseModel):
    """One page of crawled results as returned by the data endpoint."""

    model_config = ConfigDict(extra="allow")

    error: Any = None
    results: list[dict[str, Any]] = Field(default_factory=list)
    meta: PageMeta = Field(default_factory=PageMeta)

    @field_validator("results", "meta", mode="before")
    @classmethod
    def _null_as_missing(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return [] if info.field_name == "results" else {}
        return value

    @property
    def has_error(self) -> bool:
        return bool(self.error)

    @property
    def next_page(self) -> str | None:
        return self.meta.next or None
