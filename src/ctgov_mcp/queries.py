"""Validated query models for the registry tools and the URLs they map to.

Each tool gets one pydantic model with explicit optionality and defaults.
`url()` renders the single upstream request for that model.
"""

from __future__ import annotations

from typing import List, Optional, Tuple
from urllib.parse import quote, urlencode

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PAGE_SIZE = 20
DEFAULT_FORMAT = "json"
DEFAULT_COUNT_TOTAL = "true"

STUDIES_PATH = "/studies"

# reserved marks left literal in a study id path segment
_ID_SAFE_CHARS = "!*'()"

QueryParams = List[Tuple[str, str]]


class _StudySearch(BaseModel):
    """Parameters shared by every search against the list-studies endpoint."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    cond: str = Field(min_length=1)
    term: Optional[str] = None
    locn: Optional[str] = None
    overallStatus: Optional[str] = None
    pageSize: int = DEFAULT_PAGE_SIZE
    format: str = DEFAULT_FORMAT
    countTotal: str = DEFAULT_COUNT_TOTAL
    pageToken: Optional[str] = None

    def _leading_params(self) -> QueryParams:
        return []

    def _optional_params(self) -> List[Tuple[str, Optional[str]]]:
        return [
            ("query.term", self.term),
            ("query.locn", self.locn),
            ("filter.overallStatus", self.overallStatus),
            ("pageToken", self.pageToken),
        ]

    def query_params(self) -> QueryParams:
        params: QueryParams = [("query.cond", self.cond)]
        params.extend(self._leading_params())
        # empty strings count as absent
        params.extend((key, value) for key, value in self._optional_params() if value)
        params.extend(
            [
                ("pageSize", str(self.pageSize)),
                ("format", self.format),
                ("countTotal", self.countTotal),
            ]
        )
        return params

    def url(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}{STUDIES_PATH}?{urlencode(self.query_params())}"


class ListStudiesQuery(_StudySearch):
    fields: Optional[str] = None

    def _optional_params(self) -> List[Tuple[str, Optional[str]]]:
        params = super()._optional_params()
        # keep pageToken last among the optional keys
        params.insert(3, ("fields", self.fields))
        return params


class SpecificFieldsQuery(_StudySearch):
    fields: str

    def _leading_params(self) -> QueryParams:
        return [("fields", self.fields)]


class GetStudyQuery(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    nct_id: str = Field(min_length=1)

    def url(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}{STUDIES_PATH}/{quote(self.nct_id, safe=_ID_SAFE_CHARS)}"
