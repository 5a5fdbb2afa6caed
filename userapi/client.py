"""
Thin HTTP client for the /users API.

Filters are rendered with the same serializer the server parses, so a
list of FilterDescriptor objects goes over the wire as one `filter`
query parameter.

    with httpx.Client(base_url="http://localhost:8000") as http:
        api = UserApiClient(http)
        api.list(filters=[FilterDescriptor("lastName", FilterOperator.STARTSWITH, "Sm")])
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from .filters import FilterDescriptor, LogicalOperator, build_filter_query_params

logger = logging.getLogger(__name__)


def build_pagination_params(
    page: Optional[int] = None,
    page_size: Optional[int] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> Dict[str, str]:
    params: Dict[str, str] = {}
    if page is not None:
        params["page"] = str(page)
    if page_size is not None:
        params["pageSize"] = str(page_size)
    if sort_by:
        params["sortBy"] = sort_by
    if sort_order:
        params["sortOrder"] = sort_order
    return params


class UserApiClient:
    def __init__(self, http: httpx.Client, base_url: str = "/api/users"):
        self.http = http
        self.base_url = base_url.rstrip("/")

    def _url(self, *parts: str) -> str:
        return "/".join([self.base_url, *parts]) if parts else self.base_url

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        response = self.http.request(method, url, **kwargs)
        if response.is_error:
            logger.warning("%s %s failed - status=%d", method, url, response.status_code)
        response.raise_for_status()
        return response

    def _query(
        self,
        filters: Optional[Sequence[FilterDescriptor]],
        logical_operator: LogicalOperator,
        **pagination: Any,
    ) -> Dict[str, str]:
        params = dict(build_filter_query_params(filters or [], logical_operator))
        params.update(build_pagination_params(**pagination))
        return params

    def list(
        self,
        filters: Optional[Sequence[FilterDescriptor]] = None,
        logical_operator: LogicalOperator = LogicalOperator.AND,
        **pagination: Any,
    ) -> List[Dict[str, Any]]:
        params = self._query(filters, logical_operator, **pagination)
        return self._send("GET", self._url(), params=params).json()

    def paginated(
        self,
        filters: Optional[Sequence[FilterDescriptor]] = None,
        logical_operator: LogicalOperator = LogicalOperator.AND,
        **pagination: Any,
    ) -> Dict[str, Any]:
        params = self._query(filters, logical_operator, **pagination)
        return self._send("GET", self._url("paginated"), params=params).json()

    def search(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """POST a SearchRequest body (camelCase dict, see SearchRequest.to_dict)."""
        return self._send("POST", self._url("search"), json=request).json()

    def active(self) -> List[Dict[str, Any]]:
        return self._send("GET", self._url("active")).json()

    def get(self, id: str) -> Dict[str, Any]:
        return self._send("GET", self._url(id)).json()

    def get_by_email(self, email: str) -> Dict[str, Any]:
        return self._send("GET", self._url("email", email)).json()

    def create(self, user: Dict[str, Any]) -> Dict[str, Any]:
        return self._send("POST", self._url(), json=user).json()

    def update(self, id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        return self._send("PUT", self._url(id), json=changes).json()

    def delete(self, id: str) -> None:
        self._send("DELETE", self._url(id))

    def activate(self, id: str) -> Dict[str, Any]:
        return self._send("PATCH", self._url(id, "activate")).json()

    def deactivate(self, id: str) -> Dict[str, Any]:
        return self._send("PATCH", self._url(id, "deactivate")).json()
