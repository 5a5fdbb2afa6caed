"""
CRUD over SQLite tables.

BaseService knows one table with an `id` primary key and created_at /
updated_at / is_active bookkeeping columns. Reads go through the query
builder so that the same predicate maps the filter parser produces can be
used directly; writes are plain parameterised statements.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..database import _execute_query_with_conn, _execute_write
from ..exceptions import DuplicateResourceException, ResourceNotFoundException
from ..filters import Predicate, PredicateKind, PredicateMap, format_datetime
from ..query import SearchModel, build_select_from_search

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

_READ_ONLY = ("id", "created_at", "updated_at", "createdAt", "updatedAt")


def _now() -> str:
    return format_datetime(datetime.now(timezone.utc))


def _eq(column: str, value: Any) -> PredicateMap:
    return {column: Predicate(PredicateKind.EQUAL, value)}


class BaseService:
    table: str = ""
    resource: str = "Entity"

    # ---- reads -------------------------------------------------------------

    def _select(
        self,
        where: Sequence[PredicateMap] = (),
        *,
        sort: Sequence[str] = (),
        page_size: int = 0,
        page_index: int = 0,
        include_count: bool = False,
    ) -> Tuple[List[Row], Optional[int]]:
        sm = SearchModel(
            entity_name=self.table,
            where=list(where),
            sort=list(sort),
            page_size=page_size,
            page_index=page_index,
        )
        build = build_select_from_search(sm, include_count=include_count)
        logger.debug("SQL %s params=%s", build.sql, build.params)
        _, rows = _execute_query_with_conn(build.sql, build.params)
        total = None
        if include_count and build.count_sql:
            _, count_rows = _execute_query_with_conn(build.count_sql, build.count_params)
            total = int(count_rows[0][0])
        return [dict(r) for r in rows], total

    def find_all(
        self,
        where: Sequence[PredicateMap] = (),
        *,
        sort: Sequence[str] = (),
        page_size: int = 0,
        page_index: int = 0,
    ) -> List[Row]:
        rows, _ = self._select(where, sort=sort, page_size=page_size, page_index=page_index)
        return rows

    def find_and_count(
        self,
        where: Sequence[PredicateMap] = (),
        *,
        sort: Sequence[str] = (),
        page_size: int = 0,
        page_index: int = 0,
    ) -> Tuple[List[Row], int]:
        rows, total = self._select(
            where, sort=sort, page_size=page_size, page_index=page_index, include_count=True
        )
        return rows, total or 0

    def find_one(self, where: PredicateMap, identifier: Any = None) -> Row:
        rows = self.find_all([where], page_size=1)
        if not rows:
            raise ResourceNotFoundException(self.resource, identifier)
        return rows[0]

    def find_by_id(self, id: str) -> Row:
        return self.find_one(_eq("id", id), id)

    def count(self, where: Sequence[PredicateMap] = ()) -> int:
        _, total = self.find_and_count(where, page_size=1)
        return total

    def exists(self, where: PredicateMap) -> bool:
        return self.count([where]) > 0

    # ---- writes ------------------------------------------------------------

    def create(self, data: Mapping[str, Any]) -> Row:
        now = _now()
        row = {k: v for k, v in data.items() if k not in _READ_ONLY}
        row.update({"id": str(uuid.uuid4()), "created_at": now, "updated_at": now})
        cols = list(row)
        sql = f"INSERT INTO {self.table} ({', '.join(cols)}) VALUES ({', '.join('?' for _ in cols)})"
        _execute_write(sql, [row[c] for c in cols])
        logger.info("Created %s %s", self.resource, row["id"])
        return self.find_by_id(row["id"])

    def update(self, id: str, data: Mapping[str, Any]) -> Row:
        self.find_by_id(id)
        changes = {k: v for k, v in data.items() if k not in _READ_ONLY}
        if not changes:
            return self.find_by_id(id)
        changes["updated_at"] = _now()
        assignments = ", ".join(f"{c} = ?" for c in changes)
        _execute_write(f"UPDATE {self.table} SET {assignments} WHERE id = ?", [*changes.values(), id])
        return self.find_by_id(id)

    def remove(self, id: str) -> None:
        self.find_by_id(id)
        _execute_write(f"DELETE FROM {self.table} WHERE id = ?", [id])
        logger.info("Removed %s %s", self.resource, id)

    def soft_delete(self, id: str) -> None:
        updated = _execute_write(
            f"UPDATE {self.table} SET is_active = ?, updated_at = ? WHERE id = ?", [False, _now(), id]
        )
        if not updated:
            raise ResourceNotFoundException(self.resource, id)


class UserService(BaseService):
    table = "users"
    resource = "User"

    def find_by_email(self, email: str) -> Optional[Row]:
        rows = self.find_all([_eq("email", email.lower())], page_size=1)
        return rows[0] if rows else None

    def find_active_users(self) -> List[Row]:
        return self.find_all([_eq("is_active", True)], sort=["created_at DESC"])

    def _assert_email_free(self, email: Optional[str], own_id: Optional[str] = None) -> None:
        if not email:
            return
        existing = self.find_by_email(email)
        if existing and existing["id"] != own_id:
            raise DuplicateResourceException(self.resource, "email", email)

    def create(self, data: Mapping[str, Any]) -> Row:
        self._assert_email_free(data.get("email"))
        return super().create(data)

    def update_profile(self, id: str, data: Mapping[str, Any]) -> Row:
        """Apply profile changes; identity and timestamps cannot be set here."""
        changes = {k: v for k, v in data.items() if k not in _READ_ONLY}
        # required columns are never cleared through a partial update
        for column in ("first_name", "last_name", "email", "is_active"):
            if column in changes and changes[column] is None:
                del changes[column]
        self._assert_email_free(changes.get("email"), own_id=id)
        return self.update(id, changes)

    def activate(self, id: str) -> Row:
        return self.update(id, {"is_active": True})

    def deactivate(self, id: str) -> Row:
        return self.update(id, {"is_active": False})
