from typing import Any, Dict, List, Optional, Sequence, Tuple

from fastapi import APIRouter, Body, Depends, Query, Request, Response, status

from .. import config
from ..filters import (
    FilterDescriptor,
    parse_filter_query_result,
    parse_search_request_json,
    translate_groups,
)
from ..exceptions import ResourceNotFoundException
from ..query import build_where_clause_and_params
from ..registry import Registry, RegistryEntry
from ..validation import _assert_sorts_allowed, _cap_page_size, _check_filters, _to_snake
from .schemas import CreateUserDto, PaginatedUsers, UpdateUserDto, UserOut
from .service import UserService

ENTITY = "users"

router = APIRouter(prefix=f"{config.API_PREFIX}/users", tags=["users"])


def get_registry(request: Request) -> Registry:
    return request.app.state.registry


def get_user_service() -> UserService:
    return UserService()


def _sort_list(sort_by: Optional[str], sort_order: Optional[str], entry: RegistryEntry) -> List[str]:
    if not sort_by:
        return []
    column = _to_snake(sort_by)
    _assert_sorts_allowed(ENTITY, [column], entry)
    direction = "DESC" if (sort_order or "").lower() == "desc" else "ASC"
    return [f"{column} {direction}"]


def _prepare(
    groups: Sequence[Sequence[FilterDescriptor]],
    entry: RegistryEntry,
    *,
    strict: bool,
) -> list:
    checked = _check_filters(ENTITY, groups, entry, strict=strict)
    return translate_groups(checked)


def _page(
    service: UserService,
    where: list,
    sort: List[str],
    page: int,
    page_size: int,
    entry: RegistryEntry,
) -> Tuple[List[Dict[str, Any]], int, int]:
    size = _cap_page_size(ENTITY, page_size, entry)
    rows, total = service.find_and_count(where, sort=sort, page_size=size, page_index=max(page, 1) - 1)
    return rows, total, size


@router.get("", response_model=List[UserOut])
@router.get("/", response_model=List[UserOut], include_in_schema=False)
def list_users(
    request: Request,
    page: Optional[int] = Query(None, ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=0),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    strict: bool = False,
    reg: Registry = Depends(get_registry),
    service: UserService = Depends(get_user_service),
):
    """
    Users matching the `filter` expression. Without page/pageSize every match is returned.
    """
    entry = reg.ensure_entity(ENTITY)
    parsed = parse_filter_query_result(request.query_params, strict=strict)
    where = _prepare(parsed.groups, entry, strict=strict)
    sort = _sort_list(sort_by, sort_order, entry)
    if page is None and page_size is None:
        return service.find_all(where, sort=sort)
    rows, _, _ = _page(service, where, sort, page or 1, page_size or 0, entry)
    return rows


@router.get("/paginated", response_model=PaginatedUsers)
def paginated_users(
    request: Request,
    page: int = Query(1, ge=1),
    page_size: int = Query(0, alias="pageSize", ge=0),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    strict: bool = False,
    reg: Registry = Depends(get_registry),
    service: UserService = Depends(get_user_service),
):
    entry = reg.ensure_entity(ENTITY)
    parsed = parse_filter_query_result(request.query_params, strict=strict)
    where = _prepare(parsed.groups, entry, strict=strict)
    rows, total, size = _page(service, where, _sort_list(sort_by, sort_order, entry), page, page_size, entry)
    return {"items": rows, "total": total, "page": page, "pageSize": size}


@router.post("/search", response_model=PaginatedUsers)
def search_users(
    payload: dict = Body(..., description="SearchRequest JSON"),
    strict: bool = False,
    reg: Registry = Depends(get_registry),
    service: UserService = Depends(get_user_service),
):
    sr = parse_search_request_json(payload, validate=True)
    entry = reg.ensure_entity(ENTITY)
    where = _prepare(sr.groups(), entry, strict=strict)
    sort = _sort_list(sr.sort_by, sr.sort_order, entry)
    rows, total, size = _page(service, where, sort, sr.page, sr.page_size, entry)
    return {"items": rows, "total": total, "page": sr.page, "pageSize": size}


@router.get("/sql", include_in_schema=False)
def explain_filter(
    request: Request,
    strict: bool = False,
    reg: Registry = Depends(get_registry),
):
    """The WHERE clause a `filter` expression turns into; handy when debugging clients."""
    entry = reg.ensure_entity(ENTITY)
    parsed = parse_filter_query_result(request.query_params, strict=strict)
    where = _prepare(parsed.groups, entry, strict=strict)
    sql, params = build_where_clause_and_params(where, include_where_keyword=False)
    return {
        "filters": [f.to_dict() for f in parsed.filters],
        "diagnostics": [d.to_dict() for d in parsed.diagnostics],
        "where": sql,
        "params": params,
    }


@router.get("/active", response_model=List[UserOut])
def active_users(service: UserService = Depends(get_user_service)):
    return service.find_active_users()


@router.get("/email/{email}", response_model=UserOut)
def user_by_email(email: str, service: UserService = Depends(get_user_service)):
    row = service.find_by_email(email)
    if row is None:
        raise ResourceNotFoundException("User", email)
    return row


@router.get("/{id}", response_model=UserOut)
def get_user(id: str, service: UserService = Depends(get_user_service)):
    return service.find_by_id(id)


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED, include_in_schema=False)
def create_user(dto: CreateUserDto, service: UserService = Depends(get_user_service)):
    return service.create(dto.model_dump())


@router.put("/{id}", response_model=UserOut)
def update_user(id: str, dto: UpdateUserDto, service: UserService = Depends(get_user_service)):
    return service.update_profile(id, dto.changes())


@router.patch("/{id}/activate", response_model=UserOut)
def activate_user(id: str, service: UserService = Depends(get_user_service)):
    return service.activate(id)


@router.patch("/{id}/deactivate", response_model=UserOut)
def deactivate_user(id: str, service: UserService = Depends(get_user_service)):
    return service.deactivate(id)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(id: str, service: UserService = Depends(get_user_service)):
    service.remove(id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
