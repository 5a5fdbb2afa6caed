import httpx
import pytest

from userapi.client import UserApiClient, build_pagination_params
from userapi.filters import FilterDescriptor, FilterOperator, LogicalOperator


def test_pagination_params():
    assert build_pagination_params() == {}
    assert build_pagination_params(page=2, page_size=10, sort_by="firstName", sort_order="desc") == {
        "page": "2",
        "pageSize": "10",
        "sortBy": "firstName",
        "sortOrder": "desc",
    }


@pytest.fixture
def api(client):
    return UserApiClient(client)


@pytest.fixture
def seeded(api):
    return [
        api.create({"firstName": "Alice", "lastName": "Smith", "email": "alice@example.com"}),
        api.create({"firstName": "Bob", "lastName": "O'Brien", "email": "bob@example.com", "bio": "rock and roll"}),
        api.create({"firstName": "Carol", "lastName": "Jones", "email": "carol@example.com"}),
    ]


def test_filters_travel_through_the_query_string(api, seeded):
    rows = api.list(filters=[FilterDescriptor("lastName", FilterOperator.EQ, "O'Brien")])
    assert [r["firstName"] for r in rows] == ["Bob"]

    rows = api.list(filters=[FilterDescriptor("email", FilterOperator.EQ, "carol@example.com")])
    assert [r["firstName"] for r in rows] == ["Carol"]

    rows = api.list(filters=[FilterDescriptor("bio", FilterOperator.CONTAINS, "and roll")])
    assert [r["firstName"] for r in rows] == ["Bob"]


def test_or_and_pagination(api, seeded):
    filters = [
        FilterDescriptor("firstName", FilterOperator.EQ, "Alice"),
        FilterDescriptor("firstName", FilterOperator.IN, ["Carol"]),
    ]
    page = api.paginated(filters, LogicalOperator.OR, page=1, page_size=1, sort_by="firstName")
    assert page["total"] == 2
    assert [u["firstName"] for u in page["items"]] == ["Alice"]


def test_search(api, seeded):
    body = api.search({"filters": [{"prop": "firstName", "operator": "startswith", "value": "C"}]})
    assert body["total"] == 1


def test_crud(api, seeded):
    alice = seeded[0]
    assert api.get(alice["id"])["email"] == "alice@example.com"
    assert api.get_by_email("alice@example.com")["id"] == alice["id"]
    assert api.update(alice["id"], {"bio": "hello"})["bio"] == "hello"
    assert api.deactivate(alice["id"])["isActive"] is False
    assert {u["firstName"] for u in api.active()} == {"Bob", "Carol"}
    assert api.activate(alice["id"])["isActive"] is True

    api.delete(alice["id"])
    with pytest.raises(httpx.HTTPStatusError) as info:
        api.get(alice["id"])
    assert info.value.response.status_code == 404


def test_string_values_that_look_like_literals(api, seeded):
    api.update(seeded[2]["id"], {"bio": "01234"})
    api.update(seeded[0]["id"], {"bio": "true"})

    rows = api.list(filters=[FilterDescriptor("bio", FilterOperator.EQ, "01234")])
    assert [r["firstName"] for r in rows] == ["Carol"]

    rows = api.list(filters=[FilterDescriptor("bio", FilterOperator.IN, ["true", "rock and roll"])], sort_by="firstName")
    assert [r["firstName"] for r in rows] == ["Alice", "Bob"]


def test_list_with_zero_page_size_uses_default(api, seeded):
    assert len(api.list(page_size=0)) == 3
