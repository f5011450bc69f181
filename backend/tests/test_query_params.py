import pytest
from schooladmin.errors import ValidationError
from schooladmin.utils.query_params import (
    ListQuery,
    page_meta,
    parse_list_query,
    parse_populate,
    resolve_sort_field,
)

FIELDS = ("id", "name", "createdAt")
TAGS = ("teacher", "students")


def _parse(**params):
    return parse_list_query(**params, sort_fields=FIELDS, populate_tags=TAGS, default_sort="desc")


def test_defaults():
    q = _parse()
    assert (q.limit, q.page, q.sort, q.sort_by) == (10, 1, "desc", "createdAt")
    assert q.populate == frozenset()
    assert q.offset == 0


def test_offset_from_page_and_limit():
    q = _parse(limit="5", page="3")
    assert q.offset == 10


@pytest.mark.parametrize("limit", ["0", "101", "-4"])
def test_limit_out_of_range(limit):
    with pytest.raises(ValidationError) as exc:
        _parse(limit=limit)
    assert exc.value.message == "Limit must be between 1 and 100"


def test_limit_not_a_number():
    with pytest.raises(ValidationError) as exc:
        _parse(limit="ten")
    assert "integer" in exc.value.message


def test_page_must_be_positive():
    with pytest.raises(ValidationError) as exc:
        _parse(page="0")
    assert exc.value.message == "Page must be greater than 0"


def test_empty_values_use_defaults():
    q = _parse(limit="", page=" ", sort="")
    assert (q.limit, q.page, q.sort) == (10, 1, "desc")


def test_sort_direction():
    assert _parse(sort="asc").sort == "asc"
    with pytest.raises(ValidationError):
        _parse(sort="ASC")
    with pytest.raises(ValidationError) as exc:
        _parse(sort="sideways")
    assert exc.value.message == "Sort must be either asc or desc"


def test_sort_field_whitelist_falls_back():
    assert resolve_sort_field("name", FIELDS) == "name"
    assert resolve_sort_field("password", FIELDS) == "createdAt"
    assert resolve_sort_field(None, FIELDS, default="id") == "id"


def test_populate_ignores_unknown_tags():
    assert parse_populate(" Teacher , bogus,,", TAGS) == frozenset({"teacher"})
    assert parse_populate("all", TAGS) == frozenset(TAGS)
    assert parse_populate(None, TAGS) == frozenset()


@pytest.mark.parametrize("total,limit,pages", [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (23, 5, 5)])
def test_page_meta_total_pages(total, limit, pages):
    q = ListQuery(limit=limit, page=2, sort="asc", sort_by="id", populate=frozenset())
    meta = page_meta(total, q)
    assert meta == {"totalItems": total, "page": 2, "totalPages": pages, "limit": limit}
