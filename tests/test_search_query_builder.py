"""
Tests for the saved search listing SQL builder
"""

import pytest

from models import SearchParams
from query.builder import SearchQueryBuilder
from query.validators import validate_search_params
from utils.errors import InvalidInputError


@pytest.fixture
def builder():
    return SearchQueryBuilder()


def params(**kwargs) -> SearchParams:
    return validate_search_params(kwargs)


class TestBuildSelect:

    def test_defaults_select_ids_in_version_then_id_order(self, builder):
        sql, sql_params = builder.build_select(1, params())

        assert sql == (
            "SELECT s.search_id FROM saved_searches s WHERE s.library_id = $1 "
            "ORDER BY s.version ASC, s.search_id ASC"
        )
        assert sql_params == [1]

    def test_keys_format_filtered_by_key_list(self, builder):
        sql, sql_params = builder.build_select(1, params(format="keys", searchKey=["K1", "K2"]))

        assert sql == (
            "SELECT s.key FROM saved_searches s WHERE s.library_id = $1 "
            "AND s.key = ANY($2::text[]) ORDER BY s.version ASC, s.search_id ASC"
        )
        assert sql_params == [1, ["K1", "K2"]]

    def test_versions_format_selects_key_and_version(self, builder):
        sql, _ = builder.build_select(1, params(format="versions"))
        assert sql.startswith("SELECT s.key, s.version FROM saved_searches s")

    def test_filters_sort_and_pagination_in_order(self, builder):
        sql, sql_params = builder.build_select(1, params(
            since=5, sincetime=100, sort="title", direction="desc", limit=10, start=20,
        ))

        assert sql == (
            "SELECT s.search_id FROM saved_searches s WHERE s.library_id = $1 "
            "AND s.version > $2 AND s.server_date_modified >= to_timestamp($3) "
            "ORDER BY s.name DESC, s.version DESC, s.search_id DESC "
            "LIMIT $4 OFFSET $5"
        )
        assert sql_params == [1, 5, 100.0, 10, 20]

    def test_search_ids_filter(self, builder):
        sql, sql_params = builder.build_select(1, params(searchIDs="3,4"))

        assert "s.search_id = ANY($2::int[])" in sql
        assert sql_params == [1, [3, 4]]

    def test_zero_since_and_limit_add_nothing(self, builder):
        sql, sql_params = builder.build_select(1, params(since=0, sincetime=0, limit=0, start=5))

        assert "s.version >" not in sql
        assert "to_timestamp" not in sql
        assert "LIMIT" not in sql
        assert sql_params == [1]

    def test_limit_without_start_offsets_zero(self, builder):
        sql, sql_params = builder.build_select(1, params(limit=25))

        assert sql.endswith("LIMIT $2 OFFSET $3")
        assert sql_params == [1, 25, 0]

    def test_sort_without_direction_leaves_primary_sort_unqualified(self, builder):
        sql, _ = builder.build_select(1, params(sort="dateModified"))
        assert "ORDER BY s.date_modified, s.version ASC, s.search_id ASC" in sql

    def test_search_key_list_sort_follows_supplied_order(self, builder):
        sql, sql_params = builder.build_select(1, params(searchKey=["B2345678", "A2345678"], sort="searchKeyList"))

        assert "ORDER BY array_position($3::text[], s.key::text), s.version ASC, s.search_id ASC" in sql
        assert sql_params == [1, ["B2345678", "A2345678"], ["B2345678", "A2345678"]]

    def test_search_key_list_sort_requires_keys(self, builder):
        with pytest.raises(InvalidInputError) as exc_info:
            builder.build_select(1, params(sort="searchKeyList"))
        assert exc_info.value.field == "sort"

    def test_unknown_sort_rejected(self, builder):
        with pytest.raises(InvalidInputError) as exc_info:
            builder.build_select(1, params(sort="name; DROP TABLE saved_searches"))
        assert exc_info.value.field == "sort"

    def test_values_never_interpolated(self, builder):
        hostile = "x'); DROP TABLE saved_searches; --"
        sql, sql_params = builder.build_select(1, params(searchKey=[hostile], sort="searchKeyList"))

        assert hostile not in sql
        assert [hostile] in sql_params


class TestBuildCount:

    def test_count_uses_same_filters(self, builder):
        sql, sql_params = builder.build_count(1, params(since=5, searchKey=["K1"]))

        assert sql == (
            "SELECT COUNT(*) AS total FROM saved_searches s WHERE s.library_id = $1 "
            "AND s.version > $2 AND s.key = ANY($3::text[])"
        )
        assert sql_params == [1, 5, ["K1"]]

    def test_count_ignores_sort_and_pagination(self, builder):
        paged = builder.build_count(1, params(sort="key", direction="desc", limit=2, start=4))
        unpaged = builder.build_count(1, params())

        assert paged == unpaged


class TestSearchParams:

    def test_direction_is_case_insensitive(self):
        assert params(direction="desc").direction == "DESC"

    def test_invalid_direction_rejected(self):
        with pytest.raises(InvalidInputError) as exc_info:
            params(direction="sideways")
        assert exc_info.value.field == "direction"

    @pytest.mark.parametrize("fmt", ["atom", "bib", "json", None, ""])
    def test_other_formats_list_full_objects(self, builder, fmt):
        parsed = params(format=fmt)
        assert parsed.format == "json"

        sql, _ = builder.build_select(1, parsed)
        assert sql.startswith("SELECT s.search_id FROM saved_searches s")

    def test_negative_limit_rejected(self):
        with pytest.raises(InvalidInputError) as exc_info:
            params(limit=-1)
        assert exc_info.value.field == "limit"

    def test_comma_separated_keys(self):
        assert params(searchKey="AAAA2222, BBBB3333").search_keys == ["AAAA2222", "BBBB3333"]
