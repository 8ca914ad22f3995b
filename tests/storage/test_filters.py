import pytest

from restaurant_ops.models.enums import ReservationStatus
from restaurant_ops.storage.filters import (
    any_of,
    compile_filters,
    compile_order,
    eq,
    gte,
    ilike,
    in_,
    lte,
    neq,
    not_overlaps,
    overlaps,
    to_db_value,
)
from restaurant_ops.storage.resilience import InvalidQueryError

COLUMNS = {"id", "name", "status", "party_size", "reservation_date", "tags"}


class TestCompileFilters:
    def test_no_filters_matches_everything(self):
        assert compile_filters([], COLUMNS) == ("1", [])

    def test_eq_binds_value(self):
        assert compile_filters([eq("name", "Ann")], COLUMNS) == ("name = ?", ["Ann"])

    def test_eq_none_is_null_check(self):
        assert compile_filters([eq("name", None)], COLUMNS) == ("name IS NULL", [])

    def test_neq_none_is_not_null_check(self):
        assert compile_filters([neq("name", None)], COLUMNS) == ("name IS NOT NULL", [])

    def test_enum_value_unwrapped(self):
        sql, params = compile_filters([eq("status", ReservationStatus.NO_SHOW)], COLUMNS)
        assert params == ["no-show"]

    def test_range_filters_and_together(self):
        sql, params = compile_filters(
            [gte("reservation_date", "2025-11-01"), lte("reservation_date", "2025-11-30")],
            COLUMNS,
        )
        assert sql == "reservation_date >= ? AND reservation_date <= ?"
        assert params == ["2025-11-01", "2025-11-30"]

    def test_in_list(self):
        sql, params = compile_filters([in_("status", ["pending", "confirmed"])], COLUMNS)
        assert sql == "status IN (?, ?)"
        assert params == ["pending", "confirmed"]

    def test_empty_in_matches_nothing(self):
        assert compile_filters([in_("status", [])], COLUMNS) == ("0", [])

    def test_ilike_escapes_wildcards(self):
        sql, params = compile_filters([ilike("name", "50%_off")], COLUMNS)
        assert "LIKE LOWER(?)" in sql
        assert params == ["%50\\%\\_off%"]

    def test_overlaps_uses_json_each(self):
        sql, params = compile_filters([overlaps("tags", ["vegan"])], COLUMNS)
        assert sql.startswith("EXISTS (SELECT 1 FROM json_each(tags)")
        assert params == ["vegan"]

    def test_not_overlaps_negates(self):
        sql, _ = compile_filters([not_overlaps("tags", ["nuts"])], COLUMNS)
        assert sql.startswith("NOT EXISTS")

    def test_empty_overlap_sets(self):
        assert compile_filters([overlaps("tags", [])], COLUMNS) == ("0", [])
        assert compile_filters([not_overlaps("tags", [])], COLUMNS) == ("1", [])

    def test_any_of_groups_with_or(self):
        sql, params = compile_filters(
            [eq("status", "confirmed"), any_of(ilike("name", "a"), ilike("id", "a"))],
            COLUMNS,
        )
        assert sql.startswith("status = ? AND (")
        assert " OR " in sql
        assert params == ["confirmed", "%a%", "%a%"]

    def test_unknown_column_rejected(self):
        with pytest.raises(InvalidQueryError, match="Unknown column"):
            compile_filters([eq("name; DROP TABLE x", 1)], COLUMNS)


class TestCompileOrder:
    def test_default_is_insertion_order(self):
        assert compile_order([], COLUMNS) == "rowid ASC"

    def test_descending_prefix(self):
        assert compile_order(["reservation_date", "-party_size"], COLUMNS) == (
            "reservation_date ASC, party_size DESC, rowid ASC"
        )

    def test_unknown_order_column_rejected(self):
        with pytest.raises(InvalidQueryError):
            compile_order(["nope"], COLUMNS)


class TestToDbValue:
    def test_lists_become_json(self):
        assert to_db_value(["a", "b"]) == '["a", "b"]'

    def test_scalars_unchanged(self):
        assert to_db_value(3) == 3
        assert to_db_value(None) is None
