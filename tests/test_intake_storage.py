# -*- coding: utf-8 -*-

from __future__ import annotations

import shutil
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from nutrilog.app_db import init_app_db
from nutrilog.intake import storage
from nutrilog.intake.storage import (
    IntakeRequestError,
    apply_decrement,
    apply_increment,
    apply_overwrite,
    compute_stats,
    delete_intake,
    get_intake,
    list_intakes,
)

ZERO = {"calories": 0.0, "protein": 0.0, "carbs": 0.0, "fats": 0.0, "fiber": 0.0, "water": 0.0}


def _nutrients(record) -> dict:
    return {k: getattr(record, k) for k in ZERO}


class IntakeStorageTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="nutrilog-test-"))
        self.db_path = self._tmp / "intake.db"
        init_app_db(self.db_path)

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp, ignore_errors=True)


class TestApplyIncrement(IntakeStorageTestCase):
    def test_absent_key_is_created_from_zero_baseline(self) -> None:
        result = apply_increment(
            "u1", scope="daily", date="2024-01-01", deltas={"calories": 500, "protein": 20}, db_path=self.db_path
        )
        self.assertEqual(result.status.value, "created")
        self.assertEqual(_nutrients(result.intake), {**ZERO, "calories": 500.0, "protein": 20.0})
        self.assertEqual(result.intake.user_id, "u1")
        self.assertEqual(result.intake.date, "2024-01-01")
        self.assertEqual(result.intake.scope.value, "daily")

    def test_existing_record_adds_every_field(self) -> None:
        apply_increment(
            "u1",
            scope="daily",
            date="2024-01-01",
            deltas={"calories": 500, "protein": 20, "water": 250},
            db_path=self.db_path,
        )
        result = apply_increment(
            "u1",
            scope="daily",
            date="2024-01-01",
            deltas={"calories": 300, "protein": 5.5, "fiber": 3},
            db_path=self.db_path,
        )
        self.assertEqual(result.status.value, "updated")
        self.assertEqual(
            _nutrients(result.intake),
            {**ZERO, "calories": 800.0, "protein": 25.5, "fiber": 3.0, "water": 250.0},
        )

    def test_numeric_strings_are_coerced(self) -> None:
        result = apply_increment(
            "u1", scope="daily", date="2024-01-01", deltas={"calories": "120.5", "fats": ""}, db_path=self.db_path
        )
        self.assertEqual(result.intake.calories, 120.5)
        self.assertEqual(result.intake.fats, 0.0)

    def test_scopes_are_independent(self) -> None:
        apply_increment("u1", scope="daily", date="2024-01-01", deltas={"calories": 100}, db_path=self.db_path)
        weekly = apply_increment("u1", scope="weekly", date="2024-01-01", deltas={"calories": 700}, db_path=self.db_path)
        self.assertEqual(weekly.status.value, "created")
        self.assertEqual(weekly.intake.calories, 700.0)
        daily = get_intake("u1", scope="daily", date="2024-01-01", db_path=self.db_path)
        self.assertIsNotNone(daily)
        assert daily is not None
        self.assertEqual(daily.calories, 100.0)

    def test_users_are_independent(self) -> None:
        apply_increment("u1", scope="daily", date="2024-01-01", deltas={"calories": 100}, db_path=self.db_path)
        other = apply_increment("u2", scope="daily", date="2024-01-01", deltas={"calories": 40}, db_path=self.db_path)
        self.assertEqual(other.status.value, "created")
        self.assertEqual(other.intake.calories, 40.0)

    def test_scope_is_case_insensitive_and_datetime_is_truncated(self) -> None:
        result = apply_increment(
            "u1", scope=" Weekly ", date="2024-01-01T08:30:00", deltas={"water": 1}, db_path=self.db_path
        )
        self.assertEqual(result.intake.scope.value, "weekly")
        self.assertEqual(result.intake.date, "2024-01-01")

    def test_updated_at_changes_on_every_write(self) -> None:
        with mock.patch.object(storage, "_utc_now", return_value="2024-01-01T00:00:00Z"):
            first = apply_increment("u1", scope="daily", date="2024-01-01", deltas={"calories": 1}, db_path=self.db_path)
        with mock.patch.object(storage, "_utc_now", return_value="2024-01-01T09:00:00Z"):
            second = apply_increment("u1", scope="daily", date="2024-01-01", deltas={"calories": 1}, db_path=self.db_path)
        self.assertEqual(first.intake.updated_at, "2024-01-01T00:00:00Z")
        self.assertEqual(second.intake.updated_at, "2024-01-01T09:00:00Z")
        self.assertEqual(second.intake.created_at, "2024-01-01T00:00:00Z")
        self.assertEqual(first.intake.id, second.intake.id)

    def test_overflowing_sum_is_rejected_and_not_stored(self) -> None:
        apply_increment("u1", scope="daily", date="2024-01-01", deltas={"calories": 1e308}, db_path=self.db_path)
        with self.assertRaises(IntakeRequestError) as ctx:
            apply_increment("u1", scope="daily", date="2024-01-01", deltas={"calories": 1e308}, db_path=self.db_path)
        self.assertIn("calories", str(ctx.exception))

        record = get_intake("u1", scope="daily", date="2024-01-01", db_path=self.db_path)
        assert record is not None
        self.assertEqual(record.calories, 1e308)


class TestApplyOverwrite(IntakeStorageTestCase):
    def test_overwrite_replaces_all_fields(self) -> None:
        apply_increment(
            "u1",
            scope="daily",
            date="2024-01-01",
            deltas={"calories": 10, "protein": 50, "carbs": 7, "water": 9},
            db_path=self.db_path,
        )
        result = apply_overwrite(
            "u1", scope="daily", date="2024-01-01", values={"calories": 1000, "protein": 50}, db_path=self.db_path
        )
        self.assertEqual(result.status.value, "upserted")
        self.assertEqual(_nutrients(result.intake), {**ZERO, "calories": 1000.0, "protein": 50.0})

    def test_overwrite_zeroes_omitted_fields(self) -> None:
        apply_increment("u1", scope="daily", date="2024-01-01", deltas={"protein": 50}, db_path=self.db_path)
        result = apply_overwrite("u1", scope="daily", date="2024-01-01", values={"calories": 100}, db_path=self.db_path)
        self.assertEqual(result.intake.protein, 0.0)
        self.assertEqual(result.intake.calories, 100.0)

    def test_overwrite_on_absent_key_creates_row(self) -> None:
        result = apply_overwrite("u1", scope="weekly", date="2024-01-01", values={"water": 2000}, db_path=self.db_path)
        self.assertEqual(result.status.value, "upserted")
        self.assertEqual(_nutrients(result.intake), {**ZERO, "water": 2000.0})

    def test_overwrite_is_idempotent(self) -> None:
        values = {"calories": 1800, "carbs": 220, "fiber": 30}
        first = apply_overwrite("u1", scope="daily", date="2024-01-02", values=values, db_path=self.db_path)
        second = apply_overwrite("u1", scope="daily", date="2024-01-02", values=values, db_path=self.db_path)
        self.assertEqual(_nutrients(first.intake), _nutrients(second.intake))
        self.assertEqual(first.intake.id, second.intake.id)
        self.assertEqual(len(list_intakes("u1", scope="daily", db_path=self.db_path)), 1)


class TestApplyDecrement(IntakeStorageTestCase):
    def test_decrement_clamps_at_zero(self) -> None:
        apply_increment("u1", scope="daily", date="2024-01-01", deltas={"calories": 200}, db_path=self.db_path)
        result = apply_decrement("u1", scope="daily", date="2024-01-01", deltas={"calories": 500}, db_path=self.db_path)
        self.assertEqual(result.status.value, "updated")
        self.assertEqual(result.intake.calories, 0.0)

    def test_decrement_subtracts_per_field(self) -> None:
        apply_increment(
            "u1",
            scope="daily",
            date="2024-01-01",
            deltas={"calories": 900, "protein": 40, "carbs": 10, "water": 500},
            db_path=self.db_path,
        )
        result = apply_decrement(
            "u1",
            scope="daily",
            date="2024-01-01",
            deltas={"calories": 150.5, "protein": 45, "water": 500},
            db_path=self.db_path,
        )
        self.assertEqual(
            _nutrients(result.intake),
            {**ZERO, "calories": 749.5, "protein": 0.0, "carbs": 10.0, "water": 0.0},
        )
        for value in _nutrients(result.intake).values():
            self.assertGreaterEqual(value, 0.0)

    def test_decrement_on_absent_key_creates_zero_row(self) -> None:
        result = apply_decrement("u9", scope="weekly", date="2024-02-05", deltas={"calories": 300}, db_path=self.db_path)
        self.assertEqual(result.status.value, "updated")
        self.assertEqual(_nutrients(result.intake), ZERO)
        self.assertIsNotNone(get_intake("u9", scope="weekly", date="2024-02-05", db_path=self.db_path))


class TestValidation(IntakeStorageTestCase):
    def _assert_rejected_without_storage(self, **kwargs) -> IntakeRequestError:
        params = {"scope": "daily", "date": "2024-01-01", "deltas": {"calories": 1}}
        params.update(kwargs)
        with mock.patch.object(storage, "db_conn") as db_conn:
            with self.assertRaises(IntakeRequestError) as ctx:
                apply_increment("u1", db_path=self.db_path, **params)
            db_conn.assert_not_called()
        return ctx.exception

    def test_invalid_scope_names_allowed_values(self) -> None:
        exc = self._assert_rejected_without_storage(scope="monthly")
        self.assertIn("daily", str(exc))
        self.assertIn("weekly", str(exc))

    def test_missing_scope(self) -> None:
        self._assert_rejected_without_storage(scope=None)

    def test_missing_date(self) -> None:
        exc = self._assert_rejected_without_storage(date=None)
        self.assertIn("date", str(exc))

    def test_malformed_date(self) -> None:
        self._assert_rejected_without_storage(date="2024-13-45")
        self._assert_rejected_without_storage(date="yesterday")

    def test_non_numeric_value(self) -> None:
        exc = self._assert_rejected_without_storage(deltas={"protein": "lots"})
        self.assertIn("protein", str(exc))

    def test_nan_and_infinity(self) -> None:
        self._assert_rejected_without_storage(deltas={"calories": "NaN"})
        self._assert_rejected_without_storage(deltas={"calories": float("inf")})

    def test_negative_and_boolean_values(self) -> None:
        self._assert_rejected_without_storage(deltas={"water": -1})
        self._assert_rejected_without_storage(deltas={"water": True})

    def test_overwrite_and_decrement_validate_scope(self) -> None:
        with self.assertRaises(IntakeRequestError):
            apply_overwrite("u1", scope="monthly", date="2024-01-01", values={}, db_path=self.db_path)
        with self.assertRaises(IntakeRequestError):
            apply_decrement("u1", scope="monthly", date="2024-01-01", deltas={}, db_path=self.db_path)
        self.assertEqual(list_intakes("u1", scope="daily", db_path=self.db_path), [])


class TestReadAndStats(IntakeStorageTestCase):
    def setUp(self) -> None:
        super().setUp()
        for day, calories, protein in (("2024-01-01", 1500, 60), ("2024-01-03", 2100, 90), ("2024-01-02", 1800, 75)):
            apply_overwrite(
                "u1",
                scope="daily",
                date=day,
                values={"calories": calories, "protein": protein},
                db_path=self.db_path,
            )

    def test_list_is_newest_first_and_range_is_inclusive(self) -> None:
        records = list_intakes("u1", scope="daily", db_path=self.db_path)
        self.assertEqual([r.date for r in records], ["2024-01-03", "2024-01-02", "2024-01-01"])

        ranged = list_intakes("u1", scope="daily", start="2024-01-02", end="2024-01-03", db_path=self.db_path)
        self.assertEqual([r.date for r in ranged], ["2024-01-03", "2024-01-02"])

    def test_list_rejects_bad_range(self) -> None:
        with self.assertRaises(IntakeRequestError):
            list_intakes("u1", scope="daily", start="not-a-date", db_path=self.db_path)

    def test_stats_average_and_latest(self) -> None:
        stats = compute_stats("u1", scope="daily", db_path=self.db_path)
        self.assertEqual(stats.total_records, 3)
        self.assertEqual(stats.average_calories, 1800.0)
        self.assertEqual(stats.average_protein, 75.0)
        self.assertEqual(stats.average_water, 0.0)
        self.assertIsNotNone(stats.latest_entry)
        assert stats.latest_entry is not None
        self.assertEqual(stats.latest_entry.date, "2024-01-03")

    def test_stats_round_to_two_decimals(self) -> None:
        apply_overwrite("u2", scope="daily", date="2024-01-01", values={"fiber": 1}, db_path=self.db_path)
        apply_overwrite("u2", scope="daily", date="2024-01-02", values={"fiber": 1}, db_path=self.db_path)
        apply_overwrite("u2", scope="daily", date="2024-01-03", values={"fiber": 2}, db_path=self.db_path)
        stats = compute_stats("u2", scope="daily", db_path=self.db_path)
        self.assertEqual(stats.average_fiber, 1.33)

    def test_stats_for_user_without_rows(self) -> None:
        stats = compute_stats("nobody", scope="weekly", db_path=self.db_path)
        self.assertEqual(stats.total_records, 0)
        self.assertEqual(stats.average_calories, 0.0)
        self.assertIsNone(stats.latest_entry)

    def test_delete_returns_row_once(self) -> None:
        deleted = delete_intake("u1", scope="daily", date="2024-01-02", db_path=self.db_path)
        self.assertIsNotNone(deleted)
        assert deleted is not None
        self.assertEqual(deleted.calories, 1800.0)
        self.assertIsNone(delete_intake("u1", scope="daily", date="2024-01-02", db_path=self.db_path))
        self.assertIsNone(get_intake("u1", scope="daily", date="2024-01-02", db_path=self.db_path))


if __name__ == "__main__":
    unittest.main()
