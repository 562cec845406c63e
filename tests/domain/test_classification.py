"""Tests for threshold classification."""

import math
from decimal import Decimal
from fractions import Fraction

import pytest

from policykit.config.models import ClassificationConfig
from policykit.domain.classification import ClassificationTable, Grade, Threshold
from policykit.domain.errors import ClassificationError


class TestClassify:
    @pytest.mark.parametrize(
        ("raw", "label"),
        [(0, "A"), (2, "A"), (3, "B"), (4, "B"), (8, "C"), (8.5, "D"), (16, "D"), (100, "F")],
    )
    def test_letter_grades(self, letter_table: ClassificationTable, raw: float, label: str) -> None:
        assert letter_table.classify(raw).label == label

    def test_exact_bound_belongs_to_lower_bucket(self, letter_table: ClassificationTable) -> None:
        for threshold in letter_table.thresholds:
            assert letter_table.classify(threshold.upper_bound).label == threshold.label

    def test_classification_is_idempotent(self, letter_table: ClassificationTable) -> None:
        assert letter_table.classify(3) == letter_table.classify(3)
        assert letter_table.classify(3) == letter_table.classify(3.0)

    def test_infinity_is_catch_all(self, letter_table: ClassificationTable) -> None:
        assert letter_table.classify(math.inf).label == "F"

    def test_accepts_other_real_types(self, letter_table: ClassificationTable) -> None:
        assert letter_table.classify(Fraction(5, 2)).label == "B"

    @pytest.mark.parametrize(("raw", "label"), [(Decimal("2"), "A"), (Decimal("3.50"), "B")])
    def test_accepts_decimal(
        self, letter_table: ClassificationTable, raw: Decimal, label: str
    ) -> None:
        assert letter_table.classify(raw).label == label

    def test_huge_int_is_catch_all(self, letter_table: ClassificationTable) -> None:
        assert letter_table.classify(10**400).label == "F"

    def test_huge_negative_int_rejected(self, letter_table: ClassificationTable) -> None:
        with pytest.raises(ClassificationError, match="below the minimum"):
            letter_table.classify(-(10**400))

    def test_huge_negative_int_without_minimum(self) -> None:
        table = ClassificationTable([(-10, "cold"), (20, "mild")], "hot", minimum=None)
        assert table.classify(-(10**400)).label == "cold"

    def test_negative_decimal_rejected(self, letter_table: ClassificationTable) -> None:
        with pytest.raises(ClassificationError, match="below the minimum"):
            letter_table.classify(Decimal("-0.01"))

    def test_negative_rejected(self, letter_table: ClassificationTable) -> None:
        with pytest.raises(ClassificationError) as exc_info:
            letter_table.classify(-1)
        assert exc_info.value.code == "CLASSIFICATION_ERROR"
        assert exc_info.value.detail["value"] == -1
        assert "rating" in exc_info.value.message

    @pytest.mark.parametrize("raw", [math.nan, Decimal("NaN"), "3", None, True])
    def test_non_numeric_rejected(self, letter_table: ClassificationTable, raw: object) -> None:
        with pytest.raises(ClassificationError):
            letter_table.classify(raw)  # type: ignore[arg-type]

    def test_unbounded_minimum(self) -> None:
        table = ClassificationTable([(-10, "cold"), (20, "mild")], "hot", minimum=None)
        assert table.classify(-40).label == "cold"
        assert table.classify(0).label == "mild"
        assert table.classify(35).label == "hot"

    def test_empty_table_is_all_catch_all(self) -> None:
        table = ClassificationTable([], "any")
        assert table.classify(0).label == "any"
        assert table.classify(1e9).label == "any"


class TestGrades:
    def test_grade_lookup_equals_classified_value(self, letter_table: ClassificationTable) -> None:
        assert letter_table.grade("B") == letter_table.classify(3)
        assert Grade(label="B", position=1) == letter_table.classify(3)

    def test_ordering_follows_table_position(self, letter_table: ClassificationTable) -> None:
        a, b, c, d, f = letter_table.grades
        assert a < b < c < d < f
        assert [g.label for g in sorted([f, a, d])] == ["A", "D", "F"]

    def test_order_is_not_alphabetical(self) -> None:
        table = ClassificationTable([(1, "low"), (2, "high")], "extreme")
        assert table.grade("low") < table.grade("high") < table.grade("extreme")

    def test_unknown_label(self, letter_table: ClassificationTable) -> None:
        with pytest.raises(KeyError):
            letter_table.grade("Z")

    def test_bounds_for(self, letter_table: ClassificationTable) -> None:
        assert letter_table.bounds_for("A") == (0.0, 2.0)
        assert letter_table.bounds_for("C") == (4.0, 8.0)
        assert letter_table.bounds_for("F") == (16.0, None)

    def test_str_is_label(self, letter_table: ClassificationTable) -> None:
        assert str(letter_table.classify(1)) == "A"


class TestConstruction:
    def test_rejects_non_increasing_bounds(self) -> None:
        with pytest.raises(ValueError, match="strictly increasing"):
            ClassificationTable([(4, "A"), (4, "B")], "F")

    def test_rejects_duplicate_labels(self) -> None:
        with pytest.raises(ValueError, match="unique"):
            ClassificationTable([(1, "A"), (2, "A")], "F")
        with pytest.raises(ValueError, match="unique"):
            ClassificationTable([(1, "A")], "A")

    def test_rejects_minimum_above_first_bound(self) -> None:
        with pytest.raises(ValueError, match="Minimum"):
            ClassificationTable([(1, "A")], "F", minimum=5)

    def test_accepts_threshold_models(self) -> None:
        table = ClassificationTable([Threshold(upper_bound=1, label="ok")], "bad")
        assert table.classify(1).label == "ok"
        assert len(table) == 2

    def test_from_config(self) -> None:
        config = ClassificationConfig.model_validate(
            {
                "catch_all": "F",
                "thresholds": [
                    {"upper_bound": 2, "label": "A"},
                    {"upper_bound": 4, "label": "B"},
                ],
            }
        )
        table = ClassificationTable.from_config(config, name="rating")
        assert table.name == "rating"
        assert table.classify(3).label == "B"
        assert table.classify(5).label == "F"
