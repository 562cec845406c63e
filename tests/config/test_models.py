"""Tests for configuration models."""

import pytest
from pydantic import ValidationError

from policykit.config.models import (
    ClassificationConfig,
    ConditionConfig,
    DatabaseConfig,
    LoggingConfig,
    PolicyRuleConfig,
)
from policykit.domain.policy import CombineMode


class TestDefaults:
    def test_section_defaults(self) -> None:
        assert DatabaseConfig().filename == "policykit.db"
        assert LoggingConfig().verbose is False
        assert LoggingConfig().log_json is False

    def test_frozen(self) -> None:
        config = DatabaseConfig()
        with pytest.raises(ValidationError):
            config.filename = "other.db"  # type: ignore[misc]


class TestClassificationConfig:
    def test_parses_thresholds(self) -> None:
        config = ClassificationConfig.model_validate(
            {"catch_all": "F", "thresholds": [{"upper_bound": 2, "label": "A"}]}
        )
        assert config.thresholds[0].upper_bound == 2.0
        assert config.minimum == 0.0

    def test_catch_all_required(self) -> None:
        with pytest.raises(ValidationError):
            ClassificationConfig.model_validate({"thresholds": []})

    def test_rejects_unordered_thresholds(self) -> None:
        with pytest.raises(ValidationError, match="strictly increasing"):
            ClassificationConfig.model_validate(
                {
                    "catch_all": "F",
                    "thresholds": [
                        {"upper_bound": 4, "label": "B"},
                        {"upper_bound": 2, "label": "A"},
                    ],
                }
            )


class TestPolicyRuleConfig:
    def test_defaults(self) -> None:
        config = PolicyRuleConfig()
        assert config.mode is CombineMode.ALL
        assert config.negate is False
        assert config.conditions == []

    def test_mode_from_string(self) -> None:
        assert PolicyRuleConfig.model_validate({"mode": "any"}).mode is CombineMode.ANY

    def test_rejects_unknown_operator(self) -> None:
        with pytest.raises(ValidationError):
            ConditionConfig.model_validate({"field": "x", "op": "~="})
