"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, ``policykit.toml`` only holds
overrides. Classification tables and policy rules have no defaults: the
application supplies every threshold and rule it needs.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from policykit.domain.classification import Threshold
from policykit.domain.policy import CombineMode

# --- policykit.toml sections ---


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    filename: str = "policykit.db"


class LoggingConfig(BaseModel):
    """[logging] section."""

    model_config = {"frozen": True}

    verbose: bool = False
    log_json: bool = False


class ClassificationConfig(BaseModel):
    """[classification.<name>] section.

    Example::

        [classification.rating]
        catch_all = "F"
        thresholds = [
            {upper_bound = 2, label = "A"},
            {upper_bound = 4, label = "B"},
        ]
    """

    model_config = {"frozen": True}

    thresholds: list[Threshold] = Field(default_factory=list)
    catch_all: str
    minimum: float | None = 0.0

    @model_validator(mode="after")
    def check_bounds(self) -> ClassificationConfig:
        bounds = [t.upper_bound for t in self.thresholds]
        if any(upper <= lower for lower, upper in zip(bounds, bounds[1:], strict=False)):
            msg = f"thresholds must be strictly increasing, got {bounds}"
            raise ValueError(msg)
        return self


class ConditionConfig(BaseModel):
    """One ``{field, op, value}`` comparison inside a policy section."""

    model_config = {"frozen": True}

    field: str
    op: Literal["==", "!=", "<", "<=", ">", ">=", "in", "not_in"] = "=="
    value: Any = None


class PolicyRuleConfig(BaseModel):
    """[policies.<name>] section.

    Example::

        [policies.active_user]
        description = "Confirmed email and a login in the last two weeks"
        conditions = [
            {field = "email_confirmed", op = "==", value = true},
            {field = "days_since_last_login", op = "<=", value = 14},
        ]
    """

    model_config = {"frozen": True}

    description: str = ""
    mode: CombineMode = CombineMode.ALL
    negate: bool = False
    conditions: list[ConditionConfig] = Field(default_factory=list)
