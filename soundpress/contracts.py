"""
SoundPress v1 Stage Contracts

Declarative contracts for pipeline stages and centralized input validation.

This module provides:
- Stage: Enumeration of pipeline stage names
- StageContract: Frozen, declarative contract for a stage
- StageValidator: Checks a stage's required context slots before it runs
- ValidationError: Structured validation failure

INVARIANTS:
- Contracts are frozen and immutable
- Validation happens before stage execution
- Stages do NOT validate their own inputs
- Stages do NOT mutate context (they return a replaced copy)
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from soundpress.errors import SoundPressError

if TYPE_CHECKING:
    from soundpress.context import RunContext


# =============================================================================
# Stage Names
# =============================================================================


class Stage(str, Enum):
    """Pipeline stages in execution order."""

    CONFIGURE = "configure"
    DETECT = "detect"
    DECODE = "decode"
    ANALYZE = "analyze"
    REDUCE = "reduce"
    RESAMPLE = "resample"
    ENCODE = "encode"
    OPTIMIZE = "optimize"

    def __str__(self) -> str:
        return self.value


# Context slots a contract may name
SLOTS = frozenset({"raw", "format_tag", "buffer", "pitch", "pitch_report", "encoded"})


# =============================================================================
# StageContract — Frozen, Declarative
# =============================================================================


@dataclass(frozen=True)
class StageContract:
    """
    Frozen contract declaring what a stage requires and produces.

    Attributes:
        name: Stage identifier
        requires: Context slots that must be filled before the stage runs
        produces: Context slots the stage fills
        consumes: Required slots the stage releases (set back to None)
        optional: Whether configuration may skip the stage

    Rules:
        - No behavior, no mutation
        - One contract per stage
    """

    name: Stage
    requires: frozenset[str]
    produces: frozenset[str]
    consumes: frozenset[str] = frozenset()
    optional: bool = False


# =============================================================================
# ValidationError — Structured Validation Failure
# =============================================================================


class ValidationError(SoundPressError):
    """
    Raised when a stage's required slots are not filled.

    Attributes:
        stage: Name of the stage that failed validation
        missing_slots: Slots required but empty
        available_slots: Slots that were filled
    """

    code = "PIPELINE_CONTRACT_VIOLATION"

    def __init__(self, stage: str, missing_slots: set[str], available_slots: set[str]):
        self.stage = stage
        self.missing_slots = missing_slots
        self.available_slots = available_slots
        super().__init__(
            f"Validation failed for stage '{stage}'; "
            f"Missing slots: {sorted(missing_slots)}; "
            f"Available slots: {sorted(available_slots)}",
            detail={
                "missing_slots": sorted(missing_slots),
                "available_slots": sorted(available_slots),
            },
        )


# =============================================================================
# StageValidator — Centralized Input Validation
# =============================================================================


class StageValidator:
    """
    Validates that the run context satisfies a stage contract.

    Rules:
        - Validation happens BEFORE stage.run()
        - No side effects
        - Fail fast with structured ValidationError
    """

    def validate(self, contract: StageContract, ctx: "RunContext") -> None:
        """
        Check that every required slot is filled.

        Raises:
            ValidationError: If any required slot is empty
        """
        available = ctx.filled_slots()
        missing = set(contract.requires) - available
        if missing:
            raise ValidationError(
                stage=contract.name.value,
                missing_slots=missing,
                available_slots=available,
            )

    def check_output(self, contract: StageContract, ctx: "RunContext") -> None:
        """
        Check that a stage filled every slot it declared.

        Raises:
            ValidationError: If a produced slot is empty
        """
        available = ctx.filled_slots()
        missing = set(contract.produces) - available
        if missing:
            raise ValidationError(
                stage=contract.name.value,
                missing_slots=missing,
                available_slots=available,
            )