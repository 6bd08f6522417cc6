"""
SoundPress v1 Contract Tests

Tests for stage contracts, centralized validation, run context and
configuration.

Coverage:
- Missing required slots → ValidationError before the stage runs
- Produced slots are checked after the stage runs
- Context and config immutability (frozen dataclasses)
- Configuration validation
- Stage contract declarations
"""

import importlib
from dataclasses import FrozenInstanceError

import pytest

from soundpress.adapters import Adapters
from soundpress.config import DEFAULT_CONFIG, PipelineConfig
from soundpress.context import RunContext
from soundpress.contracts import SLOTS, Stage, StageContract, StageValidator, ValidationError
from soundpress.errors import ConfigError, InvalidChannelCountError, InvalidWindowError, SoundPressError
from soundpress.formats import FormatTag
from soundpress.pipeline import STAGE_ORDER


# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def validator() -> StageValidator:
    return StageValidator()


@pytest.fixture
def empty_context() -> RunContext:
    return RunContext(config=DEFAULT_CONFIG, adapters=Adapters())


# =============================================================================
# Test: Validation
# =============================================================================


class TestValidation:
    def test_missing_slot_raises(self, validator, empty_context):
        contract = StageContract(
            name=Stage.DECODE,
            requires=frozenset({"raw", "format_tag"}),
            produces=frozenset({"buffer"}),
        )
        ctx = empty_context.advance(raw=b"RIFF")

        with pytest.raises(ValidationError) as exc_info:
            validator.validate(contract, ctx)

        error = exc_info.value
        assert error.stage == "decode"
        assert error.missing_slots == {"format_tag"}
        assert error.available_slots == {"raw"}
        assert isinstance(error, SoundPressError)
        assert error.code == "PIPELINE_CONTRACT_VIOLATION"

    def test_satisfied_contract_passes(self, validator, empty_context):
        contract = StageContract(
            name=Stage.DETECT,
            requires=frozenset({"raw"}),
            produces=frozenset({"format_tag"}),
        )
        validator.validate(contract, empty_context.advance(raw=b"RIFF"))

    def test_check_output_catches_missing_product(self, validator, empty_context):
        contract = StageContract(
            name=Stage.DETECT,
            requires=frozenset({"raw"}),
            produces=frozenset({"format_tag"}),
        )
        with pytest.raises(ValidationError) as exc_info:
            validator.check_output(contract, empty_context.advance(raw=b"RIFF"))
        assert exc_info.value.missing_slots == {"format_tag"}

    def test_error_message_lists_slots(self, validator, empty_context):
        contract = StageContract(
            name=Stage.ENCODE,
            requires=frozenset({"buffer"}),
            produces=frozenset({"encoded"}),
        )
        with pytest.raises(ValidationError) as exc_info:
            validator.validate(contract, empty_context)
        assert "buffer" in str(exc_info.value)


# =============================================================================
# Test: Immutability
# =============================================================================


class TestImmutability:
    def test_context_frozen(self, empty_context):
        with pytest.raises(FrozenInstanceError):
            empty_context.raw = b"x"

    def test_advance_returns_new_context(self, empty_context):
        ctx = empty_context.advance(raw=b"OggS", format_tag=FormatTag.OGG_VORBIS)
        assert empty_context.raw is None
        assert ctx.filled_slots() == {"raw", "format_tag"}

    def test_contract_frozen(self):
        contract = StageContract(
            name=Stage.DETECT,
            requires=frozenset({"raw"}),
            produces=frozenset({"format_tag"}),
        )
        with pytest.raises(FrozenInstanceError):
            contract.requires = frozenset()

    def test_config_frozen(self):
        with pytest.raises(FrozenInstanceError):
            DEFAULT_CONFIG.window_size = 1024

    def test_encoder_params_snapshot(self):
        params = {"quality": 0.5}
        config = PipelineConfig(encoder_params=params)
        params["quality"] = 0.9
        assert config.encoder_params["quality"] == 0.5
        with pytest.raises(TypeError):
            config.encoder_params["quality"] = 0.1

    def test_context_to_dict_has_no_samples(self, empty_context):
        data = empty_context.advance(raw=b"1234").to_dict()
        assert data["raw_bytes"] == 4
        assert data["buffer"] is None


# =============================================================================
# Test: Configuration
# =============================================================================


class TestConfig:
    def test_defaults_valid(self):
        DEFAULT_CONFIG.validate()
        assert DEFAULT_CONFIG.target_channels == 1
        assert DEFAULT_CONFIG.analyze_pitch is True
        assert DEFAULT_CONFIG.optimize_output is False

    @pytest.mark.parametrize("window_size", [1, 0, 2049])
    def test_bad_window(self, window_size):
        with pytest.raises(InvalidWindowError):
            PipelineConfig(window_size=window_size).validate()

    def test_bad_window_rejected_without_pitch(self):
        with pytest.raises(InvalidWindowError):
            PipelineConfig(window_size=7, analyze_pitch=False).validate()

    @pytest.mark.parametrize("target_channels", [2, 0, True, 1.0, "1"])
    def test_bad_target_channels(self, target_channels):
        with pytest.raises(InvalidChannelCountError):
            PipelineConfig(target_channels=target_channels).validate()

    def test_keep_channels(self):
        PipelineConfig(target_channels=None).validate()

    @pytest.mark.parametrize(
        "changes",
        [
            {"threshold": 1.5},
            {"voicing_threshold": -0.1},
            {"min_frequency": 600.0, "max_frequency": 50.0},
            {"min_frequency": 0.0},
            {"optimize_policy": "sometimes"},
            {"target_sample_rate": 0},
        ],
    )
    def test_out_of_range(self, changes):
        with pytest.raises(ConfigError):
            DEFAULT_CONFIG.with_options(**changes).validate()

    def test_to_dict_round_trips_options(self):
        config = PipelineConfig(encoder_params={"quality": 0.3}, target_sample_rate=22050)
        data = config.to_dict()
        assert data["encoder_params"] == {"quality": 0.3}
        assert data["target_sample_rate"] == 22050
        assert PipelineConfig(**data) == config


# =============================================================================
# Test: Stage Contracts
# =============================================================================


class TestStageContracts:
    def test_stage_order(self):
        assert [stage for stage, _ in STAGE_ORDER] == list(Stage)

    @pytest.mark.parametrize("stage,module_path", STAGE_ORDER, ids=lambda v: str(v))
    def test_module_interface(self, stage, module_path):
        module = importlib.import_module(module_path)
        assert module.CONTRACT.name == stage
        assert callable(module.should_run)
        assert callable(module.run)
        assert module.CONTRACT.requires <= SLOTS
        assert module.CONTRACT.produces <= SLOTS
        assert module.CONTRACT.consumes <= module.CONTRACT.requires

    def test_optional_stages(self):
        optional = {
            stage
            for stage, path in STAGE_ORDER
            if importlib.import_module(path).CONTRACT.optional
        }
        assert optional == {Stage.ANALYZE, Stage.REDUCE, Stage.RESAMPLE, Stage.OPTIMIZE}

    def test_decode_releases_raw(self):
        from soundpress.stages.decode import CONTRACT

        assert CONTRACT.consumes == frozenset({"raw"})

    def test_encode_releases_buffer(self):
        from soundpress.stages.encode import CONTRACT

        assert CONTRACT.consumes == frozenset({"buffer"})
