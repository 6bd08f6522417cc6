"""
SoundPress v1 Report Schema Tests

Coverage:
- Reports of successful and failed runs validate against the schema
- Schema rejects malformed reports
- Deterministic serialization
"""

import json

import pytest

from soundpress.adapters import Adapters
from soundpress.config import DEFAULT_CONFIG, PipelineConfig
from soundpress.pipeline import run
from soundpress.report import REPORT_VERSION, build_report, load_schema, validate_report
from soundpress.utils import serialize_json

from tests.conftest import RecordingEncoder


@pytest.fixture
def success_report(stereo_wav_bytes) -> dict:
    result = run(stereo_wav_bytes, adapters=Adapters(encoder=RecordingEncoder()))
    return build_report(result, DEFAULT_CONFIG, "stereo.wav", "stereo.wav.ogg")


@pytest.fixture
def failure_report() -> dict:
    result = run(b"\x00" * 64)
    return build_report(result, DEFAULT_CONFIG, "noise.bin")


class TestSchema:
    def test_schema_loads(self):
        schema = load_schema()
        assert schema["$schema"].startswith("http://json-schema.org/draft-07")

    def test_success_report_valid(self, success_report):
        assert validate_report(success_report) == []
        assert success_report["version"] == REPORT_VERSION
        assert success_report["success"] is True
        assert success_report["format"] == "wav"
        assert success_report["pitch_report"] is not None

    def test_failure_report_valid(self, failure_report):
        assert validate_report(failure_report) == []
        assert failure_report["failed_stage"] == "detect"
        assert failure_report["output"] is None

    def test_report_without_pitch_valid(self, stereo_wav_bytes):
        config = PipelineConfig(analyze_pitch=False)
        result = run(stereo_wav_bytes, config, Adapters(encoder=RecordingEncoder()))
        report = build_report(result, config, "stereo.wav", "stereo.wav.ogg")
        assert validate_report(report) == []
        assert report["pitch"] is None

    def test_failure_without_stage_rejected(self, failure_report):
        del failure_report["failed_stage"]
        errors = validate_report(failure_report)
        assert any("failed_stage" in e for e in errors)

    def test_unknown_stage_rejected(self, failure_report):
        failure_report["failed_stage"] = "transcode"
        assert validate_report(failure_report) != []

    def test_success_without_pitch_key_rejected(self, success_report):
        del success_report["pitch"]
        assert validate_report(success_report) != []

    def test_bad_confidence_rejected(self, success_report):
        success_report["pitch"]["points"][0]["confidence"] = 2.0
        errors = validate_report(success_report)
        assert any(e.startswith("pitch") for e in errors)


class TestSerialization:
    def test_sorted_keys_and_newline(self, failure_report):
        text = serialize_json(failure_report)
        assert text.endswith("\n")
        assert json.loads(text) == failure_report
        keys = list(json.loads(text))
        assert keys == sorted(keys)

    def test_deterministic(self, failure_report):
        assert serialize_json(failure_report) == serialize_json(dict(failure_report))
