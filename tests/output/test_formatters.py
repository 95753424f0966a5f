"""Tests for the format_result dispatcher and OutputSettings."""

import json

from mindmat.output.formatters import OutputSettings, format_result
from mindmat.services.plan import PlanService
from mindmat.services.result import ServiceError, ServiceResult


def _ok(op: str = "test", **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str = "test", msg: str = "fail") -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code="ERR", message=msg, detail={"path": "map.json"}),
    )


class TestOutputSettings:
    def test_defaults(self) -> None:
        s = OutputSettings()
        assert s.json_output is False
        assert s.quiet is False
        assert s.verbose is False


class TestFormatResultJSON:
    def test_json_mode_returns_valid_json(self) -> None:
        output = format_result(_ok("config", batch_size=25), settings=OutputSettings(json_output=True))
        data = json.loads(output)
        assert data["ok"] is True
        assert data["op"] == "config"
        assert data["data"]["batch_size"] == 25

    def test_json_mode_error(self) -> None:
        output = format_result(_err("plan", "Bad"), settings=OutputSettings(json_output=True))
        data = json.loads(output)
        assert data["ok"] is False
        assert data["error"]["message"] == "Bad"


class TestFormatResultQuiet:
    def test_plan_prints_loaded_over_total(self, make_nodes) -> None:
        result = PlanService().plan(make_nodes(120), advances=1)
        assert format_result(result, settings=OutputSettings(quiet=True)) == "75/120"

    def test_other_ops(self) -> None:
        assert format_result(_ok("config"), settings=OutputSettings(quiet=True)) == "OK: config"

    def test_error(self) -> None:
        output = format_result(_err("plan", "Nope"), settings=OutputSettings(quiet=True))
        assert output == "ERROR: plan — Nope"


class TestFormatResultRich:
    def test_plan_table(self, make_nodes) -> None:
        result = PlanService().plan(make_nodes(120), advances=1, viewports=[(0, 0)])
        output = format_result(result)
        assert "Materialization plan" in output
        assert "initialize" in output
        assert "viewport (0, 0)" in output
        assert "50/120" in output
        assert "OK plan — phase idle" in output

    def test_config_table(self) -> None:
        output = format_result(PlanService().describe_config())
        assert "Effective configuration" in output
        assert "preload_distance" in output
        assert "300.0" in output

    def test_generic_renderer(self) -> None:
        output = format_result(_ok("other", items=[1, 2], name="x"))
        assert "OK: other" in output
        assert "items: [1,2]" in output
        assert "name: x" in output

    def test_error_with_detail(self) -> None:
        output = format_result(_err("plan", "Missing"))
        assert "ERROR: plan — Missing" in output
        assert "path: map.json" in output

    def test_verbose_shows_telemetry(self) -> None:
        result = ServiceResult(
            ok=True,
            op="config",
            data={},
            meta={"telemetry": {"name": "PlanService.describe_config", "duration_ms": 0.12}},
        )
        output = format_result(result, settings=OutputSettings(verbose=True))
        assert "PlanService.describe_config: 0.12ms" in output

    def test_meta_hidden_without_verbose(self) -> None:
        result = ServiceResult(
            ok=True,
            op="config",
            data={},
            meta={"telemetry": {"name": "PlanService.describe_config", "duration_ms": 0.12}},
        )
        assert "0.12ms" not in format_result(result)
