"""Scenario suite runner for canondiff."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml

from .engine import ComparisonEngine
from .exceptions import JsonParseError
from .json_compare import parse_json, serialize_json
from .jsonpath_utils import JSONPathMatcher
from .models import (
    CompareResult,
    ComparisonOptions,
    DocumentFormat,
    EngineConfig,
    TextCompareMode,
)

logger = logging.getLogger(__name__)

SCENARIO_PATTERNS = ("*.json", "*.yaml", "*.yml")


@dataclass
class ScenarioResult:
    """Result of a single comparison scenario."""
    name: str
    scenario_path: str
    passed: bool
    expected_equal: bool = True
    compare_result: Optional[dict] = None
    fields_ignored: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict:
        result = {
            "name": self.name,
            "scenario_path": self.scenario_path,
            "passed": self.passed,
            "expected_equal": self.expected_equal,
        }
        if self.compare_result:
            result["compare_result"] = self.compare_result
        if self.fields_ignored:
            result["fields_ignored"] = self.fields_ignored
        if self.error:
            result["error"] = self.error
        return result


@dataclass
class GlobalReport:
    """Global report across all scenarios."""
    total: int = 0
    passed: int = 0
    failed: int = 0
    scenarios: list[ScenarioResult] = field(default_factory=list)
    breakdown: dict[str, list[str]] = field(default_factory=dict)
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
        if not self.breakdown:
            self.breakdown = {
                "equal": [],
                "different": [],
                "parse_errors": [],
                "lines_added": [],
                "lines_removed": []
            }

    @property
    def pass_rate(self) -> str:
        return f"{(self.passed / self.total * 100):.1f}%" if self.total > 0 else "0.0%"

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "summary": {
                "total_scenarios": self.total,
                "passed": self.passed,
                "failed": self.failed,
                "pass_rate": self.pass_rate
            },
            "breakdown": self.breakdown,
            "scenarios": [s.to_dict() for s in self.scenarios]
        }

    def print_summary(self):
        print(f"\nScenario Results: {self.passed}/{self.total} passed ({self.pass_rate})")
        if self.failed > 0:
            print(f"  Failed: {self.failed}")

        labels = {
            "equal": "Equal",
            "different": "Different",
            "parse_errors": "Parse errors",
            "lines_added": "Lines added",
            "lines_removed": "Lines removed",
        }
        for key, label in labels.items():
            if self.breakdown.get(key):
                print(f"  {label}: {len(self.breakdown[key])} scenarios")


def load_document(path: Path) -> dict:
    """Load a YAML or JSON mapping from file (JSON is valid YAML)."""
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        content = f.read()

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping in {path}, got {type(data).__name__}")
    return data


class SuiteRunner:
    """Runs comparison scenarios with shared default options."""

    def __init__(
        self,
        default_options: Optional[dict] = None,
        engine_config: Optional[EngineConfig] = None
    ):
        self.default_options = dict(default_options or {})
        self.engine = ComparisonEngine(engine_config or EngineConfig())

    def _options_for(self, scenario: dict) -> ComparisonOptions:
        merged = dict(self.default_options)
        merged.update(scenario.get("options") or {})
        return ComparisonOptions.from_dict(merged)

    def _prepare_json(self, value: Any, ignore_paths: list[str]) -> tuple[str, int]:
        """Render a JSON side as text, dropping ignored paths first."""
        if isinstance(value, str):
            if not ignore_paths:
                return value, 0
            try:
                value = parse_json(value)
            except JsonParseError:
                # Left as-is: the comparison reports the parse error
                return value, 0

        removed = 0
        if ignore_paths:
            value, removed = JSONPathMatcher.delete_paths(value, ignore_paths)
        return serialize_json(value), removed

    def _analyze(self, compare_result: dict, name: str, report: GlobalReport):
        """Categorize a scenario's comparison result into the report breakdown."""
        if compare_result.get("hasParseError"):
            report.breakdown["parse_errors"].append(name)
        elif compare_result.get("areEqual"):
            report.breakdown["equal"].append(name)
        else:
            report.breakdown["different"].append(name)

        if compare_result.get("addedCount"):
            report.breakdown["lines_added"].append(name)
        if compare_result.get("removedCount"):
            report.breakdown["lines_removed"].append(name)

    def run_scenario(self, scenario: dict, name: str, scenario_path: str) -> ScenarioResult:
        """Run a single scenario."""
        expected_equal = bool(scenario.get("expected_equal", True))

        try:
            fmt = DocumentFormat(str(scenario.get("format", "json")).lower())
            mode = TextCompareMode(str(scenario.get("mode", "line")).lower())
            options = self._options_for(scenario)
            left = scenario.get("left", "")
            right = scenario.get("right", "")

            ignored = 0
            if fmt == DocumentFormat.JSON:
                ignore_paths = scenario.get("ignore_paths") or []
                left, left_removed = self._prepare_json(left, ignore_paths)
                right, right_removed = self._prepare_json(right, ignore_paths)
                ignored = left_removed + right_removed

            result = self.engine.compare(left, right, fmt, options, mode)

            if not isinstance(result, CompareResult):
                return ScenarioResult(
                    name=name,
                    scenario_path=scenario_path,
                    passed=False,
                    expected_equal=expected_equal,
                    error=str(result.error)
                )

            return ScenarioResult(
                name=name,
                scenario_path=scenario_path,
                passed=result.are_equal == expected_equal,
                expected_equal=expected_equal,
                compare_result=result.to_dict(),
                fields_ignored=ignored
            )
        except Exception as e:
            logger.debug("Scenario %s raised %s", name, e)
            return ScenarioResult(
                name=name,
                scenario_path=scenario_path,
                passed=False,
                expected_equal=expected_equal,
                error=str(e)
            )

    def run_folder(self, folder: str, print_report: bool = True) -> GlobalReport:
        """Run all scenario files in a folder."""
        report = GlobalReport()
        folder_path = Path(folder)

        files = sorted({p for pattern in SCENARIO_PATTERNS for p in folder_path.glob(pattern)})
        for scenario_file in files:
            scenario = load_document(scenario_file)
            name = scenario.get("name", scenario_file.stem)
            result = self.run_scenario(scenario, name, str(scenario_file))

            report.scenarios.append(result)
            report.total += 1

            if result.passed:
                report.passed += 1
                if print_report:
                    print(f"PASS: {name}")
            else:
                report.failed += 1
                if print_report:
                    print(f"FAIL: {name}")

            if result.compare_result:
                self._analyze(result.compare_result, name, report)

        if print_report:
            report.print_summary()

        return report


def run_suite(
    scenario_dir: str,
    default_options: Optional[dict] = None,
    engine_config: Optional[EngineConfig] = None,
    print_report: bool = True
) -> GlobalReport:
    """Run all scenarios in a directory."""
    runner = SuiteRunner(default_options, engine_config)
    return runner.run_folder(scenario_dir, print_report)
