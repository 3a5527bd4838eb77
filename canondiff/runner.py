"""Simple runner that takes a YAML suite config and a scenario folder."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .models import AlignmentStrategy, EngineConfig, LogLevel
from .suite import GlobalReport, load_document, run_suite


class CanonDiffRunner:
    """
    Scenario runner that loads suite defaults from a YAML file and runs
    every scenario in a folder.

    A suite config looks like:

        options:
          ignore_key_order: true
          ignoreWhitespace: true
        engine:
          max_input_size_mb: 2
          alignment: lcs
          log_level: INFO

    Usage:
        runner = CanonDiffRunner("suite.yaml", "scenarios")
        report = runner.run()

    Or as a one-liner:
        report = CanonDiffRunner.run_tests("suite.yaml", "scenarios")
    """

    def __init__(
        self,
        config_path: Optional[str],
        scenario_folder: str,
        engine_config: Optional[EngineConfig] = None
    ):
        """
        Initialize the runner.

        Args:
            config_path: Path to YAML/JSON suite config (None for defaults)
            scenario_folder: Path to folder containing scenario files
            engine_config: Engine configuration; overrides the config file's
                engine section when given
        """
        self.config_path = Path(config_path) if config_path else None
        self.scenario_folder = Path(scenario_folder)
        self._engine_config = engine_config
        self._config: Optional[dict] = None

    @property
    def config(self) -> dict:
        """Load and cache the suite config from file."""
        if self._config is None:
            self._config = load_document(self.config_path) if self.config_path else {}
        return self._config

    @property
    def engine_config(self) -> EngineConfig:
        if self._engine_config is None:
            self._engine_config = self._build_engine_config(self.config.get("engine") or {})
        return self._engine_config

    def _build_engine_config(self, section: dict) -> EngineConfig:
        """Build an EngineConfig from the engine section of a suite config."""
        values = dict(section)
        try:
            if "alignment" in values:
                values["alignment"] = AlignmentStrategy(str(values["alignment"]).lower())
            if "log_level" in values:
                values["log_level"] = LogLevel(str(values["log_level"]).upper())
            return EngineConfig(**values)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid engine section in {self.config_path}: {e}")

    def run(self, print_report: bool = True) -> GlobalReport:
        """
        Run all scenarios in the scenario folder.

        Args:
            print_report: Whether to print the summary report

        Returns:
            GlobalReport with all results
        """
        if not self.scenario_folder.exists():
            raise FileNotFoundError(f"Scenario folder not found: {self.scenario_folder}")

        return run_suite(
            scenario_dir=str(self.scenario_folder),
            default_options=self.config.get("options") or {},
            engine_config=self.engine_config,
            print_report=print_report
        )

    @classmethod
    def run_tests(
        cls,
        config_path: Optional[str],
        scenario_folder: str,
        print_report: bool = True,
        engine_config: Optional[EngineConfig] = None
    ) -> GlobalReport:
        """
        Convenience class method to run scenarios in one call.

        Example:
            report = CanonDiffRunner.run_tests("suite.yaml", "scenarios/")
        """
        runner = cls(config_path, scenario_folder, engine_config)
        return runner.run(print_report=print_report)


def run_tests(
    config_path: Optional[str],
    scenario_folder: str,
    print_report: bool = True
) -> GlobalReport:
    """
    Run scenarios from a suite config file and a scenario folder.

    This is the simplest way to run a suite:

        from canondiff.runner import run_tests
        report = run_tests("suite.yaml", "scenarios")

    Args:
        config_path: Path to YAML/JSON suite config (None for defaults)
        scenario_folder: Path to folder containing scenario files
        print_report: Whether to print the summary report

    Returns:
        GlobalReport with all results
    """
    return CanonDiffRunner.run_tests(config_path, scenario_folder, print_report)
