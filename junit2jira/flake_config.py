"""Flake detection policies loaded from a YAML config file.

Example config::

    - jobNameRegex: "pr-.*"
      className: "TestLoadFlakeConfigFile"
      testNameRegex: "TestLoadFlakeConf.*"
      ratioJobName: "main-branch-tests"
      ratioThreshold: 5
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence, Union

import yaml

from .errors import ConfigError, NoMatchError

logger = logging.getLogger(__name__)


def _string(value) -> str:
    # An empty YAML value is null, read it as an empty string.
    return "" if value is None else str(value)


@dataclass(frozen=True)
class FlakeDetectionPolicyConfig:
    # Regex for the CI jobs that are evaluated, e.g. PR jobs but not jobs
    # for commits already merged to the main branch.
    job_name_regex: str = ""
    # Class of the isolated test: Groovy class, Go package, etc.
    class_name: str = ""
    # Regex grouping test names, e.g. all 4.4.z variants of a versioned test.
    test_name_regex: str = ""
    # CI job whose history is used to compute the flake ratio.
    ratio_job_name: str = ""
    # Maximum tolerated failure percentage. Tests failing more often than
    # this are treated as regressed and not suppressed.
    ratio_threshold: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "FlakeDetectionPolicyConfig":
        return cls(
            job_name_regex=_string(data.get("jobNameRegex")),
            class_name=_string(data.get("className")),
            test_name_regex=_string(data.get("testNameRegex")),
            ratio_job_name=_string(data.get("ratioJobName")),
            ratio_threshold=int(data.get("ratioThreshold") or 0),
        )


@dataclass(frozen=True)
class FlakeDetectionPolicy:
    """A policy with its regexes compiled. Names must match a regex in full."""
    config: FlakeDetectionPolicyConfig
    job_name_pattern: re.Pattern = field(compare=False)
    test_name_pattern: re.Pattern = field(compare=False)

    @classmethod
    def from_config(cls, config: FlakeDetectionPolicyConfig) -> "FlakeDetectionPolicy":
        try:
            job_name_pattern = re.compile(f"(?:{config.job_name_regex})")
        except re.error as e:
            raise ConfigError(f"invalid flake config match job regex: {config.job_name_regex}: {e}") from e
        try:
            test_name_pattern = re.compile(f"(?:{config.test_name_regex})")
        except re.error as e:
            raise ConfigError(f"invalid flake config test name regex: {config.test_name_regex}: {e}") from e
        return cls(config, job_name_pattern, test_name_pattern)

    def match_job_name(self, job_name: str) -> bool:
        return self.job_name_pattern.fullmatch(job_name) is not None

    def match_class_name(self, class_name: str) -> bool:
        return class_name == self.config.class_name

    def match_test_name(self, test_name: str) -> bool:
        return self.test_name_pattern.fullmatch(test_name) is not None

    def matches(self, job_name: str, class_name: str, test_name: str) -> bool:
        return (self.match_job_name(job_name)
                and self.match_class_name(class_name)
                and self.match_test_name(test_name))


def find_flake_config_for_test(policies: Sequence[FlakeDetectionPolicy], job_name: str,
                               class_name: str, test_name: str) -> FlakeDetectionPolicy:
    for policy in policies:
        if policy.matches(job_name, class_name, test_name):
            return policy
    raise NoMatchError(f"{job_name!r} / {class_name!r} / {test_name!r}")


def parse_flake_config(content: str) -> list[FlakeDetectionPolicy]:
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"parse flake config: {e}") from e

    if data is None:
        return []
    if not isinstance(data, list):
        raise ConfigError("parse flake config: expected a list of policies")

    policies = []
    for record in data:
        if not isinstance(record, dict):
            raise ConfigError(f"parse flake config: expected a mapping, got {record!r}")
        try:
            config = FlakeDetectionPolicyConfig.from_dict(record)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"parse flake config: {record!r}: {e}") from e
        policies.append(FlakeDetectionPolicy.from_config(config))
    return policies


def load_flake_config_file(path: Union[str, Path]) -> list[FlakeDetectionPolicy]:
    try:
        content = Path(path).read_text()
    except OSError as e:
        raise ConfigError(f"open flake config file: {path}: {e}") from e

    try:
        policies = parse_flake_config(content)
    except ConfigError as e:
        raise ConfigError(f"{path}: {e}") from e
    logger.debug(f"Loaded {len(policies)} flake detection policies from {path}")
    return policies
