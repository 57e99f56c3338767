"""
Pipeline configuration.

Settings are loaded from a YAML file and then overridden by environment
variables, so the same image can run every dataset pipeline:

    1. CONFIG_PATH env var, else brewflow/config/default.yaml
    2. Environment overrides (DATASET_NAME, JOB_NAME, OUTPUT_BUCKET, ...)
    3. Hardcoded defaults for anything still unset

Example YAML:

    dataset: sales-dataset
    job: sales-clean-job
    raw_bucket: raw-data-bucket
    raw_key_pattern: "sales/{year}/{month}/<.*>.csv"
    output_bucket: out-data-bucket
    tmp_prefix: tmp
    out_prefix: data
    dataset_path_parameters:
      - name: year
      - name: month
        type: String
        create_column: false
"""

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from brewflow.src.errors import ConfigurationError
from brewflow.src.models import DatasetPathParameter
from brewflow.src.pipeline.checkpoint import DEFAULT_PARAMETER_TEMPLATE

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "default.yaml"

# Environment variable -> config field
ENV_OVERRIDES = {
    "DATASET_NAME": "dataset",
    "JOB_NAME": "job",
    "RAW_BUCKET": "raw_bucket",
    "RAW_KEY_PATTERN": "raw_key_pattern",
    "OUTPUT_BUCKET": "output_bucket",
    "TMP_PREFIX": "tmp_prefix",
    "OUT_PREFIX": "out_prefix",
    "LAST_EXECUTION_PARAMETER_NAME": "last_execution_parameter_name",
    "AWS_REGION": "region",
    "TIMEOUT_MINUTES": "timeout_minutes",
    "POLL_INTERVAL_SECONDS": "poll_interval_seconds",
    "DESCRIBE_MAX_ATTEMPTS": "describe_max_attempts",
    "FILE_EXTENSION": "file_extension",
    "STRIP_SEGMENTS": "strip_segments",
    "MAX_WORKERS": "max_workers",
    "CANCEL_JOB_ON_TIMEOUT": "cancel_job_on_timeout",
}

REQUIRED_FIELDS = ("dataset", "job", "raw_bucket", "raw_key_pattern", "output_bucket")


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class PipelineConfig:
    """
    Settings of one incremental dataset pipeline.

    Attributes:
        dataset: DataBrew dataset name (also the checkpoint's dataset id)
        job: DataBrew job name
        raw_bucket: Bucket holding raw input files
        raw_key_pattern: Dynamic key of raw files in the dataset
        output_bucket: Bucket receiving job output
        tmp_prefix: Temporary output prefix written by the job
        out_prefix: Final output prefix
        last_execution_parameter_name: SSM parameter holding the checkpoint
        dataset_path_parameters: Definitions of dynamic key segments
        region: AWS region
        timeout_minutes: Overall run budget (default: 15)
        poll_interval_seconds: Seconds between job status checks (default: 30)
        describe_max_attempts: Status check attempts before escalating (default: 3)
        file_extension: Suffix of output data files to relocate (default: .csv)
        strip_segments: Leading key segments dropped on relocation (default: 2)
        max_workers: Concurrent relocations (default: 16)
        cancel_job_on_timeout: Stop the DataBrew run when the run budget
            is exhausted (default: False, monitoring is simply abandoned)
    """

    dataset: str = ""
    job: str = ""
    raw_bucket: str = ""
    raw_key_pattern: str = ""
    output_bucket: str = ""
    tmp_prefix: str = "tmp"
    out_prefix: str = "data"
    last_execution_parameter_name: str = DEFAULT_PARAMETER_TEMPLATE
    dataset_path_parameters: List[DatasetPathParameter] = field(default_factory=list)
    region: str = "us-east-1"
    timeout_minutes: float = 15
    poll_interval_seconds: float = 30
    describe_max_attempts: int = 3
    file_extension: str = ".csv"
    strip_segments: int = 2
    max_workers: int = 16
    cancel_job_on_timeout: bool = False

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_minutes * 60

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineConfig":
        """
        Build a config from a plain dict (parsed YAML or Lambda event).

        Unknown keys are ignored with a warning.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}

        for key, value in (data or {}).items():
            if key not in known:
                logger.warning(f"Ignoring unknown config key: {key}")
                continue
            kwargs[key] = value

        params = kwargs.get("dataset_path_parameters") or []
        try:
            kwargs["dataset_path_parameters"] = [
                p if isinstance(p, DatasetPathParameter) else DatasetPathParameter(**p)
                for p in params
            ]
        except TypeError as e:
            raise ConfigurationError(f"Invalid dataset_path_parameters: {e}") from e

        config = cls(**kwargs)
        config._coerce_types()
        return config

    def apply_env(self, environ: Optional[Dict[str, str]] = None) -> "PipelineConfig":
        """Override fields from environment variables."""
        environ = os.environ if environ is None else environ

        for env_name, field_name in ENV_OVERRIDES.items():
            value = environ.get(env_name)
            if value:
                setattr(self, field_name, value)

        self._coerce_types()
        return self

    def _coerce_types(self) -> None:
        try:
            self.timeout_minutes = float(self.timeout_minutes)
            self.poll_interval_seconds = float(self.poll_interval_seconds)
            self.describe_max_attempts = int(self.describe_max_attempts)
            self.strip_segments = int(self.strip_segments)
            self.max_workers = int(self.max_workers)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e
        self.cancel_job_on_timeout = _parse_bool(self.cancel_job_on_timeout)

    def validate(self) -> "PipelineConfig":
        """
        Check required settings.

        Raises:
            ConfigurationError: If a required field is empty or a bound is invalid
        """
        missing = [name for name in REQUIRED_FIELDS if not getattr(self, name)]
        if missing:
            raise ConfigurationError(
                f"Missing required pipeline settings: {', '.join(missing)}"
            )
        if self.timeout_minutes <= 0:
            raise ConfigurationError("timeout_minutes must be positive")
        if self.poll_interval_seconds <= 0:
            raise ConfigurationError("poll_interval_seconds must be positive")
        if self.describe_max_attempts < 1:
            raise ConfigurationError("describe_max_attempts must be at least 1")
        if self.strip_segments < 0:
            raise ConfigurationError("strip_segments must not be negative")
        if self.max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")
        return self


def load_config(
    path: Optional[str] = None,
    environ: Optional[Dict[str, str]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> PipelineConfig:
    """
    Load configuration from YAML file plus environment overrides.

    Tries the explicit path, then CONFIG_PATH env var, then the packaged
    default.yaml. Falls back to hardcoded defaults if no file exists.
    Environment variables win over the file; explicit overrides (e.g. from
    a Lambda event) win over both.

    Raises:
        ConfigurationError: If the file is not valid YAML or required
            settings are missing
    """
    environ = os.environ if environ is None else environ
    config_path = path or environ.get("CONFIG_PATH") or str(DEFAULT_CONFIG_PATH)

    data: Dict[str, Any] = {}
    if os.path.exists(config_path):
        logger.info(f"Loading config from {config_path}")
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_path} must hold a mapping")
    else:
        logger.warning("No config file found, using hardcoded defaults")

    config = PipelineConfig.from_dict(data).apply_env(environ)
    if overrides:
        config = PipelineConfig.from_dict({**asdict(config), **overrides})

    return config.validate()
