"""Configuration loading for ZoneProbe.

Settings come from three layers, later ones winning:

1. Built-in defaults (``DEFAULTS``)
2. An optional YAML file passed with ``--config``
3. Command-line flags

Each layer uses the camelCase keys of the YAML file. The merged result
is validated and frozen into a ``ReportConfig``.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from zoneprobe.config.validator import ValidationError, validate_config, validate_selector
from zoneprobe.output.renderers import OutputFormat
from zoneprobe.topology.zones import ZONE_LABEL_KEY


DEFAULTS: Dict[str, Any] = {
    "labelSelector": "",
    "namespace": "",
    "output": OutputFormat.TABLE.value,
    "zoneLabel": ZONE_LABEL_KEY,
    "timeoutSeconds": 10,
    "workers": 4,
    "retries": 0,
    "keepGoing": False,
    "kubeconfig": None,
    "context": None,
}


@dataclass(frozen=True)
class ReportConfig:
    """Run-scoped settings passed explicitly to the builder and renderers."""

    label_selector: str
    output: OutputFormat = OutputFormat.TABLE
    namespace: str = ""
    zone_label: str = ZONE_LABEL_KEY
    timeout_seconds: float = 10
    workers: int = 4
    retries: int = 0
    keep_going: bool = False
    kubeconfig: Optional[str] = None
    context: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialise back to the camelCase configuration keys."""
        return {
            "labelSelector": self.label_selector,
            "namespace": self.namespace,
            "output": self.output.value,
            "zoneLabel": self.zone_label,
            "timeoutSeconds": self.timeout_seconds,
            "workers": self.workers,
            "retries": self.retries,
            "keepGoing": self.keep_going,
            "kubeconfig": self.kubeconfig,
            "context": self.context,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReportConfig":
        """Build from a merged configuration dictionary.

        Missing keys fall back to ``DEFAULTS``.

        Raises:
            SelectorInvalid: If the label selector is empty or malformed.
        """
        merged = merge_configs(DEFAULTS, data)
        return cls(
            label_selector=validate_selector(merged["labelSelector"]),
            output=OutputFormat(merged["output"]),
            namespace=merged["namespace"] or "",
            zone_label=merged["zoneLabel"],
            timeout_seconds=merged["timeoutSeconds"],
            workers=merged["workers"],
            retries=merged["retries"],
            keep_going=merged["keepGoing"],
            kubeconfig=merged["kubeconfig"],
            context=merged["context"],
        )


def load_config_file(config_path: str) -> Dict[str, Any]:
    """Load and validate a YAML configuration file.

    Args:
        config_path: Path to the YAML file.

    Returns:
        The raw configuration dictionary (camelCase keys).

    Raises:
        FileNotFoundError: If the file does not exist.
        ValidationError: If the YAML is invalid or fails the schema.
    """
    path = Path(config_path)
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML in {config_path}", [str(e)])

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError(
            f"Config file {config_path} must contain a mapping, "
            f"got {type(data).__name__}"
        )

    validate_config(data)
    return data


def build_config(
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ReportConfig:
    """Merge defaults, an optional config file and CLI overrides.

    ``None`` values in ``overrides`` mean "not given on the command line"
    and do not mask the file or the defaults.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ValidationError: If the file or the merged settings are invalid.
        SelectorInvalid: If no usable label selector was supplied.
    """
    file_config = load_config_file(config_path) if config_path else {}
    cli_config = {k: v for k, v in (overrides or {}).items() if v is not None}

    merged = merge_configs(DEFAULTS, file_config, cli_config)
    validate_config(merged)
    return ReportConfig.from_dict(merged)


def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge multiple configuration dictionaries.

    Later configs override earlier ones for conflicting keys.
    """
    result: Dict[str, Any] = {}
    for config in configs:
        result = _deep_merge(result, config)
    return result


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result
