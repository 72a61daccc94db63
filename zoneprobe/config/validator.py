"""Schema and semantic validation for ZoneProbe configuration."""

import re
from typing import Any, Dict, List

import jsonschema

from zoneprobe.errors import SelectorInvalid

# JSON Schema for the YAML configuration file (and the merged result)
CONFIG_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "labelSelector": {"type": "string"},
        "namespace": {"type": "string"},
        "output": {
            "type": "string",
            "enum": ["table", "json", "text"]
        },
        "zoneLabel": {"type": "string", "minLength": 1},
        "timeoutSeconds": {"type": "number", "exclusiveMinimum": 0},
        "workers": {"type": "integer", "minimum": 1, "maximum": 64},
        "retries": {"type": "integer", "minimum": 0, "maximum": 10},
        "keepGoing": {"type": "boolean"},
        "kubeconfig": {"type": ["string", "null"]},
        "context": {"type": ["string", "null"]}
    }
}

# Label keys: optional DNS-subdomain prefix, then a name segment
_NAME = r"[A-Za-z0-9]([-A-Za-z0-9_.]{0,61}[A-Za-z0-9])?"
_PREFIX = r"[a-z0-9]([-a-z0-9.]{0,251}[a-z0-9])?/"
_KEY = rf"(?:{_PREFIX})?{_NAME}"
_VALUE = rf"(?:{_NAME})?"

_EQUALITY_RE = re.compile(rf"^(?P<key>{_KEY})\s*(?:=|==|!=)\s*(?P<value>{_VALUE})$")
_EXISTS_RE = re.compile(rf"^!?\s*(?P<key>{_KEY})$")
_SET_RE = re.compile(rf"^(?P<key>{_KEY})\s+(?:in|notin)\s*\((?P<values>[^()]*)\)$")
_NUMERIC_RE = re.compile(rf"^(?P<key>{_KEY})\s*(?:<|>)\s*-?\d+$")
_VALUE_RE = re.compile(rf"^{_VALUE}$")


class ValidationError(Exception):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, errors: List[str] = None):
        super().__init__(message)
        self.errors = errors or []


def validate_config(data: Dict[str, Any]) -> bool:
    """Validate a configuration dictionary against the schema.

    Args:
        data: Configuration keyed by the camelCase names used in YAML.

    Returns:
        True if validation passes.

    Raises:
        ValidationError: If validation fails.
    """
    try:
        jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        raise ValidationError(f"Schema validation failed: {e.message}", [str(e)])

    errors = _semantic_validation(data)
    if errors:
        raise ValidationError("Semantic validation failed", errors)

    return True


def _semantic_validation(data: Dict[str, Any]) -> List[str]:
    """Checks the schema cannot express."""
    errors = []

    selector = data.get("labelSelector")
    if selector:
        try:
            validate_selector(selector)
        except SelectorInvalid as e:
            errors.append(str(e))

    zone_label = data.get("zoneLabel")
    if zone_label and not re.match(rf"^{_KEY}$", zone_label):
        errors.append(f"zoneLabel is not a valid label key: '{zone_label}'")

    return errors


def validate_selector(selector: str) -> str:
    """Check a label selector before it is sent to the API server.

    Accepts equality (``a=b``, ``a==b``, ``a!=b``), existence (``a``,
    ``!a``), set (``a in (x,y)``, ``a notin (x)``) and numeric (``a>1``)
    requirements joined by commas.

    Returns:
        The selector with surrounding whitespace removed.

    Raises:
        SelectorInvalid: If the selector is empty or malformed.
    """
    stripped = (selector or "").strip()
    if not stripped:
        raise SelectorInvalid(selector or "", "label selector is required")

    for requirement in _split_requirements(stripped):
        if not _valid_requirement(requirement):
            raise SelectorInvalid(selector, f"malformed requirement '{requirement}'")

    return stripped


def _split_requirements(selector: str) -> List[str]:
    """Split on commas that are not inside a set expression."""
    parts = []
    depth = 0
    current = []
    for ch in selector:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    parts.append("".join(current).strip())
    return parts


def _valid_requirement(requirement: str) -> bool:
    if not requirement:
        return False
    if _EQUALITY_RE.match(requirement) or _EXISTS_RE.match(requirement):
        return True
    if _NUMERIC_RE.match(requirement):
        return True
    match = _SET_RE.match(requirement)
    if match:
        values = [v.strip() for v in match.group("values").split(",")]
        return any(values) and all(_VALUE_RE.match(v) for v in values)
    return False
