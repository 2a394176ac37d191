"""
Configuration Loader (``approval_config.loader``).

Responsibility
--------------
Loads the engine YAML file and parses it into ``approval_config.schema``
dataclasses.  The single public entry point for runtime config is
``approval_config.get_active_config()``.

Invariants enforced
-------------------
* Every parse error raises ``ConfigurationError`` naming the file and key.
* Every ``RequestType`` must have a section; a missing type is an error,
  not a silent default.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the parsed
  document for change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``ConfigurationError`` (wrapping ``yaml.YAMLError``).
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from approval_config.schema import EngineConfig, RequestTypeConfig
from approval_kernel.domain.approval_item import RequestType
from approval_kernel.exceptions import ConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        ConfigurationError: if the file is not valid YAML or not a mapping.
    """
    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(str(path), f"invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of a parsed configuration document."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _positive_int(data: dict[str, Any], key: str, default: int, source: str) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(source, f"{key} must be a positive integer, got {value!r}")
    return value


def parse_request_type(
    request_type: RequestType,
    data: dict[str, Any],
    source: str,
) -> RequestTypeConfig:
    """Parse one ``request_types.<type>`` section."""
    if not isinstance(data, dict):
        raise ConfigurationError(
            source, f"request_types.{request_type.value} must be a mapping",
        )
    statuses = data.get("pending_statuses", ["pending"])
    if (
        not isinstance(statuses, list)
        or not statuses
        or not all(isinstance(s, str) and s for s in statuses)
    ):
        raise ConfigurationError(
            source,
            f"request_types.{request_type.value}.pending_statuses "
            f"must be a non-empty list of strings",
        )
    approved = data.get("approved_status", "approved")
    rejected = data.get("rejected_status", "rejected")
    if approved in statuses or rejected in statuses:
        raise ConfigurationError(
            source,
            f"request_types.{request_type.value}: decided statuses "
            f"cannot also be pending",
        )
    return RequestTypeConfig(
        request_type=request_type,
        pending_statuses=tuple(statuses),
        approved_status=approved,
        rejected_status=rejected,
    )


def parse_engine_config(data: dict[str, Any], source: str = "<memory>") -> EngineConfig:
    """Parse a full configuration document into an ``EngineConfig``."""
    queue = data.get("queue", {}) or {}
    default_page_size = _positive_int(queue, "default_page_size", 20, source)
    max_page_size = _positive_int(queue, "max_page_size", 100, source)
    if default_page_size > max_page_size:
        raise ConfigurationError(source, "default_page_size exceeds max_page_size")

    timeout = queue.get("source_timeout_seconds", 10.0)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigurationError(source, f"source_timeout_seconds must be > 0, got {timeout!r}")

    database = data.get("database", {}) or {}
    database_url = database.get("url", "sqlite:///approvals.db")

    sections = data.get("request_types", {}) or {}
    unknown = sorted(set(sections) - {t.value for t in RequestType})
    if unknown:
        raise ConfigurationError(source, f"unknown request types: {unknown}")
    missing = [t.value for t in RequestType if t.value not in sections]
    if missing:
        raise ConfigurationError(source, f"missing request types: {missing}")

    request_types = {
        t: parse_request_type(t, sections[t.value] or {}, source)
        for t in RequestType
    }

    return EngineConfig(
        default_page_size=default_page_size,
        max_page_size=max_page_size,
        source_timeout_seconds=float(timeout),
        database_url=database_url,
        request_types=request_types,
        checksum=compute_checksum(data),
    )


def load_engine_config(path: Path) -> EngineConfig:
    """Load and parse one configuration file."""
    return parse_engine_config(load_yaml_file(path), source=str(path))
