"""Configuration parsing for siplocator.

Brief:
  Centralizes:
    - reading YAML config files
    - merging variables from config/env/CLI and expanding ${VAR} references
    - validating the result with pydantic models
    - building the DNS lookup backend and ServerLocator from a config

Inputs:
  - YAML config paths or already-parsed mappings.

Outputs:
  - LocatorConfig instances and configured ServerLocator objects.

Example config:
  locator:
    supported_transports: [udp, tcp, tls]
    local_host_names: [pbx.internal]
  dns:
    backend: dnslib
    nameservers: ["${RESOLVER}"]
  logging:
    level: debug
  variables:
    RESOLVER: 192.0.2.53
"""

from __future__ import annotations

import copy
import json
import os
import re
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..errors import ConfigError
from ..hop import DEFAULT_SUPPORTED_TRANSPORTS
from ..locator import ServerLocator
from ..lookup import DnsLookup, DnslibLookup, DnspythonLookup

_VAR_KEY_RE = re.compile(r"[A-Z_][A-Z0-9_]*")
_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)\}")


class LocatorSettings(BaseModel):
    """Brief: Registry seeds for ServerLocator.

    Inputs:
      - supported_transports: Transports probed/accepted, in probing order.
      - local_host_names: Host names resolved directly, bypassing SRV.

    Outputs:
      - LocatorSettings instance.
    """

    supported_transports: List[str] = Field(
        default_factory=lambda: list(DEFAULT_SUPPORTED_TRANSPORTS)
    )
    local_host_names: List[str] = Field(default_factory=list)

    class Config:
        extra = "forbid"


class DnsConfig(BaseModel):
    """Brief: DNS backend selection.

    Inputs:
      - backend: 'dnspython' (stub resolver) or 'dnslib' (direct queries).
      - nameservers: Nameserver IPs; empty means system configuration
        (dnspython only; dnslib requires at least one).
      - port: Nameserver port (explicit nameservers only).
      - timeout_ms: Query timeout in milliseconds.

    Outputs:
      - DnsConfig instance.
    """

    backend: Literal["dnspython", "dnslib"] = "dnspython"
    nameservers: List[str] = Field(default_factory=list)
    port: int = Field(default=53, ge=1, le=65535)
    timeout_ms: int = Field(default=2000, ge=1)

    class Config:
        extra = "forbid"


class LocatorConfig(BaseModel):
    """Brief: Root configuration model.

    Inputs:
      - locator: LocatorSettings.
      - dns: DnsConfig.
      - logging: Mapping passed to init_logging().

    Outputs:
      - LocatorConfig instance.
    """

    locator: LocatorSettings = Field(default_factory=LocatorSettings)
    dns: DnsConfig = Field(default_factory=DnsConfig)
    logging: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        extra = "forbid"


def _is_var_key(key: object) -> bool:
    return isinstance(key, str) and bool(_VAR_KEY_RE.fullmatch(key))


def _parse_yaml_value(text: str) -> Any:
    """Brief: Parse a CLI/environment value as YAML, keeping text on errors."""

    try:
        return yaml.safe_load(text)
    except yaml.YAMLError:
        return text


def merge_variables(
    cfg: Dict[str, Any],
    *,
    cli_vars: Optional[List[str]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Brief: Merge config/environment/CLI variables.

    Inputs:
      - cfg: Parsed YAML mapping; its 'variables' group is read, not mutated.
      - cli_vars: Optional list of `KEY=YAML` assignments.
      - environ: Environment mapping (defaults to os.environ).

    Outputs:
      - dict: merged variables. CLI overrides environment overrides file.

    Raises:
      - ConfigError: malformed variables group, names or assignments.

    Example:
      >>> merge_variables({'variables': {'PORT': 53}}, cli_vars=['PORT=5353'], environ={})['PORT']
      5353
    """

    base = cfg.get("variables")
    if base is None:
        merged: Dict[str, Any] = {}
    elif isinstance(base, dict):
        merged = dict(base)
    else:
        raise ConfigError("config.variables must be a mapping when present")
    for key in merged:
        if not _is_var_key(key):
            raise ConfigError(
                f"config.variables key {key!r} must match [A-Z_][A-Z0-9_]*"
            )

    env = os.environ if environ is None else environ
    for key, value in env.items():
        if _is_var_key(key):
            merged[key] = _parse_yaml_value(str(value))

    for assignment in cli_vars or []:
        if "=" not in assignment:
            raise ConfigError(
                f"Invalid -v/--var value (expected KEY=YAML), got: {assignment!r}"
            )
        key, raw = assignment.split("=", 1)
        key = key.strip()
        if not _is_var_key(key):
            raise ConfigError(
                f"Invalid variable name {key!r} (must match [A-Z_][A-Z0-9_]*)"
            )
        merged[key] = _parse_yaml_value(raw)
    return merged


def expand_variables(obj: Any, variables: Dict[str, Any]) -> Any:
    """
    Brief: Substitute ${KEY} references throughout a parsed config.

    Inputs:
      - obj: Parsed YAML node (dict/list/scalar).
      - variables: Mapping of variable name -> value.

    Outputs:
      - Any: a new node. A string that is exactly '${KEY}' is replaced by the
        variable's value (keeping lists/ints intact); other occurrences are
        substituted as text. Unknown references are left untouched.
    """

    if isinstance(obj, dict):
        return {k: expand_variables(v, variables) for k, v in obj.items()}
    if isinstance(obj, list):
        return [expand_variables(v, variables) for v in obj]
    if not isinstance(obj, str):
        return obj

    whole = _VAR_PATTERN.fullmatch(obj)
    if whole and whole.group(1) in variables:
        return copy.deepcopy(variables[whole.group(1)])

    def _repl(match: re.Match) -> str:
        key = match.group(1)
        if key not in variables:
            return match.group(0)
        value = variables[key]
        if isinstance(value, bool):
            return "true" if value else "false"
        if value is None:
            return "null"
        if isinstance(value, (int, float, str)):
            return str(value)
        return json.dumps(value)

    return _VAR_PATTERN.sub(_repl, obj)


def load_config(
    raw: Optional[Dict[str, Any]],
    *,
    cli_vars: Optional[List[str]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> LocatorConfig:
    """
    Brief: Expand variables in a parsed mapping and validate it.

    Inputs:
      - raw: Parsed YAML mapping (None is treated as empty).
      - cli_vars: Optional `KEY=YAML` assignments.
      - environ: Optional environment mapping.

    Outputs:
      - LocatorConfig.

    Raises:
      - ConfigError: when the mapping is not valid.
    """

    if not isinstance(raw, (dict, type(None))):
        raise ConfigError("Configuration root must be a mapping")
    cfg = dict(raw or {})
    variables = merge_variables(cfg, cli_vars=cli_vars, environ=environ)
    cfg.pop("variables", None)
    expanded = expand_variables(cfg, variables)
    try:
        config = LocatorConfig(**expanded)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    if config.dns.backend == "dnslib" and not config.dns.nameservers:
        raise ConfigError("dns.backend 'dnslib' requires dns.nameservers")
    return config


def parse_config_file(
    config_path: str,
    *,
    cli_vars: Optional[List[str]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> LocatorConfig:
    """
    Brief: Read, variable-expand and validate a YAML config file.

    Inputs:
      - config_path: Path to the YAML configuration file.
      - cli_vars: Optional `KEY=YAML` assignments (from -v/--var).
      - environ: Optional environment mapping.

    Outputs:
      - LocatorConfig.

    Raises:
      - ConfigError: unreadable file, invalid YAML, or invalid configuration.
    """

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigError(f"Cannot read config {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError("Configuration root must be a mapping")
    return load_config(raw, cli_vars=cli_vars, environ=environ)


def build_lookup(dns_cfg: DnsConfig) -> DnsLookup:
    """Brief: Construct the DnsLookup backend named by dns_cfg."""

    if dns_cfg.backend == "dnslib":
        return DnslibLookup(
            dns_cfg.nameservers, port=dns_cfg.port, timeout_ms=dns_cfg.timeout_ms
        )
    return DnspythonLookup(
        dns_cfg.nameservers or None, port=dns_cfg.port, timeout_ms=dns_cfg.timeout_ms
    )


def build_locator(
    config: LocatorConfig, *, lookup: Optional[DnsLookup] = None
) -> ServerLocator:
    """
    Brief: Create a ServerLocator from configuration.

    Inputs:
      - config: Validated LocatorConfig.
      - lookup: Optional DnsLookup overriding the configured backend.

    Outputs:
      - ServerLocator with registries seeded from config.locator.
    """

    return ServerLocator(
        [t.lower() for t in config.locator.supported_transports],
        lookup=lookup if lookup is not None else build_lookup(config.dns),
        local_host_names=config.locator.local_host_names,
    )
