"""
Process-wide defaults for scoped policies.

Per-scope options always win. These defaults are consulted only when a
scope leaves an option unspecified.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from scoped_policy.exceptions import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _parse_bool(key: str, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        config_key=key,
        expected="a boolean (1/0, true/false, yes/no, on/off)",
        received=raw,
    )


@dataclass(frozen=True)
class ScopedPolicyConfig:
    """
    Defaults applied to scopes that do not set an option themselves.

    Attributes:
        debug: Emit a trace record for every dispatch through scopes
            without an explicit ``debug`` option, and for requests no
            scope matched.
        allow_all: Allow every request reaching a scope without an
            explicit ``allow_all`` option. Only for tests and local
            development.

    Example:
        >>> config = ScopedPolicyConfig.from_env()
        >>> registry = ScopeRegistry(config=config)
    """

    debug: bool = False
    allow_all: bool = False

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> ScopedPolicyConfig:
        """
        Build a config from a key-value mapping.

        Unknown keys raise ConfigurationError so typos are caught early.
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, bool] = {}
        for key, raw in mapping.items():
            if key not in known:
                raise ConfigurationError(
                    config_key=key,
                    expected=f"one of: {', '.join(sorted(known))}",
                )
            values[key] = _parse_bool(key, raw)
        return cls(**values)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        prefix: str = "SCOPED_POLICY_",
    ) -> ScopedPolicyConfig:
        """
        Build a config from environment variables.

        Reads ``SCOPED_POLICY_DEBUG`` and ``SCOPED_POLICY_ALLOW_ALL``.
        Missing variables keep their defaults.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.
            prefix: Variable name prefix.
        """
        env = os.environ if environ is None else environ
        values: dict[str, bool] = {}
        for f in fields(cls):
            var = f"{prefix}{f.name.upper()}"
            if var in env:
                values[f.name] = _parse_bool(var, env[var])
        return cls(**values)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a default by option name."""
        return self.to_dict().get(key, default)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "debug": self.debug,
            "allow_all": self.allow_all,
        }


DEFAULT_CONFIG = ScopedPolicyConfig()
