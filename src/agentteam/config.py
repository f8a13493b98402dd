"""
agentteam Configuration
=======================

YAML-based configuration with sensible defaults.
Loads from agentteam_config.yaml if present, otherwise uses built-in defaults.

Example agentteam_config.yaml:

    team:
      break_on_error: false
      global_timeout: 120
    tracing:
      enabled: true        # executors built by TeamBuilder record spans
    topologies:
      review:
        pattern: hybrid
        children:
          - {id: drafter, agent: drafter}
          - {id: critic, agent: critic, critical: false, timeout: 30}
        steps:
          - {agents: [drafter]}
          - {agents: [critic], dependencies: [0]}

``TeamBuilder.from_file(path, "review", registry)`` reads all three sections.
"""

from __future__ import annotations

import copy
from pathlib import Path

import yaml

_DEFAULTS = {
    "team": {
        "pattern": "sequential",
        "break_on_error": True,
        "global_timeout": 300.0,
        "max_iterations": 10,  # reserved
        "coordination_context": False,
        "default_critical": True,
    },
    "tracing": {
        "enabled": False,
    },
    "topologies": {},
}


def default_config() -> dict:
    """Return a fresh copy of the built-in defaults."""
    return copy.deepcopy(_DEFAULTS)


def load_config(path: str | Path = "agentteam_config.yaml") -> dict:
    """Load configuration from YAML file, merging with defaults.

    Args:
        path: Path to YAML config file. If relative, resolved from CWD.

    Returns:
        Merged config dict with all sections populated.
    """
    config = default_config()
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            user = yaml.safe_load(f) or {}
        for section, values in user.items():
            if section in config and isinstance(values, dict):
                config[section].update(values)
            else:
                config[section] = values
    return config
