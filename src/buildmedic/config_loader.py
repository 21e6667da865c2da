"""Configuration loader for buildmedic.

Loads project overrides from ``buildmedic.yaml`` in the project root with
fallback to environment/default settings.

Example ``buildmedic.yaml``::

    log_filename: ci-recovery.log
    history_path: .buildmedic/history.jsonl
    commands:
      verify: npm run build --workspace=packages/api
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .config import Settings, build_settings

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "buildmedic.yaml"

_TOP_LEVEL_KEYS = {
    "log_filename",
    "log_level",
    "history_path",
    "detect_unclassified_failures",
    "compiler_config_filename",
}


def _read_yaml(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        logger.debug(f"Config file {config_path} not found, using default configuration")
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Error loading {config_path}: {e}, using defaults")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"{config_path} does not contain a mapping, using defaults")
        return {}
    return data


def load_settings(project_root: Optional[Path] = None, **overrides: Any) -> Settings:
    """Load settings for a project checkout.

    Precedence: explicit ``overrides`` > ``buildmedic.yaml`` > environment > defaults.

    Args:
        project_root: Checkout to operate on (defaults to current directory)
        overrides: Settings fields taking priority over everything else

    Returns:
        Settings instance

    Raises:
        ConfigError: If the merged configuration is invalid
    """
    root = Path(project_root) if project_root is not None else Path.cwd()
    data = _read_yaml(root / CONFIG_FILENAME)

    unknown = set(data) - _TOP_LEVEL_KEYS - {"commands"}
    if unknown:
        logger.warning(f"Ignoring unknown keys in {CONFIG_FILENAME}: {sorted(unknown)}")

    base = build_settings(project_root=root)

    commands = base.commands.model_dump()
    yaml_commands = data.get("commands") or {}
    if isinstance(yaml_commands, dict):
        commands.update({k: v for k, v in yaml_commands.items() if k in commands})
    else:
        logger.warning(f"'commands' in {CONFIG_FILENAME} must be a mapping, ignoring")

    values: Dict[str, Any] = {k: v for k, v in data.items() if k in _TOP_LEVEL_KEYS}
    values["project_root"] = root
    values["commands"] = commands
    values.update(overrides)

    return build_settings(**values)
