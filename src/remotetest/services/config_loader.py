"""Configuration loader for remotetest."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from remotetest.errors import RunnerError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "git_branch",
        "dispatcher",
        "key_file",
        "driver_host",
        "main_host",
        "log_artifact",
        "manifest_file",
        "step_timeout_minutes",
        "verbose",
        "log_file",
        "dry_run",
        "dns_ip",
        "dns_hostname",
        "packages",
        "repository_url",
        "service_unit",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise RunnerError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise RunnerError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise RunnerError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise RunnerError(f"Unknown configuration keys: {unknown_list}")

        packages = parsed.get("packages")
        if packages is not None and (
            not isinstance(packages, list) or not all(isinstance(item, str) for item in packages)
        ):
            raise RunnerError("Config key 'packages' must be a list of package names.")

        return parsed
