"""
Provider Configuration Management for gitops-checkout.

Handles provider configuration loading, validation and environment variable
overrides. The provider configuration names the remote, branch and local
directory of the managed checkout plus defaults for the resource options.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

from gitops_checkout.git.runner import DEFAULT_GIT_TIMEOUT
from gitops_checkout.locks import canonical_path
from gitops_checkout.models import CheckoutOptions

logger = logging.getLogger(__name__)


VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ProviderConfig:
    """
    Configuration supplied by the declarative host for one checkout.

    `path` is canonicalised on construction so it can be used directly as
    both the lock key and the resource identity.
    """

    repo: str
    branch: str
    path: str
    git_binary: str = "git"
    git_timeout: int = DEFAULT_GIT_TIMEOUT
    log_level: str = "INFO"
    defaults: CheckoutOptions = field(default_factory=CheckoutOptions)

    def __post_init__(self):
        if self.path:
            self.path = canonical_path(self.path)
        if isinstance(self.defaults, dict):
            self.defaults = CheckoutOptions(**self.defaults)


class ProviderConfigManager:
    """
    Manages provider configuration stored as JSON.

    Example file:
        {
          "repo": "git@github.com:example/infra.git",
          "branch": "main",
          "path": "/srv/checkouts/infra",
          "git_timeout": 300,
          "defaults": {"retry_count": 10, "retry_interval": 5}
        }
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize provider configuration manager.

        Args:
            config_path: Path to config file (defaults to GITOPS_CHECKOUT_CONFIG
                         env var or ./gitops-checkout.json)
        """
        if config_path:
            self.config_file_path = Path(config_path)
        else:
            self.config_file_path = Path(
                os.environ.get("GITOPS_CHECKOUT_CONFIG", "gitops-checkout.json")
            )

    def load_config(self) -> ProviderConfig:
        """
        Load configuration from file.

        Returns:
            ProviderConfig built from the file contents

        Raises:
            FileNotFoundError: If the configuration file does not exist
            ValueError: If configuration file is malformed
        """
        if not self.config_file_path.exists():
            raise FileNotFoundError(
                f"Provider configuration not found: {self.config_file_path}"
            )

        try:
            with open(self.config_file_path, "r") as f:
                config_dict = json.load(f)

            if not isinstance(config_dict, dict):
                raise ValueError("Configuration root must be a JSON object")

            if "defaults" in config_dict and isinstance(config_dict["defaults"], dict):
                config_dict["defaults"] = CheckoutOptions(**config_dict["defaults"])

            return ProviderConfig(**config_dict)

        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse configuration file: {e}")
        except TypeError as e:
            raise ValueError(f"Invalid configuration format: {e}")

    def save_config(self, config: ProviderConfig) -> None:
        """
        Save configuration to file.

        Args:
            config: ProviderConfig object to save
        """
        self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_file_path, "w") as f:
            json.dump(asdict(config), f, indent=2)

    def apply_env_overrides(self, config: ProviderConfig) -> ProviderConfig:
        """
        Apply environment variable overrides to configuration.

        Supported environment variables:
        - GITOPS_CHECKOUT_REPO: Override remote URL
        - GITOPS_CHECKOUT_BRANCH: Override branch
        - GITOPS_CHECKOUT_PATH: Override checkout directory
        - GITOPS_CHECKOUT_GIT_BINARY: Override git executable
        - GITOPS_CHECKOUT_GIT_TIMEOUT: Override per-command timeout
        - GITOPS_CHECKOUT_LOG_LEVEL: Override log level

        Args:
            config: Base configuration to apply overrides to

        Returns:
            Updated configuration with environment overrides
        """
        if repo_env := os.environ.get("GITOPS_CHECKOUT_REPO"):
            config.repo = repo_env

        if branch_env := os.environ.get("GITOPS_CHECKOUT_BRANCH"):
            config.branch = branch_env

        if path_env := os.environ.get("GITOPS_CHECKOUT_PATH"):
            config.path = canonical_path(path_env)

        if binary_env := os.environ.get("GITOPS_CHECKOUT_GIT_BINARY"):
            config.git_binary = binary_env

        if timeout_env := os.environ.get("GITOPS_CHECKOUT_GIT_TIMEOUT"):
            try:
                config.git_timeout = int(timeout_env)
            except ValueError:
                logger.warning(
                    f"Invalid GITOPS_CHECKOUT_GIT_TIMEOUT environment variable value '{timeout_env}'. "
                    f"Using default {config.git_timeout} seconds"
                )

        if log_level_env := os.environ.get("GITOPS_CHECKOUT_LOG_LEVEL"):
            config.log_level = log_level_env.upper()

        return config

    def validate_config(self, config: ProviderConfig) -> None:
        """
        Validate configuration settings.

        Args:
            config: Configuration to validate

        Raises:
            ValueError: If any configuration value is invalid
        """
        for name in ("repo", "branch", "path"):
            if not getattr(config, name):
                raise ValueError(f"Provider configuration requires a non-empty '{name}'")

        if config.git_timeout <= 0:
            raise ValueError(
                f"git_timeout must be a positive number of seconds. Got: {config.git_timeout}"
            )

        if config.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level '{config.log_level}'. "
                f"Must be one of: {', '.join(VALID_LOG_LEVELS)}"
            )

        # Re-run option validation in case fields were mutated after construction
        CheckoutOptions(**asdict(config.defaults))

    def load(self) -> ProviderConfig:
        """Load, override from environment and validate in one step."""
        config = self.apply_env_overrides(self.load_config())
        self.validate_config(config)
        return config
