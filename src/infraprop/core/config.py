# src/infraprop/core/config.py
"""
Configuration schema and loading for the harness.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.

Example YAML:
    terraform:
      binary: terraform
      timeout_seconds: 300
      plugin_cache_dir: ~/.terraform.d/plugin-cache
    provider:
      region: us-east-1
    modules:
      root: terraform/modules
    trials:
      count: 100
      workers: 4
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from infraprop.contracts.enums import ModuleKind

# Long-term (AKIA) and temporary (ASIA) AWS access key ids
_REAL_ACCESS_KEY = re.compile(r"^(AKIA|ASIA)[A-Z0-9]{16}$")

# Variables that could let the AWS provider find real credentials
CREDENTIAL_VARIABLES: frozenset[str] = frozenset(
    {
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "AWS_SESSION_TOKEN",
        "AWS_SECURITY_TOKEN",
        "AWS_PROFILE",
        "AWS_DEFAULT_PROFILE",
        "AWS_SHARED_CREDENTIALS_FILE",
        "AWS_CONFIG_FILE",
        "AWS_ROLE_ARN",
        "AWS_WEB_IDENTITY_TOKEN_FILE",
        "AWS_CONTAINER_CREDENTIALS_FULL_URI",
        "AWS_CONTAINER_CREDENTIALS_RELATIVE_URI",
    }
)


class TerraformSettings(BaseModel):
    """How the Terraform CLI is invoked."""

    model_config = {"frozen": True}

    binary: str = Field(default="terraform", min_length=1, description="Terraform executable name or path")
    timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Upper bound for each init/plan/show invocation",
    )
    plugin_cache_dir: Path | None = Field(
        default=None,
        description="Shared provider cache (TF_PLUGIN_CACHE_DIR) so trials don't re-download providers",
    )
    env: dict[str, str] = Field(
        default_factory=dict,
        description="Extra environment variables for every terraform invocation",
    )

    @field_validator("plugin_cache_dir")
    @classmethod
    def expand_cache_dir(cls, v: Path | None) -> Path | None:
        return v.expanduser() if v is not None else None

    @field_validator("env")
    @classmethod
    def reject_credential_variables(cls, v: dict[str, str]) -> dict[str, str]:
        blocked = sorted((CREDENTIAL_VARIABLES | {"AWS_EC2_METADATA_DISABLED"}).intersection(v))
        if blocked:
            raise ValueError(f"env must not override AWS credential lookup: {', '.join(blocked)}")
        return v


class ProviderSettings(BaseModel):
    """AWS provider block rendered into every trial.

    The provider always runs in offline/mock mode: fake credentials and all
    account/metadata lookups skipped. Real-looking access keys are rejected
    so a trial can never authenticate against a real account.
    """

    model_config = {"frozen": True}

    region: str = Field(default="us-east-1", pattern=r"^[a-z]{2}(-[a-z]+)+-\d$")
    access_key: str = Field(default="mock_access_key", min_length=1)
    secret_key: str = Field(default="mock_secret_key", min_length=1)
    version_constraint: str = Field(default=">= 5.0.0", min_length=1)

    @field_validator("access_key")
    @classmethod
    def reject_real_access_key(cls, v: str) -> str:
        if _REAL_ACCESS_KEY.match(v):
            raise ValueError("access_key looks like a real AWS access key id; the harness only plans with mock credentials")
        return v


class ModuleSettings(BaseModel):
    """Where the Terraform modules under test live."""

    model_config = {"frozen": True}

    root: Path = Field(default=Path("terraform/modules"), description="Directory containing one sub-directory per module")

    def path_for(self, module: ModuleKind) -> Path:
        """Absolute directory of a module (module source in the rendered config)."""
        return (self.root.expanduser() / module.value).resolve()


class TrialSettings(BaseModel):
    """Defaults for property runs."""

    model_config = {"frozen": True}

    count: int = Field(default=100, ge=1, description="Trials per property")
    seed: int | None = Field(default=None, ge=0, description="Master seed; random when unset")
    workers: int = Field(default=1, ge=1, description="Parallel trials per property")


class HarnessSettings(BaseModel):
    """Top-level settings for the harness."""

    model_config = {"frozen": True}

    terraform: TerraformSettings = Field(default_factory=TerraformSettings)
    provider: ProviderSettings = Field(default_factory=ProviderSettings)
    modules: ModuleSettings = Field(default_factory=ModuleSettings)
    trials: TrialSettings = Field(default_factory=TrialSettings)


def load_settings(config_path: Path) -> HarnessSettings:
    """Load settings from a YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (INFRAPROP_*) - highest priority
    2. Config file
    3. Defaults from the Pydantic schema - lowest priority

    Environment variable format: INFRAPROP_TERRAFORM__TIMEOUT_SECONDS for nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated HarnessSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="INFRAPROP",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )
    return HarnessSettings(**_normalize(dynaconf_settings.as_dict()))


def load_default_settings() -> HarnessSettings:
    """Settings from INFRAPROP_* environment variables only (no file)."""
    from dynaconf import Dynaconf

    dynaconf_settings = Dynaconf(envvar_prefix="INFRAPROP", environments=False, load_dotenv=False)
    return HarnessSettings(**_normalize(dynaconf_settings.as_dict()))


def _normalize(raw: dict[str, Any]) -> dict[str, Any]:
    """Lowercase section and field keys and drop Dynaconf's internal settings.

    Environment overrides arrive upper-cased (INFRAPROP_TERRAFORM__BINARY ->
    TERRAFORM.BINARY). Keys nested deeper, such as terraform.env variable
    names, keep their case.
    """
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES", "SETTINGS_FILE", "ENVVAR_PREFIX"}
    return {
        k.lower(): {ik.lower(): iv for ik, iv in v.items()} if isinstance(v, dict) else v
        for k, v in raw.items()
        if k not in internal_keys
    }


def resolve_settings(settings: HarnessSettings) -> dict[str, Any]:
    """Settings as plain data for display, with the secret key masked."""
    data = settings.model_dump(mode="json")
    data["provider"]["secret_key"] = "***"
    return data
