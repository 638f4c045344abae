# tests/conftest.py
"""Shared test fixtures and Hypothesis configuration.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/

Fixture Philosophy
==================

Unit tests never run Terraform. Plans come from tests/fixtures/plans.py,
which builds the `terraform show -json` document a correct module would
produce for a config; subprocess calls go through FakeTerraform. Only
tests/integration/ touches a real terraform binary, and it skips itself
when none is available.
"""

import os
import random
from pathlib import Path

import pytest
from hypothesis import Phase, Verbosity, settings

from infraprop.contracts import EcsServiceConfig, Environment, ModuleKind, NetworkingConfig, ServiceType
from infraprop.core.config import HarnessSettings, ModuleSettings, TerraformSettings
from infraprop.generation import draw

# =============================================================================
# Hypothesis Profiles
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Environment isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_infraprop_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's INFRAPROP_* variables out of unit tests."""
    for name in list(os.environ):
        if name.startswith("INFRAPROP_"):
            monkeypatch.delenv(name, raising=False)


# =============================================================================
# Configs
# =============================================================================


@pytest.fixture
def public_ecs_config() -> EcsServiceConfig:
    config = draw(ModuleKind.ECS_SERVICE, random.Random(7), service_type=ServiceType.PUBLIC)
    assert isinstance(config, EcsServiceConfig)
    return config


@pytest.fixture
def internal_ecs_config() -> EcsServiceConfig:
    config = draw(
        ModuleKind.ECS_SERVICE,
        random.Random(7),
        service_type=ServiceType.INTERNAL,
        enable_service_discovery=True,
    )
    assert isinstance(config, EcsServiceConfig)
    return config


@pytest.fixture
def networking_config() -> NetworkingConfig:
    return NetworkingConfig(
        environment=Environment.QA,
        project_name="payments",
        vpc_cidr="10.20.0.0/16",
        availability_zones=("eu-west-1a", "eu-west-1b", "eu-west-1c"),
        enable_nat_gateway=True,
        single_nat_gateway=False,
        enable_vpc_flow_logs=True,
        flow_logs_retention_days=14,
    )


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture
def modules_root(tmp_path: Path) -> Path:
    """A modules root with an (empty) directory per module kind."""
    root = tmp_path / "modules"
    for module in ModuleKind:
        (root / module.value).mkdir(parents=True)
    return root


@pytest.fixture
def harness_settings(modules_root: Path) -> HarnessSettings:
    return HarnessSettings(
        terraform=TerraformSettings(binary="terraform", timeout_seconds=42.0),
        modules=ModuleSettings(root=modules_root),
    )
