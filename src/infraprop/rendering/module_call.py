# src/infraprop/rendering/module_call.py
"""Renders a generated config as a root Terraform configuration.

The output instantiates exactly one module invocation with the config's
inputs, under an AWS provider locked into offline/mock mode.
"""

from __future__ import annotations

from pathlib import Path

from infraprop.contracts.configs import GeneratedConfig
from infraprop.core.config import HarnessSettings, ProviderSettings
from infraprop.rendering.hcl import hcl_literal, identifier, render_arguments


def _terraform_block(provider: ProviderSettings) -> str:
    return (
        "terraform {\n"
        "  required_providers {\n"
        "    aws = {\n"
        '      source  = "hashicorp/aws"\n'
        f"      version = {hcl_literal(provider.version_constraint)}\n"
        "    }\n"
        "  }\n"
        "}\n"
    )


def _provider_block(provider: ProviderSettings) -> str:
    # Every skip_* flag is required: without them the provider calls STS/IMDS during plan
    arguments = {
        "region": provider.region,
        "access_key": provider.access_key,
        "secret_key": provider.secret_key,
        "skip_credentials_validation": True,
        "skip_metadata_api_check": True,
        "skip_requesting_account_id": True,
        "skip_region_validation": True,
    }
    return 'provider "aws" {\n' + render_arguments(arguments) + "\n}\n"


def _module_block(config: GeneratedConfig, module_source: str) -> str:
    label = identifier(config.module_name)
    body = render_arguments({"source": module_source})
    variables = render_arguments(config.to_variables())
    return f'module "{label}" {{\n{body}\n\n{variables}\n}}\n'


def render(config: GeneratedConfig, *, module_source: str | Path, provider: ProviderSettings | None = None) -> str:
    """Render a config as Terraform source text (contents of main.tf).

    Pure: performs no I/O. The caller writes the text to a working directory.

    Args:
        config: Generated module inputs
        module_source: Module source (a local directory path or registry address)
        provider: Provider settings; mock defaults when omitted

    Raises:
        RenderError: If a config value has no HCL representation
    """
    provider = provider or ProviderSettings()
    return "\n".join(
        [
            _terraform_block(provider),
            _provider_block(provider),
            _module_block(config, str(module_source)),
        ]
    )


class ModuleRenderer:
    """Binds module locations and provider settings to render()."""

    def __init__(self, settings: HarnessSettings) -> None:
        self._settings = settings

    def module_source(self, config: GeneratedConfig) -> Path:
        return self._settings.modules.path_for(config.module)

    def render(self, config: GeneratedConfig) -> str:
        return render(config, module_source=self.module_source(config), provider=self._settings.provider)
