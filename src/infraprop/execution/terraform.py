# src/infraprop/execution/terraform.py
"""Drives the Terraform CLI: init -> plan -> show -json -> parse.

Every call runs in its own freshly created temporary directory, which is
removed on every exit path (success, tool failure, timeout, exception) by
the TemporaryDirectory context manager. Concurrent trials therefore never
share a working directory, lock file or plan file.

Terraform always runs against a provider in mock mode: real AWS credential
variables are stripped from the environment and replaced by the mock
credentials from settings, so a trial can neither mutate real
infrastructure nor incur cost.

Tool output is decoded as UTF-8 with replacement characters, so stray bytes
end up in diagnostics or fail plan parsing instead of escaping as
UnicodeDecodeError.
"""

from __future__ import annotations

import json
import os
import subprocess
import tempfile
import time
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from infraprop.contracts.configs import GeneratedConfig
from infraprop.contracts.enums import ExecutionStage, ModuleKind
from infraprop.contracts.errors import ExecutionError
from infraprop.core.config import CREDENTIAL_VARIABLES, HarnessSettings
from infraprop.core.logging import get_logger
from infraprop.plan.document import PlanDocument, parse_plan
from infraprop.rendering.module_call import ModuleRenderer

logger = get_logger(__name__)

PLAN_FILE = "plan.tfplan"
SOURCE_FILE = "main.tf"

CommandRunner = Callable[..., "subprocess.CompletedProcess[str]"]


def build_environment(settings: HarnessSettings, base: Mapping[str, str] | None = None) -> dict[str, str]:
    """Environment for terraform subprocesses.

    Args:
        settings: Harness settings (mock credentials, plugin cache, extra env)
        base: Environment to start from (defaults to os.environ)
    """
    env = {k: v for k, v in (os.environ if base is None else base).items() if k not in CREDENTIAL_VARIABLES}
    env.update(
        {
            "AWS_ACCESS_KEY_ID": settings.provider.access_key,
            "AWS_SECRET_ACCESS_KEY": settings.provider.secret_key,
            "AWS_DEFAULT_REGION": settings.provider.region,
            "AWS_EC2_METADATA_DISABLED": "true",
            "TF_IN_AUTOMATION": "1",
            "TF_INPUT": "0",
            "CHECKPOINT_DISABLE": "1",
        }
    )
    if settings.terraform.plugin_cache_dir is not None:
        env["TF_PLUGIN_CACHE_DIR"] = str(settings.terraform.plugin_cache_dir)
    env.update(settings.terraform.env)
    return env


class TerraformPlanExecutor:
    """Runs Terraform end-to-end for one rendered configuration per call.

    Thread-safe: holds no per-call state, so one executor can serve all
    workers of a parallel property run.

    Example:
        executor = TerraformPlanExecutor(settings)
        doc = executor.execute_plan(source_text, ModuleKind.ECS_SERVICE)
    """

    def __init__(self, settings: HarnessSettings, *, runner: CommandRunner = subprocess.run) -> None:
        self._settings = settings
        self._runner = runner

    def execute_plan(self, source_text: str, module: ModuleKind) -> PlanDocument:
        """Plan rendered source text and return the parsed plan.

        Raises:
            ExecutionError: With the failing stage and the tool's diagnostics
                on init/plan/show failure or timeout
            PlanParseError: If `terraform show -json` output is unusable
        """
        env = build_environment(self._settings)
        with tempfile.TemporaryDirectory(prefix=f"infraprop-{module.value}-") as tmp:
            workdir = Path(tmp)
            (workdir / SOURCE_FILE).write_text(source_text, encoding="utf-8")
            log = logger.bind(module=module.value, workdir=str(workdir))

            self._run(ExecutionStage.INIT, ["init", "-input=false", "-no-color", "-backend=false"], workdir, env, log)
            self._run(
                ExecutionStage.PLAN,
                ["plan", "-input=false", "-no-color", "-lock=false", f"-out={PLAN_FILE}"],
                workdir,
                env,
                log,
            )
            shown = self._run(ExecutionStage.SHOW, ["show", "-json", "-no-color", PLAN_FILE], workdir, env, log)
            document = parse_plan(shown.stdout)
            log.debug("plan_parsed", resources=len(document))
            return document

    def _run(
        self,
        stage: ExecutionStage,
        args: list[str],
        workdir: Path,
        env: dict[str, str],
        log: Any,
    ) -> subprocess.CompletedProcess[str]:
        command = [self._settings.terraform.binary, *args]
        timeout = self._settings.terraform.timeout_seconds
        start = time.perf_counter()
        try:
            result = self._runner(
                command,
                cwd=str(workdir),
                env=env,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            log.warning("terraform_timeout", stage=stage.value, timeout_seconds=timeout)
            raise ExecutionError(
                stage,
                f"timed out after {timeout:g}s",
                diagnostics=_decode(e.stderr) or _decode(e.stdout),
                timed_out=True,
            ) from e
        except FileNotFoundError as e:
            raise ExecutionError(
                stage,
                f"terraform binary not found: {self._settings.terraform.binary}",
                diagnostics=str(e),
            ) from e

        elapsed = time.perf_counter() - start
        log.debug("terraform_step", stage=stage.value, returncode=result.returncode, duration_seconds=round(elapsed, 3))
        if result.returncode != 0:
            raise ExecutionError(
                stage,
                f"exit code {result.returncode}",
                diagnostics=(result.stderr or result.stdout or "").strip(),
                returncode=result.returncode,
            )
        return result


def _decode(output: str | bytes | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


class TerraformPipeline:
    """PlanRunner that renders a config and plans it with Terraform."""

    def __init__(self, settings: HarnessSettings, *, executor: TerraformPlanExecutor | None = None) -> None:
        self._renderer = ModuleRenderer(settings)
        self._executor = executor or TerraformPlanExecutor(settings)

    def render(self, config: GeneratedConfig) -> str:
        return self._renderer.render(config)

    def plan(self, config: GeneratedConfig) -> PlanDocument:
        return self._executor.execute_plan(self._renderer.render(config), config.module)


def terraform_version(settings: HarnessSettings, *, runner: CommandRunner = subprocess.run) -> str | None:
    """Version of the configured terraform binary, or None if it can't be run."""
    try:
        result = runner(
            [settings.terraform.binary, "version", "-json"],
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=30,
            check=False,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError:
        return None
    version = data.get("terraform_version") if isinstance(data, dict) else None
    return version if isinstance(version, str) else None
