"""Plan Executor: runs the Terraform CLI in isolated working directories."""

from infraprop.execution.terraform import (
    TerraformPipeline,
    TerraformPlanExecutor,
    build_environment,
    terraform_version,
)

__all__ = [
    "TerraformPipeline",
    "TerraformPlanExecutor",
    "build_environment",
    "terraform_version",
]
