"""
Per-environment configuration for the admin web hosting stack.

Each environment (dev, prod) is described by one immutable StackConfig.
app.py deploys every config whose is_deploy flag is set.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from aws_cdk import aws_codebuild as codebuild

from admin_infra.constants import (
    DEFAULT_BUILD_IMAGE,
    DEFAULT_ERROR_FILE,
    DEFAULT_INDEX_FILE,
    DEFAULT_OUTPUT_DIRECTORY,
)

# S3 bucket naming rules: https://docs.aws.amazon.com/AmazonS3/latest/userguide/bucketnamingrules.html
BUCKET_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$")
NO_WHITESPACE_PATTERN = re.compile(r"^\S+$")

REQUIRED_TEXT_FIELDS = (
    "environment_type",
    "stack_name",
    "branch",
    "pipeline_name",
    "bucket_name",
    "index_file",
    "error_file",
    "github_repo_owner",
    "github_repo_name",
    "github_access_token",
    "build_image",
    "output_directory",
)

BOOL_FIELDS = ("is_deploy", "public_access")


class ConfigError(Exception):
    """Raised when the stack configuration cannot produce a deployment description."""


@dataclass(frozen=True)
class StackConfig:
    environment_type: str
    stack_name: str
    is_deploy: bool
    branch: str
    pipeline_name: str
    bucket_name: str
    pipeline_bucket: Optional[str]
    public_access: bool
    github_repo_owner: str
    github_repo_name: str
    # Name of the Secrets Manager secret holding the GitHub OAuth token
    github_access_token: str
    index_file: str = DEFAULT_INDEX_FILE
    error_file: str = DEFAULT_ERROR_FILE
    build_image: str = DEFAULT_BUILD_IMAGE
    settings_file: Optional[str] = None
    output_directory: str = DEFAULT_OUTPUT_DIRECTORY

    @property
    def description(self) -> str:
        return f"CRM Admin Infra Stack for {self.environment_type}"

    def validate(self) -> "StackConfig":
        """
        Check every field has the shape the stack needs.

        Returns the config itself so calls can be chained.

        Raises:
            ConfigError: on the first field that is missing or malformed
        """
        for field_name in REQUIRED_TEXT_FIELDS:
            value = getattr(self, field_name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"{field_name} is required and must be a non-empty string")

        for field_name in BOOL_FIELDS:
            if not isinstance(getattr(self, field_name), bool):
                raise ConfigError(f"{field_name} must be a boolean")

        for field_name in ("branch", "bucket_name", "pipeline_name", "github_repo_owner", "github_repo_name"):
            if not NO_WHITESPACE_PATTERN.match(getattr(self, field_name)):
                raise ConfigError(f"{field_name} must not contain whitespace")

        if self.pipeline_bucket is not None and (
            not isinstance(self.pipeline_bucket, str) or not BUCKET_NAME_PATTERN.match(self.pipeline_bucket)
        ):
            raise ConfigError(f"pipeline_bucket '{self.pipeline_bucket}' is not a valid S3 bucket name")

        if self.settings_file is not None and (
            not isinstance(self.settings_file, str) or not self.settings_file.strip()
        ):
            raise ConfigError("settings_file must be a path when set")

        if build_image_for(self.build_image) is None:
            raise ConfigError(f"build_image '{self.build_image}' is not a known LinuxBuildImage")

        return self


def build_image_for(name: str):
    """Resolve a LinuxBuildImage constant by name, e.g. 'STANDARD_7_0'."""
    if not name or not name.isupper():
        return None
    image = getattr(codebuild.LinuxBuildImage, name, None)
    if image is None or callable(image):
        return None
    return image


DEV_CONFIG = StackConfig(
    environment_type="dev",
    stack_name="AdminInfraStack-dev",
    is_deploy=True,
    branch="develop",
    pipeline_name="admin-web-dev-pipeline",
    bucket_name="admin-web-dev-bucket",
    # Dev shares a pre-provisioned artifact bucket
    pipeline_bucket="admin-web-pipeline-artifacts",
    public_access=True,
    github_repo_owner="crm-platform",
    github_repo_name="crm-admin-web",
    github_access_token="github-token",
    build_image=DEFAULT_BUILD_IMAGE,
    settings_file="build_settings.json",
)

PROD_CONFIG = StackConfig(
    environment_type="prod",
    stack_name="AdminInfraStack-prod",
    is_deploy=True,
    branch="main",
    pipeline_name="admin-web-prod-pipeline",
    bucket_name="admin-web-prod-bucket",
    pipeline_bucket=None,
    public_access=True,
    github_repo_owner="crm-platform",
    github_repo_name="crm-admin-web",
    github_access_token="github-token",
    build_image="STANDARD_5_0",
)

ENVIRONMENTS = [DEV_CONFIG, PROD_CONFIG]


def deployable_configs(configs: Optional[List[StackConfig]] = None, only: Optional[str] = None) -> List[StackConfig]:
    """
    Return the configs that should be turned into stacks.

    Args:
        configs: candidate configs, ENVIRONMENTS by default
        only: environment_type to narrow to (e.g. from `cdk synth -c environment=dev`)
    """
    if configs is None:
        configs = ENVIRONMENTS

    selected = [config for config in configs if config.is_deploy]
    if only is None:
        return selected

    known = {config.environment_type for config in configs}
    if only not in known:
        raise ConfigError(f"Unknown environment '{only}', expected one of {sorted(known)}")
    return [config for config in selected if config.environment_type == only]
