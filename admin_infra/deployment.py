"""Declares one AdminInfraStack per deployable environment on a cdk.App."""

import logging
import os
from pathlib import Path
from typing import List, Optional, Union

import aws_cdk as cdk

from admin_infra.admin_infra_stack import AdminInfraStack
from admin_infra.config import StackConfig, deployable_configs
from admin_infra.constants import CONTEXT_ENVIRONMENT
from admin_infra.settings import settings_for

logger = logging.getLogger(__name__)


def declare_stacks(
    app: cdk.App,
    configs: Optional[List[StackConfig]] = None,
    base_dir: Union[str, Path, None] = None,
) -> List[AdminInfraStack]:
    """
    Add the stacks of every selected environment to `app`.

    The CDK context key `environment` narrows the run to one environment.
    Every config is validated and every settings file loaded before the first
    stack is declared, so a ConfigError leaves `app` without stacks.
    """
    only = app.node.try_get_context(CONTEXT_ENVIRONMENT)
    selected = deployable_configs(configs, only=only)

    prepared = [(config.validate(), settings_for(config, base_dir=base_dir)) for config in selected]

    stacks = []
    for config, settings in prepared:
        stack = AdminInfraStack(
            app,
            config.stack_name,
            config=config,
            settings=settings,
            description=config.description,
            env=cdk.Environment(
                # Account and region are retrieved from environment variables or AWS CLI config
                # Documentation: https://docs.aws.amazon.com/cdk/v2/guide/environments.html
                account=os.getenv("CDK_DEFAULT_ACCOUNT"),
                region=os.getenv("CDK_DEFAULT_REGION"),
            ),
        )
        cdk.Tags.of(stack).add("Environment", config.environment_type)
        logger.info("Declared stack %s for %s", config.stack_name, config.environment_type)
        stacks.append(stack)
    return stacks
