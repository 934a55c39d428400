#!/usr/bin/env python3
import logging
from pathlib import Path

import aws_cdk as cdk

from admin_infra.deployment import declare_stacks

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")

# Initialize CDK application
# Documentation: https://docs.aws.amazon.com/cdk/api/v2/python/aws_cdk/App.html
app = cdk.App()

# Optional: `cdk synth -c environment=dev` narrows the run to one environment.
# Config or settings file errors abort here, before any template is written.
declare_stacks(app, base_dir=Path(__file__).resolve().parent)

app.synth()
