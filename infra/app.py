#!/usr/bin/env python3
"""
AWS CDK entry point.

Stacks:
  - D2cPlatformStack          the platform (profile from context, default disposable)
  - D2cPlatformPipelineStack  CDK Pipelines delivery, only when a CodeStar
                              connection ARN is configured; its Production
                              stage uses pipeline.stage_profile (default durable)

Usage:
    cdk synth -c profile=durable
    cdk deploy D2cPlatformPipelineStack -c connectionArn=arn:aws:codestar-connections:...
"""

import logging
import os

import aws_cdk as cdk

from infra.config import load_config, load_pipeline_config, load_stage_config
from infra.stacks.pipeline_stack import PipelineStack
from infra.stacks.platform_stack import PlatformStack

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(message)s",
)
logger = logging.getLogger("d2c_platform")


def build(app: cdk.App) -> cdk.App:
    config = load_config(app.node)
    env = cdk.Environment(
        account=app.node.try_get_context("account") or os.getenv("CDK_DEFAULT_ACCOUNT"),
        region=app.node.try_get_context("region") or os.getenv("CDK_DEFAULT_REGION") or "ap-northeast-1",
    )
    logger.info("Profile: %s  region: %s", config.profile.value, env.region)

    PlatformStack(app, "D2cPlatformStack", config=config, env=env)

    pipeline_config = load_pipeline_config(app.node)
    if pipeline_config is None:
        logger.info("No CodeStar connection configured; skipping the pipeline stack")
    else:
        stage_config = load_stage_config(app.node, pipeline_config)
        logger.info("Pipeline stage profile: %s", stage_config.profile.value)
        PipelineStack(
            app, "D2cPlatformPipelineStack",
            pipeline_config=pipeline_config,
            platform_config=stage_config,
            env=env,
        )
    return app


if __name__ == "__main__":
    build(cdk.App()).synth()
