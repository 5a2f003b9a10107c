"""
AWS CDK stack: continuous delivery for the platform (CDK Pipelines).

Flow:
  source (CodeStar connection) -> synth (install, build, test, cdk synth)
  -> self-mutate -> deploy PlatformStage -> publish the storefront

The publish step reads the bucket and distribution from the deployed
stack's outputs.
"""

from typing import Dict, List

from aws_cdk import Stack
from aws_cdk import aws_codebuild as codebuild
from aws_cdk import pipelines
from constructs import Construct

from infra.config import PipelineConfig, PlatformConfig
from infra.stacks.platform_stage import PlatformStage

# post-deploy environment variable -> PlatformStack output attribute
FRONTEND_ENV_OUTPUTS: Dict[str, str] = {
    "FRONTEND_BUCKET": "frontend_bucket_name_output",
    "FRONTEND_DISTRIBUTION_ID": "frontend_distribution_id_output",
}

INSTALL_COMMANDS = [
    "npm install -g aws-cdk",
    "python -m pip install --upgrade pip",
    "if [ -f requirements.lock ]; then pip install -r requirements.lock && pip install --no-deps -e .; "
    "else pip install -e '.[test]'; fi",
]

SITE_BUILD_COMMAND = "python scripts/build_site.py"


def synth_commands(connection_arn: str) -> List[str]:
    return INSTALL_COMMANDS + [
        "python -m compileall -q d2c_api infra scripts",
        SITE_BUILD_COMMAND,
        "python -m pytest",
        f"cdk synth -c connectionArn={connection_arn}",
    ]


PUBLISH_COMMANDS = [
    SITE_BUILD_COMMAND,
    "aws s3 sync web/dist s3://$FRONTEND_BUCKET --delete",
    'aws cloudfront create-invalidation --distribution-id $FRONTEND_DISTRIBUTION_ID --paths "/*"',
]


class PipelineStack(Stack):

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        pipeline_config: PipelineConfig,
        platform_config: PlatformConfig,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        source = pipelines.CodePipelineSource.connection(
            pipeline_config.repo_string,
            pipeline_config.branch,
            connection_arn=pipeline_config.connection_arn,
        )

        self.pipeline = pipelines.CodePipeline(
            self, "Pipeline",
            pipeline_name=pipeline_config.pipeline_name,
            synth=pipelines.ShellStep(
                "Synth",
                input=source,
                commands=synth_commands(pipeline_config.connection_arn),
            ),
            code_build_defaults=pipelines.CodeBuildOptions(
                build_environment=codebuild.BuildEnvironment(
                    build_image=codebuild.LinuxBuildImage.STANDARD_7_0,
                ),
            ),
        )

        # ---------------------------------------------------------------
        # Production
        # ---------------------------------------------------------------
        self.production = PlatformStage(
            self, "Production",
            config=platform_config,
            env=kwargs.get("env"),
        )
        deployment = self.pipeline.add_stage(self.production)

        platform_stack = self.production.platform_stack
        deployment.add_post(
            pipelines.ShellStep(
                "DeployFrontend",
                input=source,
                commands=PUBLISH_COMMANDS,
                env_from_cfn_outputs={
                    env_name: getattr(platform_stack, attribute)
                    for env_name, attribute in FRONTEND_ENV_OUTPUTS.items()
                },
            )
        )
