from aws_cdk import Stage
from constructs import Construct

from infra.config import PlatformConfig
from infra.stacks.platform_stack import PlatformStack


class PlatformStage(Stage):
    """The platform stack as a pipeline deployment target."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        config: PlatformConfig,
        stack_name: str = "D2cPlatformStack",
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.platform_stack = PlatformStack(self, stack_name, config=config, env=kwargs.get("env"))
