"""Product search: OpenSearch domain inside the private subnets."""

from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_opensearchservice as opensearch
from constructs import Construct

from infra.config import PlatformConfig
from infra.components.networking import Networking

ZONE_AWARE_AZS = 2


class Search(Construct):

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        config: PlatformConfig,
        networking: Networking,
    ) -> None:
        super().__init__(scope, construct_id)
        settings = config.search

        # the domain takes exactly one subnet per availability zone it spans
        private = networking.vpc.select_subnets(subnet_type=networking.private_subnet_type).subnets
        if settings.zone_awareness:
            placement = [ec2.SubnetSelection(subnets=private[:ZONE_AWARE_AZS])]
            zone_awareness = opensearch.ZoneAwarenessConfig(enabled=True, availability_zone_count=ZONE_AWARE_AZS)
        else:
            placement = [ec2.SubnetSelection(subnets=private[:1])]
            zone_awareness = opensearch.ZoneAwarenessConfig(enabled=False)

        logging = None
        if settings.logging:
            logging = opensearch.LoggingOptions(
                app_log_enabled=True,
                slow_index_log_enabled=True,
                slow_search_log_enabled=True,
            )

        self.domain = opensearch.Domain(
            self, "ProductSearchDomain",
            version=opensearch.EngineVersion.OPENSEARCH_2_11,
            vpc=networking.vpc,
            vpc_subnets=placement,
            security_groups=[networking.search_security_group],
            enforce_https=True,
            node_to_node_encryption=True,
            encryption_at_rest=opensearch.EncryptionAtRestOptions(enabled=True),
            zone_awareness=zone_awareness,
            capacity=opensearch.CapacityConfig(
                data_nodes=settings.data_nodes,
                data_node_instance_type=settings.instance_type,
                multi_az_with_standby_enabled=False,
            ),
            ebs=opensearch.EbsOptions(enabled=True, volume_size=settings.volume_size),
            logging=logging,
            removal_policy=config.removal_policy,
        )
