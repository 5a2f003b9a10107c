"""
Private network for the platform.

Resources:
  - VPC with a public tier and a private tier (egress through NAT when NAT
    gateways are configured, isolated otherwise)
  - Gateway endpoints for DynamoDB and S3, interface endpoint for Secrets Manager
  - Security groups for compute, database and search

No rules between the security groups are created here; the composition
wires them with ``connect``.
"""

from typing import Dict

from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from infra.config import NetworkSettings
from infra.errors import CompositionError


class Networking(Construct):

    def __init__(self, scope: Construct, construct_id: str, *, settings: NetworkSettings) -> None:
        super().__init__(scope, construct_id)

        self.private_subnet_type = (
            ec2.SubnetType.PRIVATE_WITH_EGRESS if settings.nat_gateways > 0
            else ec2.SubnetType.PRIVATE_ISOLATED
        )

        self.vpc = ec2.Vpc(
            self, "Vpc",
            ip_addresses=ec2.IpAddresses.cidr(str(settings.cidr)),
            max_azs=settings.max_azs,
            nat_gateways=settings.nat_gateways,
            subnet_configuration=[
                ec2.SubnetConfiguration(name="public", subnet_type=ec2.SubnetType.PUBLIC, cidr_mask=24),
                ec2.SubnetConfiguration(name="private", subnet_type=self.private_subnet_type, cidr_mask=24),
            ],
        )

        # ---------------------------------------------------------------
        # Endpoints
        # ---------------------------------------------------------------
        self.vpc.add_gateway_endpoint(
            "DynamoDbEndpoint", service=ec2.GatewayVpcEndpointAwsService.DYNAMODB,
        )
        self.vpc.add_gateway_endpoint(
            "S3Endpoint", service=ec2.GatewayVpcEndpointAwsService.S3,
        )
        self.vpc.add_interface_endpoint(
            "SecretsManagerEndpoint",
            service=ec2.InterfaceVpcEndpointAwsService.SECRETS_MANAGER,
            subnets=self.private_subnets,
        )

        # ---------------------------------------------------------------
        # Security groups
        # ---------------------------------------------------------------
        self.compute_security_group = ec2.SecurityGroup(
            self, "ComputeSg",
            vpc=self.vpc,
            description="Lambda access to backend services",
            allow_all_outbound=True,
        )
        self.database_security_group = ec2.SecurityGroup(
            self, "DatabaseSg",
            vpc=self.vpc,
            description="Inventory database security group",
            allow_all_outbound=False,
        )
        self.search_security_group = ec2.SecurityGroup(
            self, "SearchSg",
            vpc=self.vpc,
            description="OpenSearch security group",
            allow_all_outbound=False,
        )

    @property
    def private_subnets(self) -> ec2.SubnetSelection:
        return ec2.SubnetSelection(subnet_type=self.private_subnet_type)

    @property
    def security_groups(self) -> Dict[str, ec2.SecurityGroup]:
        return {
            "compute": self.compute_security_group,
            "database": self.database_security_group,
            "search": self.search_security_group,
        }

    def owns(self, group: ec2.ISecurityGroup) -> bool:
        return any(group.node.path == g.node.path for g in self.security_groups.values())

    def connect(
        self,
        source: ec2.ISecurityGroup,
        destination: ec2.ISecurityGroup,
        port: ec2.Port,
        description: str,
    ) -> None:
        """Allow ``source`` to reach ``destination`` on ``port``."""
        for group in (source, destination):
            if not self.owns(group):
                raise CompositionError(
                    f"security group {group.node.path} does not belong to network {self.node.path}"
                )
        destination.add_ingress_rule(source, port, description)
