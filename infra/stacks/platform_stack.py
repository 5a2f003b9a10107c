"""
AWS CDK stack: the whole D2C platform as one deployable unit.

Resources (in declaration order):
  - Networking (VPC, endpoints, security groups)
  - Data stores (DynamoDB x2, RDS PostgreSQL)
  - Search (OpenSearch)
  - Identity (Cognito user pool + app client)
  - Web firewalls (optional, API and edge)
  - API (Lambda functions + API Gateway)
  - Frontend (S3 + CloudFront)
  - Site-to-site VPN (optional)
"""

import logging
from typing import Optional

import aws_cdk as cdk
from aws_cdk import Stack, Token
from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from infra.components import (
    Api,
    DataStores,
    Frontend,
    Identity,
    Networking,
    Search,
    SiteToSiteVpn,
    WebFirewall,
)
from infra.config import PlatformConfig
from infra.errors import InvalidParameterError

logger = logging.getLogger(__name__)

POSTGRES_PORT = 5432
HTTPS_PORT = 443
SECRET_NOT_CREATED = "NotCreated"


class PlatformStack(Stack):

    def __init__(self, scope: Construct, construct_id: str, *, config: PlatformConfig, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)
        self.config = config

        if config.firewall.edge and (Token.is_unresolved(self.region) or self.region != "us-east-1"):
            raise InvalidParameterError(
                f"firewall.edge requires the stack to be deployed to us-east-1 (got {self.region})"
            )

        # ---------------------------------------------------------------
        # Networking
        # ---------------------------------------------------------------
        self.networking = Networking(self, "Networking", settings=config.network)
        self._connect_security_groups()

        # ---------------------------------------------------------------
        # Data, search, identity
        # ---------------------------------------------------------------
        self.data_stores = DataStores(self, "DataStores", config=config, networking=self.networking)
        self.search = Search(self, "Search", config=config, networking=self.networking)
        self.identity = Identity(self, "Identity", config=config)

        # ---------------------------------------------------------------
        # Web firewalls
        # ---------------------------------------------------------------
        api_firewall: Optional[WebFirewall] = None
        if config.firewall.api:
            api_firewall = WebFirewall(self, "ApiFirewall", scope_name="REGIONAL", metric_name="ApiWebAcl")
        edge_firewall: Optional[WebFirewall] = None
        if config.firewall.edge:
            edge_firewall = WebFirewall(self, "EdgeFirewall", scope_name="CLOUDFRONT", metric_name="CloudFrontWebAcl")

        # ---------------------------------------------------------------
        # API
        # ---------------------------------------------------------------
        self.api = Api(
            self, "Api",
            config=config,
            networking=self.networking,
            identity=self.identity,
            data_stores=self.data_stores,
            search=self.search,
            web_acl_arn=api_firewall.arn if api_firewall else None,
        )

        # ---------------------------------------------------------------
        # Frontend
        # ---------------------------------------------------------------
        self.frontend = Frontend(
            self, "Frontend",
            config=config,
            web_acl_arn=edge_firewall.arn if edge_firewall else None,
        )

        # ---------------------------------------------------------------
        # Site-to-site VPN
        # ---------------------------------------------------------------
        self.vpn: Optional[SiteToSiteVpn] = None
        if config.vpn.enabled:
            self.vpn = SiteToSiteVpn(self, "Vpn", settings=config.vpn, networking=self.networking)

        self._create_outputs()
        logger.info(
            "Composed %s  profile=%s  vpn=%s  api_firewall=%s  edge_firewall=%s",
            construct_id, config.profile.value, config.vpn.enabled, config.firewall.api, config.firewall.edge,
        )

    def _connect_security_groups(self) -> None:
        n = self.networking
        n.connect(
            n.compute_security_group, n.database_security_group,
            ec2.Port.tcp(POSTGRES_PORT), "Lambda access to inventory database",
        )
        n.connect(
            n.compute_security_group, n.search_security_group,
            ec2.Port.tcp(HTTPS_PORT), "Lambda access to OpenSearch",
        )

    # ---------------------------------------------------------------
    # Outputs
    # ---------------------------------------------------------------
    def _create_outputs(self) -> None:
        db_secret = self.data_stores.inventory_db.secret

        cdk.CfnOutput(self, "FrontendUrl", value=self.frontend.url)
        self.frontend_bucket_name_output = cdk.CfnOutput(
            self, "FrontendBucketName", value=self.frontend.bucket.bucket_name,
        )
        self.frontend_distribution_id_output = cdk.CfnOutput(
            self, "FrontendDistributionId", value=self.frontend.distribution.distribution_id,
        )
        cdk.CfnOutput(self, "ApiUrl", value=self.api.rest_api.url)
        cdk.CfnOutput(self, "UserPoolId", value=self.identity.user_pool.user_pool_id)
        cdk.CfnOutput(self, "UserPoolClientId", value=self.identity.user_pool_client.user_pool_client_id)
        cdk.CfnOutput(
            self, "InventoryDbSecretArn",
            value=db_secret.secret_arn if db_secret is not None else SECRET_NOT_CREATED,
        )
