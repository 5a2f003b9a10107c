"""
Compute and HTTP front door.

Resources:
  - Products function, bound to every data dependency through environment
    variables (see d2c_api.config for the names)
  - Health function, no data bindings
  - REST API: /products (GET, POST) behind a Cognito authorizer,
    /health (GET) open, CORS preflight for GET/POST/OPTIONS
  - Optional WAF association on the deployed stage

Grants: read-write on both tables, RDS IAM connect + secret read, and
es:ESHttp* on the search domain on both the role and the domain side.
"""

from pathlib import Path
from typing import List, Optional

from aws_cdk import Duration
from aws_cdk import aws_apigateway as apigateway
from aws_cdk import aws_lambda as lambda_
from aws_cdk import aws_logs as logs
from aws_cdk import aws_wafv2 as wafv2
from constructs import Construct

from d2c_api import config as contract
from infra.config import PlatformConfig
from infra.components.data_stores import DataStores
from infra.components.identity import Identity
from infra.components.networking import Networking
from infra.components.search import Search
from infra.graph import BindingOrderCheck, EnvironmentBinding, PermissionGrant, environment_of

PROJECT_ROOT = Path(__file__).resolve().parents[2]

# ship only the handler package
HANDLER_ASSET_EXCLUDE = [
    "*", ".*",
    "!d2c_api", "!d2c_api/**",
    "d2c_api/local.py", "d2c_api/models.py", "__pycache__", "*.pyc",
]

RUNTIME = lambda_.Runtime.PYTHON_3_12
SEARCH_ACTIONS = ("es:ESHttp*",)
CORS_METHODS = ["GET", "POST", "OPTIONS"]


class Api(Construct):

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        config: PlatformConfig,
        networking: Networking,
        identity: Identity,
        data_stores: DataStores,
        search: Search,
        web_acl_arn: Optional[str] = None,
    ) -> None:
        super().__init__(scope, construct_id)
        self._config = config
        self._networking = networking
        self._code = lambda_.Code.from_asset(str(PROJECT_ROOT), exclude=HANDLER_ASSET_EXCLUDE)

        self.bindings = self._bindings(data_stores, search)
        self.products_handler = self._function(
            "ProductsHandler",
            handler="d2c_api.handlers.products.handler",
            memory_size=config.api.products_memory_mb,
            timeout=Duration.seconds(15),
            environment=environment_of(self.bindings),
        )
        self.products_handler.node.add_validation(BindingOrderCheck(self.products_handler, self.bindings))

        self.health_handler = self._function(
            "HealthHandler",
            handler="d2c_api.handlers.health.handler",
            memory_size=128,
            timeout=Duration.seconds(10),
        )

        self.search_grant = self._grant_permissions(data_stores, search)
        self.rest_api = self._rest_api(identity)

        if web_acl_arn:
            wafv2.CfnWebACLAssociation(
                self, "ApiWebAclAssociation",
                resource_arn=self.rest_api.deployment_stage.stage_arn,
                web_acl_arn=web_acl_arn,
            )

    # ---------------------------------------------------------------
    # Functions
    # ---------------------------------------------------------------
    def _bindings(self, data_stores: DataStores, search: Search) -> List[EnvironmentBinding]:
        db = data_stores.inventory_db
        bindings = [
            EnvironmentBinding(contract.LOGISTICS_TABLE, data_stores.logistics_table,
                               data_stores.logistics_table.table_name),
            EnvironmentBinding(contract.CLICKSTREAM_TABLE, data_stores.clickstream_table,
                               data_stores.clickstream_table.table_name),
            EnvironmentBinding(contract.INVENTORY_DB_HOST, db, db.db_instance_endpoint_address),
            EnvironmentBinding(contract.INVENTORY_DB_PORT, db, db.db_instance_endpoint_port),
            EnvironmentBinding(contract.INVENTORY_DB_NAME, db, contract.INVENTORY_DATABASE),
            EnvironmentBinding(contract.OPENSEARCH_ENDPOINT, search.domain, search.domain.domain_endpoint),
        ]
        if db.secret is not None:
            bindings.insert(2, EnvironmentBinding(contract.INVENTORY_DB_SECRET_ARN, db.secret, db.secret.secret_arn))
        return bindings

    def _function(self, construct_id: str, *, handler: str, memory_size: int,
                  timeout: Duration, environment=None) -> lambda_.Function:
        log_group = logs.LogGroup(
            self, f"{construct_id}Logs",
            retention=self._config.log_retention,
            removal_policy=self._config.removal_policy,
        )
        return lambda_.Function(
            self, construct_id,
            runtime=RUNTIME,
            code=self._code,
            handler=handler,
            vpc=self._networking.vpc,
            vpc_subnets=self._networking.private_subnets,
            security_groups=[self._networking.compute_security_group],
            memory_size=memory_size,
            timeout=timeout,
            log_group=log_group,
            tracing=lambda_.Tracing.ACTIVE if self._config.api.tracing else lambda_.Tracing.DISABLED,
            environment={**(environment or {}), "LOG_LEVEL": "INFO"},
        )

    def _grant_permissions(self, data_stores: DataStores, search: Search) -> PermissionGrant:
        fn = self.products_handler
        data_stores.logistics_table.grant_read_write_data(fn)
        data_stores.clickstream_table.grant_read_write_data(fn)

        db = data_stores.inventory_db
        db.grant_connect(fn)
        if db.secret is not None:
            db.secret.grant_read(fn)

        grant = PermissionGrant(
            grantee=fn,
            actions=SEARCH_ACTIONS,
            resource_arns=(f"{search.domain.domain_arn}/*",),
            add_resource_policy=search.domain.add_access_policies,
        )
        grant.apply()
        return grant

    # ---------------------------------------------------------------
    # REST API
    # ---------------------------------------------------------------
    def _rest_api(self, identity: Identity) -> apigateway.RestApi:
        settings = self._config.api
        api = apigateway.RestApi(
            self, "PlatformApi",
            rest_api_name="D2C Platform API",
            cloud_watch_role=True,
            default_cors_preflight_options=apigateway.CorsOptions(
                allow_origins=apigateway.Cors.ALL_ORIGINS,
                allow_methods=CORS_METHODS,
            ),
            deploy_options=apigateway.StageOptions(
                metrics_enabled=True,
                logging_level=apigateway.MethodLoggingLevel.INFO,
                data_trace_enabled=False,
                tracing_enabled=settings.tracing,
                throttling_burst_limit=settings.throttling_burst_limit,
                throttling_rate_limit=settings.throttling_rate_limit,
            ),
        )

        authorizer = apigateway.CognitoUserPoolsAuthorizer(
            self, "ApiAuthorizer",
            cognito_user_pools=[identity.user_pool],
        )

        products_integration = apigateway.LambdaIntegration(self.products_handler)
        products = api.root.add_resource("products")
        for method in ("GET", "POST"):
            products.add_method(
                method, products_integration,
                authorization_type=apigateway.AuthorizationType.COGNITO,
                authorizer=authorizer,
            )

        health = api.root.add_resource("health")
        health.add_method("GET", apigateway.LambdaIntegration(self.health_handler))

        return api
