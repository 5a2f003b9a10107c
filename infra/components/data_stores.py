"""
Data stores.

  - DynamoDB: logistics preferences (customerId / preferenceType)
  - DynamoDB: clickstream events (sessionId / eventTimestamp, TTL on expiresAt)
  - RDS PostgreSQL: inventory, generated credentials, private placement

Key shapes never change with the profile; only billing, retention and
removal settings do.
"""

from aws_cdk import Duration
from aws_cdk import aws_dynamodb as dynamodb
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_rds as rds
from constructs import Construct

from d2c_api.config import INVENTORY_DATABASE
from infra.config import PlatformConfig
from infra.components.networking import Networking

LOGISTICS_KEYS = ("customerId", "preferenceType")
CLICKSTREAM_KEYS = ("sessionId", "eventTimestamp")
CLICKSTREAM_TTL_ATTRIBUTE = "expiresAt"

INVENTORY_DB_USER = "inventory_admin"
POSTGRES_VERSION = rds.PostgresEngineVersion.VER_16


class DataStores(Construct):

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        config: PlatformConfig,
        networking: Networking,
    ) -> None:
        super().__init__(scope, construct_id)
        self._config = config

        self.logistics_table = self._table("LogisticsPreferencesTable", LOGISTICS_KEYS)
        self.clickstream_table = self._table(
            "ClickstreamTable", CLICKSTREAM_KEYS, time_to_live_attribute=CLICKSTREAM_TTL_ATTRIBUTE,
        )
        self.inventory_db = self._inventory_database(networking)

    def _table(self, construct_id: str, keys, time_to_live_attribute=None) -> dynamodb.Table:
        partition, sort = keys
        data = self._config.data
        return dynamodb.Table(
            self, construct_id,
            partition_key=dynamodb.Attribute(name=partition, type=dynamodb.AttributeType.STRING),
            sort_key=dynamodb.Attribute(name=sort, type=dynamodb.AttributeType.STRING),
            billing_mode=getattr(dynamodb.BillingMode, data.billing_mode),
            encryption=dynamodb.TableEncryption.AWS_MANAGED,
            point_in_time_recovery=data.point_in_time_recovery,
            time_to_live_attribute=time_to_live_attribute,
            removal_policy=self._config.removal_policy,
        )

    def _inventory_database(self, networking: Networking) -> rds.DatabaseInstance:
        data = self._config.data
        engine = rds.DatabaseInstanceEngine.postgres(version=POSTGRES_VERSION)

        parameter_group = rds.ParameterGroup(
            self, "InventoryDbParameters",
            engine=engine,
            parameters={"rds.force_ssl": "1"},
        )

        return rds.DatabaseInstance(
            self, "InventoryDb",
            engine=engine,
            instance_type=ec2.InstanceType.of(ec2.InstanceClass.T3, ec2.InstanceSize.MEDIUM),
            vpc=networking.vpc,
            vpc_subnets=networking.private_subnets,
            security_groups=[networking.database_security_group],
            credentials=rds.Credentials.from_generated_secret(INVENTORY_DB_USER),
            database_name=INVENTORY_DATABASE,
            multi_az=data.multi_az,
            allocated_storage=100,
            max_allocated_storage=200,
            storage_encrypted=True,
            iam_authentication=True,
            publicly_accessible=False,
            parameter_group=parameter_group,
            backup_retention=Duration.days(data.backup_retention_days),
            deletion_protection=data.deletion_protection,
            removal_policy=self._config.removal_policy,
        )
