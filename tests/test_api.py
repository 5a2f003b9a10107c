"""Test the functions, their grants and the REST API."""

import json

from aws_cdk.assertions import Match, Template

from d2c_api import config as contract

PRODUCTS_HANDLER = "d2c_api.handlers.products.handler"
HEALTH_HANDLER = "d2c_api.handlers.health.handler"

BOUND_NAMES = {
    contract.LOGISTICS_TABLE,
    contract.CLICKSTREAM_TABLE,
    contract.INVENTORY_DB_SECRET_ARN,
    contract.INVENTORY_DB_HOST,
    contract.INVENTORY_DB_PORT,
    contract.INVENTORY_DB_NAME,
    contract.OPENSEARCH_ENDPOINT,
}


def function(template: Template, handler: str) -> dict:
    found = template.find_resources("AWS::Lambda::Function", {"Properties": {"Handler": handler}})
    assert len(found) == 1
    return next(iter(found.values()))["Properties"]


class TestFunctions:
    """Test the Lambda functions."""

    def test_products_environment(self, disposable_template: Template) -> None:
        """Test that every backend binding reaches the products function."""
        variables = function(disposable_template, PRODUCTS_HANDLER)["Environment"]["Variables"]

        assert set(variables) == BOUND_NAMES | {"LOG_LEVEL"}
        assert variables[contract.INVENTORY_DB_NAME] == contract.INVENTORY_DATABASE
        assert variables["LOG_LEVEL"] == "INFO"

    def test_health_has_no_bindings(self, disposable_template: Template) -> None:
        variables = function(disposable_template, HEALTH_HANDLER)["Environment"]["Variables"]
        assert variables == {"LOG_LEVEL": "INFO"}

    def test_runtime_and_sizing(self, disposable_template: Template, durable_template: Template) -> None:
        products = function(disposable_template, PRODUCTS_HANDLER)
        health = function(disposable_template, HEALTH_HANDLER)

        assert products["Runtime"] == "python3.12"
        assert products["MemorySize"] == 256
        assert products["Timeout"] == 15
        assert health["MemorySize"] == 128
        assert health["Timeout"] == 10
        assert function(durable_template, PRODUCTS_HANDLER)["MemorySize"] == 512

    def test_functions_in_vpc(self, disposable_template: Template) -> None:
        for handler in (PRODUCTS_HANDLER, HEALTH_HANDLER):
            vpc_config = function(disposable_template, handler)["VpcConfig"]
            assert len(vpc_config["SecurityGroupIds"]) == 1
            assert len(vpc_config["SubnetIds"]) == 2

    def test_tracing(self, disposable_template: Template, durable_template: Template) -> None:
        assert "TracingConfig" not in function(disposable_template, PRODUCTS_HANDLER)
        assert function(durable_template, PRODUCTS_HANDLER)["TracingConfig"] == {"Mode": "Active"}

    def test_log_groups(self, disposable_template: Template, durable_template: Template) -> None:
        for template, days in ((disposable_template, 7), (durable_template, 30)):
            groups = {
                logical_id: group
                for logical_id, group in template.find_resources("AWS::Logs::LogGroup").items()
                if "HandlerLogs" in logical_id
            }
            assert len(groups) == 2
            assert {g["Properties"]["RetentionInDays"] for g in groups.values()} == {days}


class TestGrants:
    """Test permissions of the products function."""

    def test_table_access(self, disposable_template: Template) -> None:
        disposable_template.has_resource_properties(
            "AWS::IAM::Policy",
            {
                "PolicyDocument": {
                    "Statement": Match.array_with([
                        Match.object_like({"Action": Match.array_with(["dynamodb:PutItem"]), "Effect": "Allow"}),
                    ]),
                },
            },
        )

    def test_database_access(self, disposable_template: Template) -> None:
        disposable_template.has_resource_properties(
            "AWS::IAM::Policy",
            {
                "PolicyDocument": {
                    "Statement": Match.array_with([
                        Match.object_like({"Action": "rds-db:connect", "Effect": "Allow"}),
                    ]),
                },
            },
        )
        disposable_template.has_resource_properties(
            "AWS::IAM::Policy",
            {
                "PolicyDocument": {
                    "Statement": Match.array_with([
                        Match.object_like({
                            "Action": Match.array_with(["secretsmanager:GetSecretValue"]),
                            "Effect": "Allow",
                        }),
                    ]),
                },
            },
        )

    def test_search_access_on_role(self, disposable_template: Template) -> None:
        disposable_template.has_resource_properties(
            "AWS::IAM::Policy",
            {
                "PolicyDocument": {
                    "Statement": Match.array_with([
                        Match.object_like({"Action": "es:ESHttp*", "Effect": "Allow"}),
                    ]),
                },
            },
        )

    def test_search_access_on_both_sides(self, disposable_template: Template) -> None:
        """Test that the search grant lands on the role and on the domain."""
        rendered = json.dumps(disposable_template.to_json())
        assert rendered.count("es:ESHttp*") >= 2
        assert disposable_template.find_resources("Custom::OpenSearchAccessPolicy")

    def test_search_grant_record(self, disposable_stack) -> None:
        grant = disposable_stack.api.search_grant
        assert grant.actions == ("es:ESHttp*",)
        assert grant.grantee is disposable_stack.api.products_handler


class TestRestApi:
    """Test the HTTP front door."""

    def test_authorizer(self, disposable_template: Template) -> None:
        disposable_template.resource_count_is("AWS::ApiGateway::Authorizer", 1)
        disposable_template.has_resource_properties(
            "AWS::ApiGateway::Authorizer",
            {"Type": "COGNITO_USER_POOLS", "IdentitySource": "method.request.header.Authorization"},
        )

    def test_products_require_cognito(self, disposable_template: Template) -> None:
        disposable_template.resource_properties_count_is(
            "AWS::ApiGateway::Method", {"AuthorizationType": "COGNITO_USER_POOLS"}, 2,
        )
        for method in ("GET", "POST"):
            disposable_template.has_resource_properties(
                "AWS::ApiGateway::Method",
                {"HttpMethod": method, "AuthorizationType": "COGNITO_USER_POOLS"},
            )

    def test_health_is_open(self, disposable_template: Template) -> None:
        disposable_template.resource_properties_count_is(
            "AWS::ApiGateway::Method", {"HttpMethod": "GET", "AuthorizationType": "NONE"}, 1,
        )

    def test_no_other_methods(self, disposable_template: Template) -> None:
        methods = disposable_template.find_resources("AWS::ApiGateway::Method")
        assert {m["Properties"]["HttpMethod"] for m in methods.values()} == {"GET", "POST", "OPTIONS"}

    def test_cors_preflight(self, disposable_template: Template) -> None:
        disposable_template.has_resource_properties(
            "AWS::ApiGateway::Method",
            {
                "HttpMethod": "OPTIONS",
                "Integration": Match.object_like({
                    "IntegrationResponses": Match.array_with([
                        Match.object_like({
                            "ResponseParameters": Match.object_like({
                                "method.response.header.Access-Control-Allow-Origin": "'*'",
                                "method.response.header.Access-Control-Allow-Methods": "'GET,POST,OPTIONS'",
                            }),
                        }),
                    ]),
                }),
            },
        )

    def test_resources(self, disposable_template: Template) -> None:
        resources = disposable_template.find_resources("AWS::ApiGateway::Resource")
        assert {r["Properties"]["PathPart"] for r in resources.values()} == {"products", "health"}

    def test_stage_throttling(self, disposable_template: Template, durable_template: Template) -> None:
        for template, burst, rate in ((disposable_template, 50, 25), (durable_template, 100, 50)):
            template.has_resource_properties(
                "AWS::ApiGateway::Stage",
                {
                    "StageName": "prod",
                    "MethodSettings": Match.array_with([
                        Match.object_like({
                            "ThrottlingBurstLimit": burst,
                            "ThrottlingRateLimit": rate,
                            "MetricsEnabled": True,
                            "LoggingLevel": "INFO",
                            "DataTraceEnabled": False,
                        }),
                    ]),
                },
            )

    def test_firewall_association(self, disposable_template: Template, durable_template: Template) -> None:
        disposable_template.resource_count_is("AWS::WAFv2::WebACLAssociation", 0)
        durable_template.resource_count_is("AWS::WAFv2::WebACLAssociation", 1)
        durable_template.has_resource_properties("AWS::WAFv2::WebACL", {"Scope": "REGIONAL"})
