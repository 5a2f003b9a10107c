"""Test resource graph checks and two-sided permission grants."""

import aws_cdk as cdk
import pytest
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_iam as iam
from aws_cdk.assertions import Match, Template
from constructs import Construct

from infra.errors import PermissionGrantError, UnresolvedReferenceError
from infra.graph import (
    BindingOrderCheck,
    EnvironmentBinding,
    PermissionGrant,
    PrecedenceCheck,
    declaration_order,
    depends_on,
    environment_of,
)


class TestEnvironmentBindings:
    """Test binding environment variables to construct attributes."""

    def test_environment_of(self, stack: cdk.Stack) -> None:
        source = Construct(stack, "Source")
        env = environment_of([
            EnvironmentBinding("TABLE", source, "orders"),
            EnvironmentBinding("ENDPOINT", source, "search.local"),
        ])
        assert env == {"TABLE": "orders", "ENDPOINT": "search.local"}

    def test_duplicate_names_rejected(self, stack: cdk.Stack) -> None:
        source = Construct(stack, "Source")
        with pytest.raises(UnresolvedReferenceError, match="TABLE"):
            environment_of([
                EnvironmentBinding("TABLE", source, "a"),
                EnvironmentBinding("TABLE", source, "b"),
            ])

    def test_declaration_order(self, stack: cdk.Stack) -> None:
        first = Construct(stack, "First")
        second = Construct(stack, "Second")
        order = declaration_order(stack)
        assert order[first.node.path] < order[second.node.path]


class TestBindingOrderCheck:
    """Test that bindings only reference earlier constructs."""

    def test_earlier_source(self, stack: cdk.Stack) -> None:
        source = Construct(stack, "Source")
        consumer = Construct(stack, "Consumer")
        check = BindingOrderCheck(consumer, [EnvironmentBinding("X", source, "v")])
        assert check.validate() == []

    def test_forward_reference(self, stack: cdk.Stack) -> None:
        consumer = Construct(stack, "Consumer")
        later = Construct(stack, "Later")
        check = BindingOrderCheck(consumer, [EnvironmentBinding("X", later, "v")])

        errors = check.validate()
        assert len(errors) == 1
        assert "Scratch/Later" in errors[0]
        assert "declared after it" in errors[0]

    def test_missing_reference(self, stack: cdk.Stack) -> None:
        """Test a binding to a construct that lives in another stack."""
        elsewhere = Construct(cdk.Stack(cdk.App(), "Elsewhere"), "Table")
        consumer = Construct(stack, "Consumer")
        check = BindingOrderCheck(consumer, [EnvironmentBinding("X", elsewhere, "v")])

        errors = check.validate()
        assert len(errors) == 1
        assert "not declared in stack Scratch" in errors[0]

    def test_synth_fails_on_forward_reference(self) -> None:
        app = cdk.App()
        stack = cdk.Stack(app, "Forward")
        consumer = Construct(stack, "Consumer")
        later = Construct(stack, "Later")
        consumer.node.add_validation(BindingOrderCheck(consumer, [EnvironmentBinding("X", later, "v")]))

        with pytest.raises(Exception, match="declared after it"):
            app.synth()

    def test_platform_products_bindings(self, disposable_stack) -> None:
        api = disposable_stack.api
        assert BindingOrderCheck(api.products_handler, api.bindings).validate() == []


class TestPrecedenceCheck:
    """Test explicit dependency edges."""

    def _gateway_and_route(self, stack: cdk.Stack):
        gateway = ec2.CfnVPNGateway(stack, "Gateway", type="ipsec.1")
        route = ec2.CfnRoute(
            stack, "Route",
            route_table_id="rtb-12345678",
            destination_cidr_block="10.10.0.0/16",
            gateway_id=gateway.ref,
        )
        return gateway, route

    def test_missing_edge_reported(self, stack: cdk.Stack) -> None:
        gateway, route = self._gateway_and_route(stack)

        assert depends_on(route, gateway) is False
        assert PrecedenceCheck([route], gateway).validate() == [
            "Scratch/Route has no dependency on Scratch/Gateway"
        ]

    def test_edge_satisfies_check(self, stack: cdk.Stack) -> None:
        gateway, route = self._gateway_and_route(stack)
        route.add_dependency(gateway)

        assert depends_on(route, gateway) is True
        assert PrecedenceCheck([route], gateway).validate() == []

    def test_synth_fails_without_edge(self) -> None:
        app = cdk.App()
        stack = cdk.Stack(app, "Unordered")
        gateway, route = self._gateway_and_route(stack)
        stack.node.add_validation(PrecedenceCheck([route], gateway))

        with pytest.raises(Exception, match="has no dependency on"):
            app.synth()


class TestPermissionGrant:
    """Test grants written to both the principal and the resource."""

    def _role(self, stack: cdk.Stack) -> iam.Role:
        return iam.Role(stack, "Role", assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"))

    def test_applies_both_sides(self, stack: cdk.Stack) -> None:
        role = self._role(stack)
        resource_side = []
        grant = PermissionGrant(
            grantee=role,
            actions=("es:ESHttp*",),
            resource_arns=("arn:aws:es:us-east-1:123456789012:domain/products/*",),
            add_resource_policy=resource_side.append,
        )
        grant.apply()

        assert len(resource_side) == 1
        statement = stack.resolve(resource_side[0].to_statement_json())
        assert statement["Action"] == "es:ESHttp*"
        assert "Principal" in statement

        Template.from_stack(stack).has_resource_properties(
            "AWS::IAM::Policy",
            {
                "PolicyDocument": {
                    "Statement": Match.array_with([
                        Match.object_like({
                            "Action": "es:ESHttp*",
                            "Resource": "arn:aws:es:us-east-1:123456789012:domain/products/*",
                        }),
                    ]),
                },
            },
        )

    def test_requires_grantee(self) -> None:
        grant = PermissionGrant(grantee=None, actions=("es:ESHttp*",), resource_arns=("*",))
        with pytest.raises(PermissionGrantError, match="no grantee"):
            grant.statements()

    def test_requires_actions_and_resources(self, stack: cdk.Stack) -> None:
        role = self._role(stack)
        with pytest.raises(PermissionGrantError, match="at least one action"):
            PermissionGrant(grantee=role, actions=(), resource_arns=("*",)).statements()
        with pytest.raises(PermissionGrantError, match="at least one action"):
            PermissionGrant(grantee=role, actions=("es:ESHttp*",), resource_arns=()).statements()

    def test_requires_resource_policy(self, stack: cdk.Stack) -> None:
        grant = PermissionGrant(grantee=self._role(stack), actions=("es:ESHttp*",), resource_arns=("*",))
        with pytest.raises(PermissionGrantError, match="no resource policy"):
            grant.apply()

    def test_grantee_without_identity_policy(self) -> None:
        """Test that neither side is written when the principal side cannot be."""
        resource_side = []
        grant = PermissionGrant(
            grantee=iam.ServicePrincipal("es.amazonaws.com"),
            actions=("es:ESHttp*",),
            resource_arns=("*",),
            add_resource_policy=resource_side.append,
        )
        with pytest.raises(PermissionGrantError, match="cannot carry an identity policy"):
            grant.apply()
        assert resource_side == []
