"""
Cross-construct wiring for the platform resource graph.

CDK resolves references and orders resource creation on its own. What it
cannot infer is checked here and attached to the construct tree as node
validations, so ``app.synth()`` refuses to emit a template when any of
them report a problem:

  - environment bindings must point at constructs declared earlier in the
    same stack
  - VPN routes must depend explicitly on the gateway attachment

Two-sided permission grants (principal policy + resource policy) are
applied through ``PermissionGrant`` so neither half is ever emitted alone.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import jsii
from aws_cdk import CfnResource, Stack
from aws_cdk import aws_iam as iam
from constructs import IConstruct, IValidation

from infra.errors import PermissionGrantError, UnresolvedReferenceError


# ---------------------------------------------------------------------------
# Environment bindings
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class EnvironmentBinding:
    """An environment variable whose value is an attribute of ``source``."""

    name: str
    source: IConstruct
    value: str


def environment_of(bindings: Sequence[EnvironmentBinding]) -> Dict[str, str]:
    names = [b.name for b in bindings]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise UnresolvedReferenceError(f"environment bound more than once: {', '.join(duplicates)}")
    return {b.name: b.value for b in bindings}


def declaration_order(stack: Stack) -> Dict[str, int]:
    """Construct path -> position in the stack's pre-order construct tree."""
    return {c.node.path: i for i, c in enumerate(stack.node.find_all())}


@jsii.implements(IValidation)
class BindingOrderCheck:
    """Every binding of ``consumer`` must come from an earlier construct."""

    def __init__(self, consumer: IConstruct, bindings: Sequence[EnvironmentBinding]) -> None:
        self._consumer = consumer
        self._bindings = tuple(bindings)

    def validate(self) -> List[str]:
        stack = Stack.of(self._consumer)
        order = declaration_order(stack)
        consumer_path = self._consumer.node.path
        errors = []
        for b in self._bindings:
            source_path = b.source.node.path
            if source_path not in order:
                errors.append(
                    f"{b.name} on {consumer_path} references {source_path}, "
                    f"which is not declared in stack {stack.stack_name}"
                )
            elif order[source_path] > order[consumer_path]:
                errors.append(
                    f"{b.name} on {consumer_path} references {source_path}, "
                    "which is declared after it"
                )
        return errors


# ---------------------------------------------------------------------------
# Explicit precedence edges
# ---------------------------------------------------------------------------
def depends_on(resource: CfnResource, prerequisite: CfnResource) -> bool:
    return prerequisite.node.path in {d.node.path for d in resource.obtain_dependencies()}


@jsii.implements(IValidation)
class PrecedenceCheck:
    """Each resource in ``dependents`` must carry an edge to ``prerequisite``."""

    def __init__(self, dependents: Sequence[CfnResource], prerequisite: CfnResource) -> None:
        self._dependents = tuple(dependents)
        self._prerequisite = prerequisite

    def validate(self) -> List[str]:
        return [
            f"{r.node.path} has no dependency on {self._prerequisite.node.path}"
            for r in self._dependents
            if not depends_on(r, self._prerequisite)
        ]


# ---------------------------------------------------------------------------
# Permission grants
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class PermissionGrant:
    """
    Access for ``grantee`` to ``resource_arns``, written to both the
    grantee's identity policy and the resource's own access policy.

    ``add_resource_policy`` receives the resource-side statement; OpenSearch
    domains pass ``domain.add_access_policies``.
    """

    grantee: Optional[iam.IGrantable]
    actions: Tuple[str, ...]
    resource_arns: Tuple[str, ...]
    add_resource_policy: Optional[Callable[[iam.PolicyStatement], None]] = field(default=None, compare=False)

    def statements(self) -> Tuple[iam.PolicyStatement, iam.PolicyStatement]:
        if self.grantee is None:
            raise PermissionGrantError("permission grant has no grantee")
        if not self.actions or not self.resource_arns:
            raise PermissionGrantError("permission grant needs at least one action and one resource")
        principal_side = iam.PolicyStatement(
            actions=list(self.actions),
            resources=list(self.resource_arns),
        )
        resource_side = iam.PolicyStatement(
            actions=list(self.actions),
            resources=list(self.resource_arns),
            principals=[self.grantee.grant_principal],
        )
        return principal_side, resource_side

    def apply(self) -> None:
        if self.add_resource_policy is None:
            raise PermissionGrantError("permission grant has no resource policy to write to")
        principal_side, resource_side = self.statements()

        result = self.grantee.grant_principal.add_to_principal_policy(principal_side)
        if not result.statement_added:
            raise PermissionGrantError(
                f"grantee {self.grantee.grant_principal} cannot carry an identity policy"
            )
        self.add_resource_policy(resource_side)
