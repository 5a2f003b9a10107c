from typing import List

from aws_cdk import aws_wafv2 as wafv2
from constructs import Construct

# (rule group, metric name); priority follows list order
MANAGED_RULE_GROUPS = [
    ("AWSManagedRulesCommonRuleSet", "CommonRuleSet"),
    ("AWSManagedRulesKnownBadInputsRuleSet", "KnownBadInputs"),
    ("AWSManagedRulesAmazonIpReputationList", "IpReputation"),
    ("AWSManagedRulesSQLiRuleSet", "SqlInjection"),
]


def _visibility(metric_name: str) -> wafv2.CfnWebACL.VisibilityConfigProperty:
    return wafv2.CfnWebACL.VisibilityConfigProperty(
        cloud_watch_metrics_enabled=True,
        metric_name=metric_name,
        sampled_requests_enabled=True,
    )


def managed_rules() -> List[wafv2.CfnWebACL.RuleProperty]:
    return [
        wafv2.CfnWebACL.RuleProperty(
            name=group,
            priority=priority,
            statement=wafv2.CfnWebACL.StatementProperty(
                managed_rule_group_statement=wafv2.CfnWebACL.ManagedRuleGroupStatementProperty(
                    vendor_name="AWS",
                    name=group,
                ),
            ),
            override_action=wafv2.CfnWebACL.OverrideActionProperty(none={}),
            visibility_config=_visibility(metric),
        )
        for priority, (group, metric) in enumerate(MANAGED_RULE_GROUPS)
    ]


class WebFirewall(Construct):
    """
    Web ACL built from the AWS managed rule groups.

    ``scope_name`` is REGIONAL for API Gateway stages and CLOUDFRONT for
    distributions (the latter only deploys in us-east-1).
    """

    def __init__(self, scope: Construct, construct_id: str, *, scope_name: str, metric_name: str) -> None:
        super().__init__(scope, construct_id)
        if scope_name not in ("REGIONAL", "CLOUDFRONT"):
            raise ValueError(f"unknown web ACL scope {scope_name!r}")

        self.web_acl = wafv2.CfnWebACL(
            self, "WebAcl",
            scope=scope_name,
            default_action=wafv2.CfnWebACL.DefaultActionProperty(allow={}),
            visibility_config=_visibility(metric_name),
            rules=managed_rules(),
        )

    @property
    def arn(self) -> str:
        return self.web_acl.attr_arn
