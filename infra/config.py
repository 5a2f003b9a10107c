"""
Platform configuration.

One composition serves every environment; what differs between a throwaway
development deployment and production lives here as an explicit profile:

  - disposable : resources are destroyed with the stack, minimal capacity
  - durable    : data is retained and protected, zone-aware capacity

Values come from CDK context:

    cdk synth -c profile=durable
    cdk synth -c profile=disposable -c 'platform={"search": {"volume_size": 20}}'
"""

from __future__ import annotations

import json
import os
from enum import Enum
from ipaddress import IPv4Address, IPv4Network
from typing import Any, Dict, Literal, Optional

import aws_cdk as cdk
from aws_cdk import aws_logs as logs
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from infra.errors import InvalidParameterError


class Profile(str, Enum):
    DISPOSABLE = "disposable"
    DURABLE = "durable"


class _Settings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class NetworkSettings(_Settings):
    cidr: IPv4Network = IPv4Network("10.0.0.0/16")
    max_azs: int = Field(default=2, ge=1, le=3)
    nat_gateways: int = Field(default=0, ge=0, le=3)


class DataSettings(_Settings):
    billing_mode: Literal["PAY_PER_REQUEST", "PROVISIONED"] = "PAY_PER_REQUEST"
    point_in_time_recovery: bool = False
    removal_policy: Literal["destroy", "retain"] = "destroy"
    backup_retention_days: int = Field(default=0, ge=0, le=35)
    deletion_protection: bool = False
    multi_az: bool = False


class SearchSettings(_Settings):
    data_nodes: int = Field(default=1, ge=1, le=10)
    instance_type: str = "t3.small.search"
    volume_size: int = Field(default=10, ge=10, le=1024)
    zone_awareness: bool = False
    logging: bool = False


class IdentitySettings(_Settings):
    password_min_length: int = Field(default=8, ge=8, le=99)
    require_symbols: bool = False
    mfa: Literal["off", "optional", "required"] = "off"


class ApiSettings(_Settings):
    throttling_burst_limit: int = Field(default=50, ge=1)
    throttling_rate_limit: int = Field(default=25, ge=1)
    tracing: bool = False
    log_retention: str = "ONE_WEEK"
    products_memory_mb: int = Field(default=256, ge=128, le=10240)

    @model_validator(mode="after")
    def _known_retention(self) -> "ApiSettings":
        if not hasattr(logs.RetentionDays, self.log_retention):
            raise ValueError(f"unknown log retention {self.log_retention!r}")
        return self


class FrontendSettings(_Settings):
    versioned: bool = False


class FirewallSettings(_Settings):
    api: bool = False
    # CloudFront web ACLs only exist in us-east-1
    edge: bool = False


class VpnSettings(_Settings):
    enabled: bool = True
    customer_gateway_ip: IPv4Address = IPv4Address("203.0.113.1")
    customer_gateway_asn: int = Field(default=65000, ge=64512, le=65534)
    on_prem_cidr: IPv4Network = IPv4Network("10.10.0.0/16")


class PlatformConfig(_Settings):
    profile: Profile = Profile.DISPOSABLE
    network: NetworkSettings = NetworkSettings()
    data: DataSettings = DataSettings()
    search: SearchSettings = SearchSettings()
    identity: IdentitySettings = IdentitySettings()
    api: ApiSettings = ApiSettings()
    frontend: FrontendSettings = FrontendSettings()
    firewall: FirewallSettings = FirewallSettings()
    vpn: VpnSettings = VpnSettings()

    @model_validator(mode="after")
    def _consistent(self) -> "PlatformConfig":
        if self.search.zone_awareness:
            if self.network.max_azs < 2:
                raise ValueError("search.zone_awareness requires network.max_azs >= 2")
            if self.search.data_nodes % 2:
                raise ValueError("search.zone_awareness requires an even number of search.data_nodes")
        if self.vpn.enabled and self.vpn.on_prem_cidr.overlaps(self.network.cidr):
            raise ValueError(
                f"vpn.on_prem_cidr {self.vpn.on_prem_cidr} overlaps network.cidr {self.network.cidr}"
            )
        return self

    @property
    def removal_policy(self) -> cdk.RemovalPolicy:
        if self.data.removal_policy == "retain":
            return cdk.RemovalPolicy.RETAIN
        return cdk.RemovalPolicy.DESTROY

    @property
    def disposable(self) -> bool:
        return self.removal_policy == cdk.RemovalPolicy.DESTROY

    @property
    def log_retention(self) -> logs.RetentionDays:
        return getattr(logs.RetentionDays, self.api.log_retention)


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------
PRESETS: Dict[Profile, Dict[str, Any]] = {
    Profile.DISPOSABLE: {},
    Profile.DURABLE: {
        "network": {"nat_gateways": 1},
        "data": {
            "point_in_time_recovery": True,
            "removal_policy": "retain",
            "backup_retention_days": 7,
            "deletion_protection": True,
            "multi_az": True,
        },
        "search": {"data_nodes": 2, "volume_size": 20, "zone_awareness": True, "logging": True},
        "identity": {"password_min_length": 12, "require_symbols": True, "mfa": "optional"},
        "api": {
            "throttling_burst_limit": 100,
            "throttling_rate_limit": 50,
            "tracing": True,
            "log_retention": "ONE_MONTH",
            "products_memory_mb": 512,
        },
        "frontend": {"versioned": True},
        "firewall": {"api": True},
    },
}


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _validation_message(err: ValidationError) -> str:
    parts = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e["loc"]) or "config"
        parts.append(f"{loc}: {e['msg']}")
    return "; ".join(parts)


def build_config(profile: str = "disposable", overrides: Optional[Dict[str, Any]] = None) -> PlatformConfig:
    """Resolve a profile preset plus field overrides into a validated config."""
    try:
        selected = Profile(profile)
    except ValueError:
        choices = ", ".join(p.value for p in Profile)
        raise InvalidParameterError(f"profile: unknown profile {profile!r} (expected one of {choices})")

    data = _merge(PRESETS[selected], overrides or {})
    data["profile"] = selected
    try:
        return PlatformConfig.model_validate(data)
    except ValidationError as e:
        raise InvalidParameterError(_validation_message(e)) from e


def _context_dict(node, key: str) -> Dict[str, Any]:
    # values passed with -c on the command line arrive as strings
    value = node.try_get_context(key) or {}
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise InvalidParameterError(f"{key}: context value is not valid JSON ({e})") from e
    if not isinstance(value, dict):
        raise InvalidParameterError(f"{key}: context value must be an object")
    return value


def load_config(node) -> PlatformConfig:
    """Build the platform config from the CDK context of ``node``."""
    return build_config(
        node.try_get_context("profile") or Profile.DISPOSABLE.value,
        _context_dict(node, "platform"),
    )


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------
class PipelineConfig(_Settings):
    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)
    branch: str = Field(default="main", min_length=1)
    connection_arn: str = Field(pattern=r"^arn:aws[a-z-]*:(codestar-connections|codeconnections):")
    pipeline_name: str = "D2cPlatformPipeline"
    # the Production stage is retained and protected unless told otherwise
    stage_profile: Profile = Profile.DURABLE

    @property
    def repo_string(self) -> str:
        return f"{self.owner}/{self.repo}"


def load_pipeline_config(node) -> Optional[PipelineConfig]:
    """
    Pipeline settings from context ``pipeline`` plus the connection ARN from
    context ``connectionArn`` or D2C_CONNECTION_ARN. Returns None when no
    connection is configured.
    """
    connection_arn = node.try_get_context("connectionArn") or os.getenv("D2C_CONNECTION_ARN")
    if not connection_arn:
        return None

    data = _context_dict(node, "pipeline")
    data["connection_arn"] = connection_arn
    try:
        return PipelineConfig.model_validate(data)
    except ValidationError as e:
        raise InvalidParameterError(_validation_message(e)) from e


def load_stage_config(node, pipeline_config: PipelineConfig) -> PlatformConfig:
    """
    Config for the pipeline's Production stage: the pipeline's stage profile
    plus the same ``platform`` context overrides as the standalone stack.
    """
    return build_config(pipeline_config.stage_profile.value, _context_dict(node, "platform"))
