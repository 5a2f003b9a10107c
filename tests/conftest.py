"""Shared test fixtures."""

import aws_cdk as cdk
import pytest
from aws_cdk.assertions import Template

from infra.config import build_config
from infra.stacks.platform_stack import PlatformStack

TEST_ENV = cdk.Environment(account="123456789012", region="us-east-1")
CONNECTION_ARN = "arn:aws:codestar-connections:us-east-1:123456789012:connection/0f1e2d3c"


def make_stack(profile: str = "disposable", overrides=None, env=None, construct_id: str = "Platform") -> PlatformStack:
    """Compose a platform stack in a fresh app."""
    app = cdk.App()
    return PlatformStack(app, construct_id, config=build_config(profile, overrides), env=env)


@pytest.fixture(scope="session")
def disposable_stack() -> PlatformStack:
    """Platform stack with the disposable profile (env-agnostic)."""
    return make_stack("disposable")


@pytest.fixture(scope="session")
def durable_stack() -> PlatformStack:
    """Platform stack with the durable profile (env-agnostic)."""
    return make_stack("durable")


@pytest.fixture(scope="session")
def disposable_template(disposable_stack: PlatformStack) -> Template:
    return Template.from_stack(disposable_stack)


@pytest.fixture(scope="session")
def durable_template(durable_stack: PlatformStack) -> Template:
    return Template.from_stack(durable_stack)


@pytest.fixture
def stack() -> cdk.Stack:
    """Empty stack for constructing individual pieces."""
    return cdk.Stack(cdk.App(), "Scratch")
