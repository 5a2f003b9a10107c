"""
Static storefront hosting.

Resources:
  - Private S3 bucket (no public access, S3-managed encryption, TLS only)
  - CloudFront distribution with origin access control

403 and 404 from the origin are rewritten to 200 /index.html so client-side
routes resolve at the edge.
"""

from typing import Optional

from aws_cdk import Duration
from aws_cdk import aws_cloudfront as cloudfront
from aws_cdk import aws_cloudfront_origins as origins
from aws_cdk import aws_s3 as s3
from constructs import Construct

from infra.config import PlatformConfig

INDEX_DOCUMENT = "index.html"
SPA_FALLBACK_STATUSES = (403, 404)
SPA_FALLBACK_TTL = Duration.minutes(5)


class Frontend(Construct):

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        config: PlatformConfig,
        web_acl_arn: Optional[str] = None,
    ) -> None:
        super().__init__(scope, construct_id)

        self.bucket = s3.Bucket(
            self, "FrontendBucket",
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            encryption=s3.BucketEncryption.S3_MANAGED,
            enforce_ssl=True,
            versioned=config.frontend.versioned,
            auto_delete_objects=config.disposable,
            removal_policy=config.removal_policy,
        )

        self.distribution = cloudfront.Distribution(
            self, "FrontendDistribution",
            default_root_object=INDEX_DOCUMENT,
            default_behavior=cloudfront.BehaviorOptions(
                origin=origins.S3BucketOrigin.with_origin_access_control(self.bucket),
                compress=True,
                viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
            ),
            error_responses=[
                cloudfront.ErrorResponse(
                    http_status=status,
                    response_http_status=200,
                    response_page_path=f"/{INDEX_DOCUMENT}",
                    ttl=SPA_FALLBACK_TTL,
                )
                for status in SPA_FALLBACK_STATUSES
            ],
            web_acl_id=web_acl_arn,
        )

    @property
    def url(self) -> str:
        return f"https://{self.distribution.distribution_domain_name}"
