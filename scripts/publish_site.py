"""
Publish the built storefront to the frontend bucket and invalidate CloudFront.

Usage:
    python scripts/build_site.py && python scripts/publish_site.py
    python scripts/publish_site.py --stack D2cPlatformStack

The bucket and distribution come from FRONTEND_BUCKET / FRONTEND_DISTRIBUTION_ID
when set (the pipeline post-deploy step sets both), otherwise from the
FrontendBucketName / FrontendDistributionId outputs of the deployed stack.
Objects in the bucket that are no longer part of the build are deleted.
"""

from __future__ import annotations

import mimetypes
import os
import sys
import time
from pathlib import Path
from typing import Dict, List, Tuple

import boto3
from botocore.exceptions import ClientError

REGION = os.getenv("AWS_REGION", "ap-northeast-1")
STACK_NAME = os.getenv("D2C_STACK_NAME", "D2cPlatformStack")
DIST_DIR = Path(__file__).resolve().parent.parent / "web" / "dist"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def get_stack_outputs(cfn, stack_name: str) -> Dict[str, str]:
    resp = cfn.describe_stacks(StackName=stack_name)
    outputs = resp["Stacks"][0].get("Outputs", [])
    return {o["OutputKey"]: o["OutputValue"] for o in outputs}


def resolve_targets(cfn, stack_name: str, environ=None) -> Tuple[str, str]:
    """Return (bucket, distribution_id), preferring the environment."""
    environ = os.environ if environ is None else environ
    bucket = environ.get("FRONTEND_BUCKET")
    distribution_id = environ.get("FRONTEND_DISTRIBUTION_ID")
    if bucket and distribution_id:
        return bucket, distribution_id

    outputs = get_stack_outputs(cfn, stack_name)
    try:
        return (
            bucket or outputs["FrontendBucketName"],
            distribution_id or outputs["FrontendDistributionId"],
        )
    except KeyError as e:
        raise RuntimeError(f"Stack {stack_name} has no output {e.args[0]}") from e


def upload_site(s3, bucket: str, dist_dir: Path) -> List[str]:
    uploaded = []
    for f in sorted(dist_dir.rglob("*")):
        if not f.is_file():
            continue
        key = f.relative_to(dist_dir).as_posix()
        content_type = mimetypes.guess_type(f.name)[0] or DEFAULT_CONTENT_TYPE
        print(f"  Uploading {key} ({content_type})")
        s3.upload_file(str(f), bucket, key, ExtraArgs={"ContentType": content_type})
        uploaded.append(key)
    return uploaded


def delete_stale(s3, bucket: str, keep: List[str]) -> List[str]:
    keep_set = set(keep)
    stale = []
    paginator = s3.get_paginator("list_objects_v2")
    for page in paginator.paginate(Bucket=bucket):
        for obj in page.get("Contents", []):
            if obj["Key"] not in keep_set:
                stale.append(obj["Key"])

    # delete_objects takes at most 1000 keys per call
    for i in range(0, len(stale), 1000):
        batch = stale[i:i + 1000]
        print(f"  Deleting {len(batch)} stale object(s)")
        s3.delete_objects(
            Bucket=bucket,
            Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
        )
    return stale


def invalidate(cloudfront, distribution_id: str) -> str:
    resp = cloudfront.create_invalidation(
        DistributionId=distribution_id,
        InvalidationBatch={
            "Paths": {"Quantity": 1, "Items": ["/*"]},
            "CallerReference": f"publish-{int(time.time())}",
        },
    )
    return resp["Invalidation"]["Id"]


def main():
    stack_name = STACK_NAME
    if "--stack" in sys.argv:
        i = sys.argv.index("--stack")
        if i + 1 >= len(sys.argv):
            print("Usage: python scripts/publish_site.py [--stack <name>]")
            sys.exit(1)
        stack_name = sys.argv[i + 1]

    if not (DIST_DIR / "index.html").is_file():
        print(f"ERROR: {DIST_DIR}/index.html not found. Run: python scripts/build_site.py")
        sys.exit(1)

    cfn = boto3.client("cloudformation", region_name=REGION)
    s3 = boto3.client("s3", region_name=REGION)
    cloudfront = boto3.client("cloudfront")

    try:
        bucket, distribution_id = resolve_targets(cfn, stack_name)
        print(f"Publishing {DIST_DIR} -> s3://{bucket}")
        uploaded = upload_site(s3, bucket, DIST_DIR)
        stale = delete_stale(s3, bucket, uploaded)
        invalidation_id = invalidate(cloudfront, distribution_id)
    except (ClientError, RuntimeError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    print(f"\nUploaded {len(uploaded)} file(s), deleted {len(stale)} stale object(s)")
    print(f"Invalidation {invalidation_id} created on {distribution_id}")


if __name__ == "__main__":
    main()
