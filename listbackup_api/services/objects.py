"""S3 object storage for uploaded logos and backed-up files."""

import asyncio

from listbackup_api.errors import DependencyError
from listbackup_api.logging.audit import get_audit_logger


class ObjectStorage:

    def __init__(self, region: str = "us-east-1"):
        self._region = region
        self._client = None

    def _get_client(self):
        """Lazy-init boto3 S3 client."""
        if self._client is None:
            import boto3

            self._client = boto3.client("s3", region_name=self._region)
        return self._client

    async def _call(self, operation: str, bucket: str, fn, **kwargs):
        from botocore.exceptions import ClientError

        try:
            return await asyncio.to_thread(fn, **kwargs)
        except ClientError as e:
            get_audit_logger().error(
                "S3 call failed",
                extra={"audit_data": {"bucket": bucket, "operation": operation}},
            )
            raise DependencyError(f"Object storage operation failed on {bucket}") from e

    async def put_object(self, bucket: str, key: str, body: bytes, content_type: str) -> str:
        """Upload ``body`` and return the object's HTTPS URL."""
        await self._call(
            "PutObject", bucket, self._get_client().put_object,
            Bucket=bucket, Key=key, Body=body, ContentType=content_type,
        )
        return f"https://{bucket}.s3.{self._region}.amazonaws.com/{key}"

    async def presigned_download_url(self, bucket: str, key: str, expires_in: int) -> str:
        return await self._call(
            "GeneratePresignedUrl", bucket, self._get_client().generate_presigned_url,
            ClientMethod="get_object",
            Params={"Bucket": bucket, "Key": key},
            ExpiresIn=expires_in,
        )
