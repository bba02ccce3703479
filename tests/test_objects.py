"""Tests for listbackup_api/services/objects.py — S3 object storage."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from listbackup_api.errors import DependencyError
from listbackup_api.services.objects import ObjectStorage


@pytest.fixture
def s3():
    return MagicMock()


@pytest.fixture
def storage(s3):
    s = ObjectStorage(region="us-east-1")
    s._client = s3
    return s


class TestObjectStorage:

    async def test_put_object_returns_url(self, storage, s3):
        url = await storage.put_object("brand-bucket", "branding/b1/logos/light-full.png", b"png", "image/png")

        assert url == "https://brand-bucket.s3.us-east-1.amazonaws.com/branding/b1/logos/light-full.png"
        s3.put_object.assert_called_once_with(
            Bucket="brand-bucket", Key="branding/b1/logos/light-full.png", Body=b"png", ContentType="image/png",
        )

    async def test_presigned_download_url(self, storage, s3):
        s3.generate_presigned_url.return_value = "https://signed.example/obj"
        url = await storage.presigned_download_url("data-bucket", "a-1/report.csv", 3600)

        assert url == "https://signed.example/obj"
        s3.generate_presigned_url.assert_called_once_with(
            ClientMethod="get_object",
            Params={"Bucket": "data-bucket", "Key": "a-1/report.csv"},
            ExpiresIn=3600,
        )

    async def test_client_error_is_dependency_error(self, storage, s3):
        s3.put_object.side_effect = ClientError({"Error": {"Code": "AccessDenied"}}, "PutObject")
        with pytest.raises(DependencyError):
            await storage.put_object("brand-bucket", "k", b"", "image/png")
