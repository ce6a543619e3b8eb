import io
import os
import sys
from pathlib import Path

import pytest
from botocore.exceptions import ClientError
from botocore.response import StreamingBody

# Ensure repo root on sys.path for imports from anywhere in tests tree.
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENDPOINT_URL_STORE", "http://localhost:9041/store/")
os.environ.setdefault("ENDPOINT_URL_TRANSFORM", "http://localhost:9090/transform/")
os.environ.setdefault("ENDPOINTS_TRANSFORM_VERSION", "0.1.0")
os.environ.setdefault("ENDPOINT_URL_RETRIEVE", "http://localhost:9040/")
os.environ.setdefault("S3_REGION", "local")
os.environ.setdefault("S3_ACCESS_KEY", "admin")
os.environ.setdefault("S3_SECRET_KEY", "12345678")
os.environ.setdefault("S3_BUCKET", "metacard-quarantine")


class StubS3Client:
    """Just enough of the boto3 S3 client for the metacard adaptor."""

    def __init__(self, buckets=("metacard-quarantine",)):
        self.buckets = {name: {} for name in buckets}
        self.uploads = []

    def _bucket(self, name, operation):
        if name not in self.buckets:
            raise ClientError(
                {"Error": {"Code": "NoSuchBucket", "Message": "The specified bucket does not exist"}},
                operation,
            )
        return self.buckets[name]

    def upload_fileobj(self, Fileobj, Bucket, Key, ExtraArgs=None, Callback=None, Config=None):
        bucket = self._bucket(Bucket, "PutObject")
        body = bytearray()
        while True:
            chunk = Fileobj.read(8192)
            if not chunk:
                break
            body.extend(chunk)
        content_type = (ExtraArgs or {}).get("ContentType", "binary/octet-stream")
        bucket[Key] = {"Body": bytes(body), "ContentType": content_type}
        self.uploads.append({"bucket": Bucket, "key": Key, "extra_args": ExtraArgs, "config": Config})

    def get_object(self, Bucket, Key):
        bucket = self._bucket(Bucket, "GetObject")
        if Key not in bucket:
            raise ClientError(
                {"Error": {"Code": "NoSuchKey", "Message": "The specified key does not exist."}},
                "GetObject",
            )
        obj = bucket[Key]
        return {
            "Body": StreamingBody(io.BytesIO(obj["Body"]), len(obj["Body"])),
            "ContentType": obj["ContentType"],
            "ContentLength": len(obj["Body"]),
        }


@pytest.fixture
def stub_s3():
    return StubS3Client()
