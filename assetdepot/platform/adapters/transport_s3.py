import asyncio
import logging
import mimetypes
import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from assetdepot.core.config import settings
from assetdepot.core.errors import TransportNotFoundError, TransportWriteError
from assetdepot.platform.ports.transport import TransportPort

log = logging.getLogger("transport.s3")

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}

class S3Transport(TransportPort):
    def __init__(self, client=None, bucket: str | None = None, prefix: str | None = None):
        if client is None:
            session = boto3.session.Session(
                aws_access_key_id=settings.S3_ACCESS_KEY,
                aws_secret_access_key=settings.S3_SECRET_KEY,
                region_name=settings.S3_REGION,
            )
            client = session.client(
                "s3",
                endpoint_url=settings.S3_ENDPOINT_URL,
                config=Config(signature_version="s3v4"),
            )
        self.s3 = client
        self.bucket = bucket or settings.S3_BUCKET
        self.prefix = settings.S3_KEY_PREFIX if prefix is None else prefix

    def key(self, asset) -> str:
        return f"{self.prefix}{asset.hash}"

    def _content_type(self, asset) -> str:
        guessed, _ = mimetypes.guess_type(f"x.{asset.ext}") if asset.ext else (None, None)
        return guessed or "application/octet-stream"

    async def push(self, asset, source_path: str) -> None:
        key = self.key(asset)
        try:
            await asyncio.to_thread(
                self.s3.upload_file,
                source_path,
                self.bucket,
                key,
                ExtraArgs={"ContentType": self._content_type(asset)},
            )
        except (BotoCoreError, ClientError, OSError) as e:
            raise TransportWriteError(f"Could not upload {key} to s3://{self.bucket}: {e}") from e
        log.debug("uploaded s3://%s/%s", self.bucket, key)

    async def remove(self, asset) -> None:
        key = self.key(asset)
        # delete_object succeeds on missing keys, so probe first
        try:
            await asyncio.to_thread(self.s3.head_object, Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                raise TransportNotFoundError(f"s3://{self.bucket}/{key} not found") from e
            raise TransportWriteError(f"Could not inspect s3://{self.bucket}/{key}: {e}") from e
        except BotoCoreError as e:
            raise TransportWriteError(f"Could not inspect s3://{self.bucket}/{key}: {e}") from e
        try:
            await asyncio.to_thread(self.s3.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise TransportWriteError(f"Could not delete s3://{self.bucket}/{key}: {e}") from e

    async def url_for(self, asset) -> str | None:
        if not asset.hash:
            return None
        key = self.key(asset)
        if settings.S3_PUBLIC_URL:
            return f"{settings.S3_PUBLIC_URL.rstrip('/')}/{key}"
        return await asyncio.to_thread(
            self.s3.generate_presigned_url,
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=settings.S3_URL_EXPIRES_SECONDS,
        )
