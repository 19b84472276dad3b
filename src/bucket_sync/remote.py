"""Thin adapter over the boto3 S3 client for single-object access."""

from typing import BinaryIO, Dict, Optional

from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from bucket_sync.checksum import hex_to_base64
from bucket_sync.exceptions import RemoteError, RemoteObjectNotFound, TransferError

# User metadata key holding the fingerprint written on upload
CHECKSUM_METADATA_KEY = "md5-hash"

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", "Unknown"))


def _is_not_found(error: ClientError) -> bool:
    if _error_code(error) in NOT_FOUND_CODES:
        return True
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return status == 404


class RemoteObject:
    """Handle on a single key in a bucket. The object may not exist yet."""

    def __init__(self, client, bucket: str, key: str):
        self.client = client
        self.bucket = bucket
        self.key = key

    @property
    def url(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    def get_metadata(self) -> Dict:
        """
        Fetch the object's metadata with a HEAD request.

        Returns:
            Dictionary with ``md5_hash`` (base64 fingerprint or None),
            ``content_type``, ``size`` and the raw user ``metadata``

        Raises:
            RemoteObjectNotFound: If the object does not exist
            RemoteError: For any other failure
        """
        try:
            response = self.client.head_object(Bucket=self.bucket, Key=self.key)
        except ClientError as e:
            if _is_not_found(e):
                raise RemoteObjectNotFound(
                    f"{self.url} does not exist", key=self.key, code=_error_code(e)
                ) from e
            raise RemoteError(
                f"Could not fetch metadata for {self.url}: {e}", key=self.key, code=_error_code(e)
            ) from e
        except BotoCoreError as e:
            raise RemoteError(f"Could not fetch metadata for {self.url}: {e}", key=self.key) from e

        user_metadata = response.get("Metadata", {}) or {}
        return {
            "md5_hash": self._stored_checksum(user_metadata, response.get("ETag")),
            "content_type": response.get("ContentType"),
            "size": response.get("ContentLength"),
            "metadata": user_metadata,
        }

    @staticmethod
    def _stored_checksum(user_metadata: Dict, etag: Optional[str]) -> Optional[str]:
        checksum = user_metadata.get(CHECKSUM_METADATA_KEY)
        if checksum:
            return checksum
        # Single-part ETags are the hex MD5 of the body; multipart ones carry a "-N" suffix
        if etag:
            etag = etag.strip('"')
            if "-" not in etag:
                try:
                    return hex_to_base64(etag)
                except ValueError:
                    return None
        return None

    def upload(self, fileobj: BinaryIO, content_type: str, public: bool = False,
               checksum: Optional[str] = None) -> None:
        """
        Stream an open binary file to this key.

        Raises:
            TransferError: If reading the stream or writing the object fails
        """
        extra_args = {"ContentType": content_type}
        # Private objects carry no ACL; buckets with ACLs disabled reject any other grant
        if public:
            extra_args["ACL"] = "public-read"
        if checksum:
            extra_args["Metadata"] = {CHECKSUM_METADATA_KEY: checksum}

        try:
            self.client.upload_fileobj(fileobj, self.bucket, self.key, ExtraArgs=extra_args)
        except (ClientError, BotoCoreError, S3UploadFailedError, OSError) as e:
            raise TransferError(f"Failed to upload {self.url}: {e}", key=self.key) from e


class Bucket:
    """A named bucket reached through an S3 client."""

    def __init__(self, client, name: str):
        self.client = client
        self.name = name

    def file(self, key: str) -> RemoteObject:
        return RemoteObject(self.client, self.name, key)
