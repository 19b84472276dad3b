"""Upload engine: change detection and sequential transfer of selected files."""

import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import boto3
from rich.console import Console
from rich.markup import escape

from bucket_sync.checksum import ChecksumCalculator
from bucket_sync.config import UploaderConfig
from bucket_sync.exceptions import ConfigurationError, RemoteObjectNotFound
from bucket_sync.remote import Bucket, RemoteObject
from bucket_sync.selector import LocalFile, select_files

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def guess_content_type(path: Union[str, Path]) -> str:
    """Look up a content type from the file name, falling back to octet-stream."""
    content_type, _ = mimetypes.guess_type(str(path))
    return content_type or DEFAULT_CONTENT_TYPE


class UploadOutcome(str, Enum):
    UPLOADED = "uploaded"
    SKIPPED = "skipped"
    WOULD_UPLOAD = "would_upload"


class RunState(str, Enum):
    IDLE = "idle"
    SELECTING = "selecting"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class UploadReport:
    """What happened during one upload run."""

    state: RunState = RunState.IDLE
    total: int = 0
    uploaded: List[LocalFile] = field(default_factory=list)
    skipped: List[LocalFile] = field(default_factory=list)
    pending: List[LocalFile] = field(default_factory=list)
    error: Optional[BaseException] = None

    def record(self, local_file: LocalFile, outcome: UploadOutcome) -> None:
        if outcome is UploadOutcome.UPLOADED:
            self.uploaded.append(local_file)
        elif outcome is UploadOutcome.SKIPPED:
            self.skipped.append(local_file)
        else:
            self.pending.append(local_file)

    def fail(self, error: BaseException) -> None:
        self.state = RunState.FAILED
        self.error = error


class BucketUploader:
    """Upload a local directory tree to a bucket, skipping unchanged files."""

    def __init__(
        self,
        config: UploaderConfig,
        console: Optional[Console] = None,
        content_type_resolver: Callable[[Path], str] = guess_content_type,
        visibility_policy: Optional[Callable[[LocalFile], bool]] = None,
    ):
        """
        Initialize the uploader.

        Args:
            config: Immutable uploader configuration
            console: Console for progress output
            content_type_resolver: Maps a local path to the object content type
            visibility_policy: Decides whether a file is uploaded public;
                defaults to the static ``config.public`` flag
        """
        self.config = config
        self.console = console or Console()
        self.checksum_calculator = ChecksumCalculator()
        self.content_type_resolver = content_type_resolver
        self.visibility_policy = visibility_policy or (lambda local_file: self.config.public)

        # S3 client is created lazily so tests and dry runs need no credentials up front
        self._s3_client = None

    @property
    def s3_client(self):
        """Get S3 client, creating it lazily with current config."""
        if self._s3_client is None:
            session = boto3.Session(**self.config.get_aws_session_kwargs())
            self._s3_client = session.client("s3", **self.config.get_s3_client_kwargs())
        return self._s3_client

    def _require_bucket(self) -> str:
        if not self.config.bucket:
            raise ConfigurationError("Bucket not configured")
        return self.config.bucket

    @property
    def bucket(self) -> Bucket:
        return Bucket(self.s3_client, self._require_bucket())

    def _log(self, message: str) -> None:
        if self.config.debug:
            self.console.print(message)

    def is_up_to_date(self, origin: Union[str, Path], remote: RemoteObject) -> bool:
        """
        Check whether the remote object already holds the local file's content.

        A missing remote object is reported as not up to date. Any other
        metadata failure propagates as RemoteError.
        """
        return self._compare(origin, remote)[0]

    def _compare(self, origin: Union[str, Path], remote: RemoteObject) -> Tuple[bool, Optional[str]]:
        """Return whether the remote copy matches, plus the local digest if it was computed."""
        try:
            metadata = remote.get_metadata()
        except RemoteObjectNotFound:
            return False, None

        remote_checksum = metadata.get("md5_hash")
        if not remote_checksum:
            return False, None
        local_checksum = self.checksum_calculator.calculate_md5(origin)
        return local_checksum == remote_checksum, local_checksum

    def upload_file(self, local_file: LocalFile, dry_run: bool = False) -> UploadOutcome:
        """
        Upload one file unless the bucket already has identical content.

        Raises:
            OSError: If the local file cannot be opened
            RemoteError: If the remote metadata check fails
            TransferError: If streaming the file to the bucket fails
        """
        remote = self.bucket.file(local_file.destination)

        up_to_date, checksum = self._compare(local_file.origin, remote)
        if up_to_date:
            self._log(f"[bright_black]{escape(local_file.destination)} is up to date. Skipping.[/bright_black]")
            return UploadOutcome.SKIPPED

        if dry_run:
            self._log(f"Would upload {escape(str(local_file.origin))} to {escape(remote.url)}")
            return UploadOutcome.WOULD_UPLOAD

        if checksum is None:
            checksum = self.checksum_calculator.calculate_md5(local_file.origin)
        content_type = self.content_type_resolver(local_file.origin)

        with open(local_file.origin, "rb") as fileobj:
            remote.upload(
                fileobj,
                content_type=content_type,
                public=self.visibility_policy(local_file),
                checksum=checksum,
            )

        self._log(f"[green]Successfully uploaded: {escape(remote.url)}[/green]")
        return UploadOutcome.UPLOADED

    def upload_files(
        self,
        files: Sequence[LocalFile],
        report: Optional[UploadReport] = None,
        dry_run: bool = False,
    ) -> UploadReport:
        """
        Upload files one at a time, in order, stopping at the first failure.

        The failing file and every file after it are left untouched and the
        original exception propagates after being recorded on the report.
        """
        report = report or UploadReport()
        report.state = RunState.UPLOADING
        report.total = len(files)

        try:
            self._require_bucket()
            for index, local_file in enumerate(files, start=1):
                self._log(f"Uploading file {index} of {len(files)}")
                report.record(local_file, self.upload_file(local_file, dry_run=dry_run))
        except Exception as e:
            report.fail(e)
            raise

        report.state = RunState.COMPLETED
        return report

    def get_files(self, origin: Union[str, Path], destination: str) -> List[LocalFile]:
        """Select files under ``origin`` using the configured filters."""
        return select_files(
            origin,
            destination,
            disallow=self.config.disallow,
            allow=self.config.allow,
        )

    def upload(
        self,
        origin: Union[str, Path],
        destination: str,
        report: Optional[UploadReport] = None,
        dry_run: bool = False,
    ) -> UploadReport:
        """
        Upload every selected file under ``origin`` to the ``destination`` prefix.

        Args:
            origin: Local directory to upload
            destination: Key prefix in the configured bucket
            report: Report to fill in; a new one is created if omitted
            dry_run: Compare with the bucket but do not write anything

        Returns:
            The completed report
        """
        report = report or UploadReport()
        report.state = RunState.SELECTING
        try:
            self._require_bucket()
            files = self.get_files(origin, destination)
        except Exception as e:
            report.fail(e)
            raise

        return self.upload_files(files, report=report, dry_run=dry_run)
