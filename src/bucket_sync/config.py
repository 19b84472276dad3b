"""Configuration for bucket-sync."""

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

ENV_PREFIX = "BUCKET_SYNC_"

TRUE_VALUES = {"1", "true", "yes", "on"}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in TRUE_VALUES


def _split_patterns(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(p.strip() for p in value.split(",") if p.strip())


def _as_patterns(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        return _split_patterns(value)
    return tuple(value or ())


# Environment variable -> setting name and parser
ENV_SETTINGS = {
    f"{ENV_PREFIX}BUCKET": ("bucket", str),
    f"{ENV_PREFIX}PUBLIC": ("public", _parse_bool),
    f"{ENV_PREFIX}DEBUG": ("debug", _parse_bool),
    f"{ENV_PREFIX}ALLOW": ("allow", _split_patterns),
    f"{ENV_PREFIX}DISALLOW": ("disallow", _split_patterns),
    f"{ENV_PREFIX}AWS_PROFILE": ("profile", str),
    f"{ENV_PREFIX}AWS_REGION": ("region", str),
    f"{ENV_PREFIX}ENDPOINT_URL": ("endpoint_url", str),
    "AWS_ACCESS_KEY_ID": ("access_key_id", str),
    "AWS_SECRET_ACCESS_KEY": ("secret_access_key", str),
    "AWS_SESSION_TOKEN": ("session_token", str),
}


@dataclass(frozen=True)
class AWSConfig:
    """Credentials and endpoint for the object store."""

    profile: Optional[str] = None
    region: str = "us-east-1"
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None
    endpoint_url: Optional[str] = None


@dataclass(frozen=True)
class UploaderConfig:
    """Settings for a single uploader. Immutable for the duration of a run."""

    bucket: Optional[str] = None
    public: bool = False
    debug: bool = False
    allow: Tuple[str, ...] = ()
    disallow: Tuple[str, ...] = ()
    aws: AWSConfig = field(default_factory=AWSConfig)

    @property
    def config_dir(self) -> Path:
        return Path.home() / ".bucket-sync"

    @classmethod
    def env_overrides(cls) -> Dict[str, Any]:
        """Return the settings present in the environment, keyed by setting name.

        Only variables that are set appear, so a value equal to the default
        still overrides a config file.
        """
        overrides = {}
        for env_name, (setting, parse) in ENV_SETTINGS.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[setting] = parse(value)
        return overrides

    @classmethod
    def from_env(cls) -> "UploaderConfig":
        """Create configuration from environment variables."""
        return cls().with_overrides(**cls.env_overrides())

    def with_env(self) -> "UploaderConfig":
        """Return a copy with environment settings layered on top of this config."""
        return self.with_overrides(**self.env_overrides())

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "UploaderConfig":
        """Create configuration from a config file mapping.

        Unknown keys are ignored. AWS settings may be nested under ``aws``.
        """
        data = data or {}
        aws_names = {f.name for f in fields(AWSConfig)}
        aws_data = {k: v for k, v in (data.get("aws") or {}).items() if k in aws_names}
        return cls(
            bucket=data.get("bucket"),
            public=bool(data.get("public", False)),
            debug=bool(data.get("debug", False)),
            allow=_as_patterns(data.get("allow")),
            disallow=_as_patterns(data.get("disallow")),
            aws=AWSConfig(**aws_data),
        )

    def with_overrides(self, **overrides: Any) -> "UploaderConfig":
        """Return a copy with the given settings replaced. ``None`` values are skipped.

        Keys matching AWSConfig fields are applied to the nested ``aws`` config.
        """
        aws_names = {f.name for f in fields(AWSConfig)}
        aws_changes = {k: v for k, v in overrides.items() if k in aws_names and v is not None}
        changes = {k: v for k, v in overrides.items() if k not in aws_names and v is not None}
        for key in ("allow", "disallow"):
            if key in changes:
                changes[key] = tuple(changes[key])
        if aws_changes:
            changes["aws"] = replace(self.aws, **aws_changes)
        return replace(self, **changes)

    def get_aws_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for boto3.Session."""
        kwargs: Dict[str, Any] = {"region_name": self.aws.region}
        if self.aws.profile:
            kwargs["profile_name"] = self.aws.profile
        return kwargs

    def get_s3_client_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for the S3 client."""
        kwargs: Dict[str, Any] = {"region_name": self.aws.region}
        if self.aws.access_key_id and self.aws.secret_access_key:
            kwargs["aws_access_key_id"] = self.aws.access_key_id
            kwargs["aws_secret_access_key"] = self.aws.secret_access_key
            if self.aws.session_token:
                kwargs["aws_session_token"] = self.aws.session_token
        if self.aws.endpoint_url:
            kwargs["endpoint_url"] = self.aws.endpoint_url
        return kwargs
