"""
AWS Client Module
=================

Provides a thread-safe wrapper around boto3 sessions and clients for
s3hub, with credential validation and per-region S3 clients.

Classes
-------
AWSClient
    Main client class for AWS operations.

Example
-------
>>> from s3hub.core.aws_client import AWSClient
>>>
>>> client = AWSClient(region="us-east-1", profile="production")
>>> client.validate_credentials()
True
>>> s3 = client.get_s3_client("eu-west-1")

Notes
-----
Batch deletes must be sent to the bucket's own region, so S3 clients
are cached per region. boto3 clients are safe to share between
threads; session creation is not, so it is done under a lock.

See Also
--------
boto3 : AWS SDK for Python
botocore : Low-level AWS client library
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    ClientError,
    NoCredentialsError,
    NoRegionError,
    ProfileNotFound,
)

from s3hub.core.exceptions import (
    AWSClientError,
    CredentialsError,
    ServiceError,
)

# Module logger
logger = logging.getLogger(__name__)

# Endpoint of a local S3 emulator such as localstack.
DEBUG_LOCALSTACK_ENDPOINT = "http://localhost:4566"


class AWSClient:
    """
    Thread-safe AWS client wrapper.

    Parameters
    ----------
    region : str, default="us-east-1"
        Default AWS region.
    profile : str, optional
        AWS profile name from ~/.aws/credentials.
    max_retries : int, default=3
        Retries botocore performs on its own for every call. These are
        separate from the jittered retries of the bulk deleter.
    timeout : int, default=30
        Request timeout in seconds.
    endpoint_url : str, optional
        Custom S3 endpoint (e.g. localstack). Enables path-style addressing.

    Examples
    --------
    >>> client = AWSClient(region="ap-northeast-1")
    >>> s3 = client.get_s3_client()

    Using a local emulator:

    >>> client = AWSClient(endpoint_url=DEBUG_LOCALSTACK_ENDPOINT)

    Raises
    ------
    CredentialsError
        If AWS credentials are not found or invalid.
    AWSClientError
        If the session cannot be created.
    """

    def __init__(
        self,
        region: str = "us-east-1",
        profile: Optional[str] = None,
        max_retries: int = 3,
        timeout: int = 30,
        endpoint_url: Optional[str] = None,
    ) -> None:
        """Initialize AWS client with the specified configuration."""
        self.region = region
        self.profile = profile
        self.max_retries = max_retries
        self.timeout = timeout
        self.endpoint_url = endpoint_url

        # Lazy-loaded components
        self._session: Optional[boto3.Session] = None
        self._clients: Dict[str, Any] = {}
        self._lock = threading.Lock()

        self._config = self._create_config()

        logger.debug(
            "Initialized AWSClient",
            extra={"region": region, "profile": profile},
        )

    def _create_config(self) -> Config:
        """
        Create botocore configuration with retry and timeout settings.

        Returns
        -------
        Config
            Botocore configuration object.
        """
        kwargs: Dict[str, Any] = {
            "retries": {
                "max_attempts": self.max_retries,
                "mode": "standard",
            },
            "connect_timeout": self.timeout,
            "read_timeout": self.timeout,
            "max_pool_connections": 50,
        }
        if self.endpoint_url:
            kwargs["s3"] = {"addressing_style": "path"}
        return Config(**kwargs)

    @property
    def session(self) -> boto3.Session:
        """
        Get or create the boto3 session (lazy initialization).

        Raises
        ------
        CredentialsError
            If the profile is not found.
        AWSClientError
            For other session creation failures.
        """
        with self._lock:
            if self._session is None:
                self._session = self._create_session()
            return self._session

    def _create_session(self) -> boto3.Session:
        try:
            session_kwargs = {"region_name": self.region}
            if self.profile:
                session_kwargs["profile_name"] = self.profile

            session = boto3.Session(**session_kwargs)
            logger.debug(f"Created boto3 session for region {self.region}")
            return session

        except ProfileNotFound:
            raise CredentialsError(
                f"AWS profile '{self.profile}' not found",
                details={
                    "profile": self.profile,
                    "hint": "Check ~/.aws/credentials for available profiles",
                },
            )
        except Exception as e:
            logger.exception("Failed to create AWS session")
            raise AWSClientError(
                f"Failed to create AWS session: {e}",
                region=self.region,
            )

    def _get_client(self, service_name: str, region: Optional[str] = None) -> Any:
        """
        Get or create a boto3 client for a service in a region.

        Parameters
        ----------
        service_name : str
            Name of the AWS service (e.g., 's3', 'sts').
        region : str, optional
            Region of the client; defaults to :attr:`region`.

        Raises
        ------
        CredentialsError
            If credentials are not found.
        ServiceError
            If unable to create the client.
        """
        region = region or self.region
        cache_key = f"{service_name}:{region}"
        session = self.session

        with self._lock:
            if cache_key in self._clients:
                return self._clients[cache_key]

            client_kwargs: Dict[str, Any] = {
                "region_name": region,
                "config": self._config,
            }
            if self.endpoint_url and service_name == "s3":
                client_kwargs["endpoint_url"] = self.endpoint_url

            try:
                client = session.client(service_name, **client_kwargs)
            except ProfileNotFound:
                raise CredentialsError(
                    f"AWS profile '{self.profile}' not found",
                    details={"profile": self.profile},
                )
            except NoCredentialsError:
                raise CredentialsError(
                    "AWS credentials not found",
                    details={
                        "hint": (
                            "Configure credentials using 'aws configure' or set "
                            "AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY environment variables"
                        ),
                    },
                )
            except NoRegionError:
                raise ServiceError(
                    f"No region configured for {service_name}",
                    service=service_name,
                )
            except Exception as e:
                logger.exception(f"Failed to create {service_name} client")
                raise ServiceError(
                    f"Failed to create {service_name} client: {e}",
                    service=service_name,
                    region=region,
                )

            self._clients[cache_key] = client
            logger.debug(f"Created {service_name} client for {region}")
            return client

    def get_s3_client(self, region: Optional[str] = None) -> Any:
        """
        Get the S3 client for a region.

        Parameters
        ----------
        region : str, optional
            Region the requests are sent to; defaults to :attr:`region`.

        Returns
        -------
        S3.Client
            Boto3 S3 client.
        """
        return self._get_client("s3", region)

    # =========================================================================
    # Credential and Account Operations
    # =========================================================================

    def validate_credentials(self) -> bool:
        """
        Validate AWS credentials by calling STS GetCallerIdentity.

        Returns
        -------
        bool
            True if credentials are valid.

        Raises
        ------
        CredentialsError
            If credentials are invalid, expired, or missing.
        """
        try:
            sts = self._get_client("sts")
            identity = sts.get_caller_identity()
            logger.info(
                "Credentials validated",
                extra={
                    "account": identity["Account"],
                    "arn": identity["Arn"],
                },
            )
            return True

        except CredentialsError:
            raise
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("InvalidClientTokenId", "SignatureDoesNotMatch"):
                raise CredentialsError(
                    "Invalid AWS credentials",
                    details={
                        "error_code": error_code,
                        "hint": "Check your access key and secret key",
                    },
                )
            raise CredentialsError(f"Failed to validate credentials: {e}")

        except Exception as e:
            logger.exception("Credential validation failed")
            raise CredentialsError(f"Failed to validate credentials: {e}")

    def get_account_id(self) -> str:
        """
        Get the AWS account ID for the current credentials.

        Raises
        ------
        AWSClientError
            If unable to retrieve the account ID.
        """
        try:
            sts = self._get_client("sts")
            identity = sts.get_caller_identity()
            return identity["Account"]
        except Exception as e:
            logger.exception("Failed to get account ID")
            raise AWSClientError(f"Failed to get account ID: {e}")

    def with_region(self, region: str) -> AWSClient:
        """
        Create a new AWSClient with the same settings and another default region.

        Example
        -------
        >>> us_client = AWSClient(region="us-east-1")
        >>> eu_client = us_client.with_region("eu-west-1")
        >>> print(eu_client.region)
        'eu-west-1'
        """
        return AWSClient(
            region=region,
            profile=self.profile,
            max_retries=self.max_retries,
            timeout=self.timeout,
            endpoint_url=self.endpoint_url,
        )

    def __enter__(self) -> AWSClient:
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager and cleanup resources."""
        with self._lock:
            self._clients.clear()
            self._session = None

    def __repr__(self) -> str:
        """Return string representation of the client."""
        return (
            f"AWSClient(region='{self.region}', "
            f"profile={self.profile!r}, "
            f"max_retries={self.max_retries})"
        )


__all__ = ["AWSClient", "AWSClientError", "DEBUG_LOCALSTACK_ENDPOINT"]
