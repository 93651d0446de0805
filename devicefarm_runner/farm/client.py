"""
AWS Device Farm Client
======================

Synchronous wrapper around the boto3 ``devicefarm`` client for automated
test runs.

This client handles:
- Authentication (explicit keys, STS role assumption, or default chain)
- Project / device pool / device discovery
- App, test package and extra data uploads via pre-signed S3 URLs
- Run scheduling
- Collecting run artifacts into a run → job → suite → test folder tree

Prerequisites:
    - AWS account with Device Farm access
    - IAM credentials with devicefarm:* permissions (and sts:AssumeRole
      when a role ARN is used)
    - boto3 and httpx installed

Usage:
    from devicefarm_runner.farm import DeviceFarmClient, TestSpec

    farm = DeviceFarmClient(role_arn="arn:aws:iam::123456789012:role/ci")
    project = farm.get_project("my-app")
    pool = farm.get_device_pool(project, "Top Devices")
    app = farm.upload_app(project, "build/app-debug.apk")
    spec = TestSpec.instrumentation("build/app-debug-androidTest.apk")
    tests = farm.upload_test(project, spec)
    run = farm.schedule_run(
        project["arn"], "nightly", pool["arn"],
        spec.schedule_test(tests["arn"]), app_arn=app["arn"],
    )["run"]
"""

import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, TextIO, Union

import boto3
import httpx
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from devicefarm_runner.config import DeviceFarmSettings, get_settings
from devicefarm_runner.farm import arn as arns
from devicefarm_runner.farm.errors import (
    ArnFormatError,
    ArtifactDownloadError,
    CredentialsExchangeError,
    LocalFileNotFoundError,
    MissingArtifactPathError,
    NotFoundError,
    UploadFailedError,
    UploadRejectedError,
    UploadTimeoutError,
    UploadTransportError,
    WaitInterruptedError,
)
from devicefarm_runner.farm.frameworks import (
    ArtifactCategory,
    TestSpec,
    UploadType,
    classify_app,
    classify_extra_data,
)
from devicefarm_runner.utils.logger import LogContext, get_logger
from devicefarm_runner.utils.security import (
    SecureString,
    generate_session_suffix,
    sanitize_for_logging,
)

logger = get_logger(__name__)

UPLOAD_CONTENT_TYPE = "application/octet-stream"
ROLE_SESSION_PREFIX = "devicefarm-runner-"

ProjectRef = Union[str, dict[str, Any]]


@dataclass
class ArtifactCollection:
    """
    Result of downloading a run's artifacts.

    Attributes:
        jobs: Job resource path → job directory.
        suites: Suite resource path → suite directory.
        tests: Test resource path → test directory.
        files: Every artifact file written, in download order.
    """

    jobs: dict[str, Path] = field(default_factory=dict)
    suites: dict[str, Path] = field(default_factory=dict)
    tests: dict[str, Path] = field(default_factory=dict)
    files: list[Path] = field(default_factory=list)

    def directories(self) -> dict[str, Path]:
        """All job, suite and test directories keyed by resource path."""
        return {**self.jobs, **self.suites, **self.tests}


class DeviceFarmClient:
    """
    AWS Device Farm API wrapper.

    Every method is a blocking boto3 call (or a short sequence of them).
    The only waiting happens while an upload is being processed, where the
    upload status is polled at a fixed interval.
    """

    def __init__(
        self,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        aws_session_token: Optional[str] = None,
        role_arn: Optional[str] = None,
        region: Optional[str] = None,
        api: Any = None,
        http: Optional[httpx.Client] = None,
        log_stream: Optional[TextIO] = None,
        upload_poll_interval: Optional[float] = None,
        upload_timeout: Optional[float] = None,
        settings: Optional[DeviceFarmSettings] = None,
    ) -> None:
        """
        Initialize the Device Farm client.

        Args:
            aws_access_key_id: Explicit access key (defaults to config).
            aws_secret_access_key: Explicit secret key (defaults to config).
            aws_session_token: Session token for temporary credentials.
            role_arn: IAM role to assume before talking to Device Farm.
            region: AWS region (defaults to config, us-west-2).
            api: Pre-built boto3 devicefarm client; skips credential setup.
            http: httpx client used for S3 uploads and artifact downloads.
            log_stream: Optional writer receiving human-readable progress lines.
            upload_poll_interval: Seconds between upload status checks.
            upload_timeout: Give up on an upload after this many seconds.
            settings: Device Farm settings (defaults to the cached settings).

        Raises:
            CredentialsExchangeError: If the role cannot be assumed.
        """
        self.settings = settings or get_settings().device_farm
        self.region = region or self.settings.aws_region
        self.upload_poll_interval = (
            upload_poll_interval
            if upload_poll_interval is not None
            else self.settings.upload_poll_interval
        )
        self.upload_timeout = (
            upload_timeout if upload_timeout is not None else self.settings.upload_timeout
        )
        self.log_stream = log_stream

        if api is None:
            api = self._build_api(
                aws_access_key_id or self.settings.aws_access_key_id,
                SecureString(aws_secret_access_key or self.settings.aws_secret_access_key),
                SecureString(aws_session_token or self.settings.aws_session_token),
                role_arn or self.settings.aws_role_arn,
            )
        self._api = api
        self._http = http or httpx.Client(timeout=self.settings.http_timeout)

    # ── Builder ───────────────────────────────────────────────────

    def with_log_stream(self, stream: Optional[TextIO]) -> "DeviceFarmClient":
        """Set the progress writer and return the client."""
        self.log_stream = stream
        return self

    # ── boto3 helpers ─────────────────────────────────────────────

    def _build_api(
        self,
        access_key: str,
        secret_key: SecureString,
        session_token: SecureString,
        role_arn: str,
    ) -> Any:
        """Create the boto3 devicefarm client, assuming a role if asked to."""
        kwargs: dict[str, Any] = {
            "region_name": self.region,
            "config": Config(user_agent_extra=self.settings.device_farm_user_agent),
        }

        # Explicit credentials are optional – falls back to the default
        # credential chain: env vars, ~/.aws/credentials, instance role
        credentials: dict[str, str] = {}
        if access_key and secret_key:
            credentials["aws_access_key_id"] = access_key
            credentials["aws_secret_access_key"] = secret_key.get_secret()
            if session_token:
                credentials["aws_session_token"] = session_token.get_secret()

        if role_arn:
            credentials = self._assume_role(role_arn, credentials)

        logger.debug(
            "Creating boto3 devicefarm client",
            region=self.region,
            credentials=sanitize_for_logging(credentials),
            role_arn=role_arn or None,
        )
        return boto3.client("devicefarm", **kwargs, **credentials)

    def _assume_role(self, role_arn: str, base_credentials: dict[str, str]) -> dict[str, str]:
        """Exchange a role ARN for temporary credentials via STS."""
        session_name = ROLE_SESSION_PREFIX + generate_session_suffix(8)
        logger.info("Assuming IAM role", role_arn=role_arn, session_name=session_name)
        try:
            sts = boto3.client("sts", region_name=self.region, **base_credentials)
            response = sts.assume_role(RoleArn=role_arn, RoleSessionName=session_name)
            creds = response["Credentials"]
            return {
                "aws_access_key_id": creds["AccessKeyId"],
                "aws_secret_access_key": creds["SecretAccessKey"],
                "aws_session_token": creds["SessionToken"],
            }
        except (ClientError, BotoCoreError, KeyError) as e:
            logger.error("Failed to assume role", role_arn=role_arn, error=str(e))
            raise CredentialsExchangeError(role_arn, str(e)) from e

    def _paginate(self, operation: str, result_key: str, **kwargs: Any) -> list[dict[str, Any]]:
        """Run a paginated list call and flatten its pages."""
        paginator = self._api.get_paginator(operation)
        items: list[dict[str, Any]] = []
        for page in paginator.paginate(**kwargs):
            items.extend(page.get(result_key, []))
        return items

    def _project_arn(self, project: ProjectRef) -> str:
        if isinstance(project, str):
            project = self.get_project(project)
        return project["arn"]

    # ── Discovery ─────────────────────────────────────────────────

    def list_projects(self) -> list[dict[str, Any]]:
        """Get all Device Farm projects."""
        return self._paginate("list_projects", "projects")

    def get_project(self, name: str) -> dict[str, Any]:
        """
        Get a Device Farm project by exact (case-sensitive) name.

        Raises:
            NotFoundError: If no project has that name.
        """
        for project in self.list_projects():
            if project.get("name") == name:
                return project
        raise NotFoundError("Project", name)

    def list_device_pools(self, project: ProjectRef) -> list[dict[str, Any]]:
        """Get the device pools of a project (project dict or project name)."""
        return self._paginate("list_device_pools", "devicePools", arn=self._project_arn(project))

    def get_device_pool(self, project: ProjectRef, name: str) -> dict[str, Any]:
        """
        Get a device pool of a project by exact (case-sensitive) name.

        Raises:
            NotFoundError: If the project or the device pool is not found.
        """
        for pool in self.list_device_pools(project):
            if pool.get("name") == name:
                return pool
        raise NotFoundError("DevicePool", name)

    def list_devices(self, project: ProjectRef) -> list[dict[str, Any]]:
        """Get the devices available to a project."""
        return self._paginate("list_devices", "devices", arn=self._project_arn(project))

    def get_account_settings(self) -> Optional[dict[str, Any]]:
        """
        Get the account settings.

        Returns:
            The account settings, or None if the account has none.
        """
        try:
            return self._api.get_account_settings()["accountSettings"]
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "NotFoundException":
                logger.debug("No account settings for this account")
                return None
            raise

    def get_unmetered_device_count(self, os: str) -> int:
        """
        Number of unmetered device slots for ``ANDROID`` or ``IOS``.

        Returns 0 for other platforms or when the account has no settings.
        """
        platform = os.upper()
        if platform not in ("ANDROID", "IOS"):
            return 0
        account_settings = self.get_account_settings()
        if account_settings is None:
            return 0
        return int(account_settings.get("unmeteredDevices", {}).get(platform, 0))

    # ── Uploads ───────────────────────────────────────────────────

    def upload_app(self, project: ProjectRef, path: Optional[str], **kwargs: Any) -> dict[str, Any]:
        """
        Upload an app to be tested (.apk for Android, .ipa/.zip for iOS).

        Raises:
            MissingArtifactPathError: If no path was given.
            UnrecognizedArtifactTypeError: If the extension is not supported.
        """
        return self.upload(project, path, classify_app(path), **kwargs)

    def upload_extra_data(self, project: ProjectRef, path: Optional[str], **kwargs: Any) -> dict[str, Any]:
        """Upload an extra data .zip archive."""
        return self.upload(project, path, classify_extra_data(path), **kwargs)

    def upload_test(self, project: ProjectRef, test: TestSpec, **kwargs: Any) -> dict[str, Any]:
        """Upload the test package described by ``test``."""
        return self.upload(project, test.path, test.upload_type, **kwargs)

    def upload(
        self,
        project: ProjectRef,
        path: Optional[str],
        upload_type: UploadType,
        synchronous: bool = True,
        cancel_event: Optional[threading.Event] = None,
    ) -> dict[str, Any]:
        """
        Upload a local file to Device Farm.

        Creates the upload, PUTs the file to the pre-signed URL and, when
        synchronous, waits until Device Farm has processed it.

        Args:
            project: Project dict or project name.
            path: Local file to upload.
            upload_type: Device Farm upload type tag.
            synchronous: Wait for the upload to succeed or fail.
            cancel_event: Setting this event aborts the wait.

        Returns:
            The Device Farm upload (final state when synchronous).

        Raises:
            MissingArtifactPathError: If no path was given.
            LocalFileNotFoundError: If the path is not an existing file.
            UploadTransportError: If the PUT request could not be sent.
            UploadRejectedError: If the PUT returned a non-200 status.
            UploadFailedError: If Device Farm reports the upload as FAILED.
            WaitInterruptedError: If the wait was cancelled or interrupted.
            UploadTimeoutError: If the upload did not finish in time.
        """
        if not path:
            raise MissingArtifactPathError()

        file_path = Path(path)
        if not file_path.is_file():
            raise LocalFileNotFoundError(str(path))

        with LogContext(upload=file_path.name, upload_type=UploadType(upload_type).value):
            upload = self._api.create_upload(
                name=file_path.name,
                projectArn=self._project_arn(project),
                contentType=UPLOAD_CONTENT_TYPE,
                type=UploadType(upload_type).value,
            )["upload"]

            self._put_file(file_path, upload["url"], upload.get("contentType", UPLOAD_CONTENT_TYPE))

            if not synchronous:
                return upload
            return self._wait_for_upload(upload, file_path.name, cancel_event)

    def _put_file(self, file_path: Path, url: str, content_type: str) -> None:
        self._write_to_log(f"Uploading {file_path.name} to S3")
        try:
            with file_path.open("rb") as fh:
                response = self._http.put(
                    url,
                    content=fh,
                    headers={"Content-Type": content_type},
                )
        except (httpx.HTTPError, OSError) as e:
            logger.error("Upload request failed", file=file_path.name, error=str(e))
            raise UploadTransportError(file_path.name, str(e)) from e

        if response.status_code != 200:
            logger.error(
                "Upload rejected",
                file=file_path.name,
                status=response.status_code,
            )
            raise UploadRejectedError(file_path.name, response.status_code)

    def _wait_for_upload(
        self,
        upload: dict[str, Any],
        display_name: str,
        cancel_event: Optional[threading.Event],
    ) -> dict[str, Any]:
        """Poll an upload until it is SUCCEEDED or FAILED."""
        deadline = (
            time.monotonic() + self.upload_timeout if self.upload_timeout is not None else None
        )

        while True:
            upload = self._api.get_upload(arn=upload["arn"])["upload"]
            status = str(upload.get("status", "")).upper()

            if status == "SUCCEEDED":
                self._write_to_log(f"Upload {display_name} succeeded")
                return upload
            if status == "FAILED":
                metadata = upload.get("metadata")
                self._write_to_log(f"Error message from device farm: '{metadata}'")
                raise UploadFailedError(upload.get("name", display_name), metadata)

            if deadline is not None and time.monotonic() >= deadline:
                self._write_to_log(f"Gave up waiting for upload {display_name}")
                raise UploadTimeoutError(display_name, self.upload_timeout, status)

            self._write_to_log(
                f"Waiting for upload {display_name} to be ready (current status: {status})"
            )
            self._sleep(display_name, cancel_event)

    def _sleep(self, display_name: str, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None:
            if cancel_event.wait(self.upload_poll_interval):
                self._write_to_log("Cancelled while waiting for the upload to complete")
                raise WaitInterruptedError(display_name)
            return
        try:
            time.sleep(self.upload_poll_interval)
        except KeyboardInterrupt as e:
            self._write_to_log("Interrupted while waiting for the upload to complete")
            raise WaitInterruptedError(display_name) from e

    # ── Runs ──────────────────────────────────────────────────────

    def schedule_run(
        self,
        project_arn: str,
        name: str,
        device_pool_arn: str,
        test: dict[str, Any],
        app_arn: Optional[str] = None,
        job_timeout_minutes: Optional[int] = None,
        configuration: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Schedule a test run.

        Args:
            project_arn: ARN of the project to run in.
            name: Name of the run.
            device_pool_arn: ARN of the device pool to test against.
            test: ScheduleRun test dict (see TestSpec.schedule_test).
            app_arn: ARN of the uploaded app, if the test needs one.
            job_timeout_minutes: Per-job timeout; only sent when it differs
                from Device Farm's default.
            configuration: ScheduleRun configuration dict.

        Returns:
            The raw ScheduleRun response.
        """
        request: dict[str, Any] = {
            "projectArn": project_arn,
            "name": name,
            "devicePoolArn": device_pool_arn,
            "test": test,
        }

        default_timeout = self.settings.default_job_timeout_minutes
        if job_timeout_minutes is not None and job_timeout_minutes != default_timeout:
            request["executionConfiguration"] = {"jobTimeoutMinutes": job_timeout_minutes}

        if configuration is not None:
            request["configuration"] = configuration

        if app_arn is not None:
            request["appArn"] = app_arn

        logger.info("Scheduling run", name=name, project_arn=project_arn, test_type=test.get("type"))
        return self._api.schedule_run(**request)

    def describe_run(self, run_arn: str) -> dict[str, Any]:
        return self._api.get_run(arn=run_arn)["run"]

    # ── Results ───────────────────────────────────────────────────

    def list_artifacts(self, run_arn: str, category: ArtifactCategory) -> list[dict[str, Any]]:
        return self._paginate(
            "list_artifacts", "artifacts", arn=run_arn, type=ArtifactCategory(category).value
        )

    def list_jobs(self, run_arn: str) -> list[dict[str, Any]]:
        return self._paginate("list_jobs", "jobs", arn=run_arn)

    def list_suites(self, job_arn: str) -> list[dict[str, Any]]:
        return self._paginate("list_suites", "suites", arn=job_arn)

    def list_tests(self, suite_arn: str) -> list[dict[str, Any]]:
        return self._paginate("list_tests", "tests", arn=suite_arn)

    def get_artifacts(self, run_arn: str, destination: Union[str, Path]) -> ArtifactCollection:
        """
        Download every artifact of a run.

        Artifacts land in ``destination/<job>/<suite>/<test>/`` and are named
        ``<artifact name>-<artifact id>.<extension>``. Files already written
        stay on disk if a later step fails.

        Args:
            run_arn: ARN of a finished run.
            destination: Root directory for the downloaded tree.

        Returns:
            ArtifactCollection with the directory maps and written files.

        Raises:
            ArnFormatError: If run_arn is not a run ARN.
            ArtifactDownloadError: If an artifact cannot be fetched.
        """
        if arns.resource_type(run_arn) != "run":
            raise ArnFormatError(run_arn, "not a run ARN")

        root = Path(destination)
        collection = ArtifactCollection()
        with LogContext(run_arn=run_arn):
            collection.jobs = self._collect_jobs(run_arn, root)
            collection.suites = self._collect_suites(run_arn, collection.jobs)
            collection.tests = self._collect_tests(run_arn, collection.suites)

            for category in ArtifactCategory:
                for artifact in self.list_artifacts(run_arn, category):
                    collection.files.append(self._download_artifact(artifact, collection.tests))

            self._write_to_log(
                f"Downloaded {len(collection.files)} artifacts to {root}"
            )
        return collection

    def _collect_jobs(self, run_arn: str, root: Path) -> dict[str, Path]:
        jobs: dict[str, Path] = {}
        for job in self.list_jobs(run_arn):
            path = arns.resource_path(job["arn"])
            # Two jobs can share a name, so suffix the device OS (or job id)
            os_version = (job.get("device") or {}).get("os")
            suffix = os_version if os_version else arns.short_id(job["arn"])
            jobs[path] = root / f"{job['name']}-{suffix}"
            jobs[path].mkdir(parents=True, exist_ok=True)
        return jobs

    def _collect_suites(self, run_arn: str, jobs: dict[str, Path]) -> dict[str, Path]:
        suites: dict[str, Path] = {}
        for job_path, job_dir in jobs.items():
            for suite in self.list_suites(arns.job_arn(run_arn, job_path)):
                path = arns.resource_path(suite["arn"])
                suites[path] = job_dir / suite["name"]
                suites[path].mkdir(parents=True, exist_ok=True)
        return suites

    def _collect_tests(self, run_arn: str, suites: dict[str, Path]) -> dict[str, Path]:
        tests: dict[str, Path] = {}
        for suite_path, suite_dir in suites.items():
            for test in self.list_tests(arns.suite_arn(run_arn, suite_path)):
                path = arns.resource_path(test["arn"])
                tests[path] = suite_dir / test["name"]
                tests[path].mkdir(parents=True, exist_ok=True)
        return tests

    def _download_artifact(self, artifact: dict[str, Any], tests: dict[str, Path]) -> Path:
        test_path, artifact_id = arns.split_leaf(arns.resource_path(artifact["arn"]))
        test_dir = tests.get(test_path)
        if test_dir is None:
            raise ArtifactDownloadError(artifact["arn"], f"unknown test {test_path}")

        extension = str(artifact.get("extension", ""))
        if extension.startswith("."):
            extension = extension[1:]
        target = test_dir / f"{artifact['name']}-{artifact_id}.{extension}"

        try:
            response = self._http.get(artifact["url"])
        except httpx.HTTPError as e:
            raise ArtifactDownloadError(artifact["arn"], str(e)) from e
        if response.status_code != 200:
            raise ArtifactDownloadError(
                artifact["arn"], f"download returned {response.status_code}"
            )

        target.write_bytes(response.content)
        logger.debug("Artifact saved", artifact=artifact["name"], path=str(target))
        return target

    # ── Helpers ───────────────────────────────────────────────────

    def _write_to_log(self, message: str) -> None:
        """Send a progress line to the structured log and the optional writer."""
        logger.info(message)
        if self.log_stream is not None:
            self.log_stream.write(f"[DeviceFarm] {message}\n")
