"""
Device Farm Integration Module
==============================

This package contains:
    - client: DeviceFarmClient wrapping the boto3 devicefarm API
    - frameworks: Test framework catalogue and upload type classification
    - arn: Helpers for moving between run/job/suite/test ARNs
    - errors: Exception hierarchy
"""

from devicefarm_runner.farm.client import ArtifactCollection, DeviceFarmClient
from devicefarm_runner.farm.errors import DeviceFarmError, NotFoundError
from devicefarm_runner.farm.frameworks import (
    AppiumLanguage,
    ArtifactCategory,
    Framework,
    TestSpec,
    UploadType,
)

__all__ = [
    "ArtifactCollection",
    "DeviceFarmClient",
    "DeviceFarmError",
    "NotFoundError",
    "AppiumLanguage",
    "ArtifactCategory",
    "Framework",
    "TestSpec",
    "UploadType",
]
