"""
Test Framework Catalogue
========================

Describes the test frameworks Device Farm can run and maps each of them to
the upload type its test package is registered under and the test type used
when scheduling a run.

Usage:
    from devicefarm_runner.farm.frameworks import AppiumLanguage, TestSpec

    spec = TestSpec.appium("tests.zip", AppiumLanguage.PYTHON, web=True)
    spec.upload_type      # UploadType.APPIUM_WEB_PYTHON_TEST_PACKAGE
    spec.test_type        # "APPIUM_WEB_PYTHON"
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from devicefarm_runner.farm.errors import MissingArtifactPathError, UnrecognizedArtifactTypeError


class UploadType(str, Enum):
    """Upload type tags accepted by Device Farm's CreateUpload."""

    ANDROID_APP = "ANDROID_APP"
    IOS_APP = "IOS_APP"
    EXTERNAL_DATA = "EXTERNAL_DATA"
    INSTRUMENTATION_TEST_PACKAGE = "INSTRUMENTATION_TEST_PACKAGE"
    CALABASH_TEST_PACKAGE = "CALABASH_TEST_PACKAGE"
    UIAUTOMATOR_TEST_PACKAGE = "UIAUTOMATOR_TEST_PACKAGE"
    UIAUTOMATION_TEST_PACKAGE = "UIAUTOMATION_TEST_PACKAGE"
    XCTEST_TEST_PACKAGE = "XCTEST_TEST_PACKAGE"
    XCTEST_UI_TEST_PACKAGE = "XCTEST_UI_TEST_PACKAGE"
    APPIUM_JAVA_TESTNG_TEST_PACKAGE = "APPIUM_JAVA_TESTNG_TEST_PACKAGE"
    APPIUM_JAVA_JUNIT_TEST_PACKAGE = "APPIUM_JAVA_JUNIT_TEST_PACKAGE"
    APPIUM_PYTHON_TEST_PACKAGE = "APPIUM_PYTHON_TEST_PACKAGE"
    APPIUM_WEB_JAVA_TESTNG_TEST_PACKAGE = "APPIUM_WEB_JAVA_TESTNG_TEST_PACKAGE"
    APPIUM_WEB_JAVA_JUNIT_TEST_PACKAGE = "APPIUM_WEB_JAVA_JUNIT_TEST_PACKAGE"
    APPIUM_WEB_PYTHON_TEST_PACKAGE = "APPIUM_WEB_PYTHON_TEST_PACKAGE"


class Framework(str, Enum):
    """Test frameworks supported by Device Farm."""

    INSTRUMENTATION = "INSTRUMENTATION"
    CALABASH = "CALABASH"
    UIAUTOMATOR = "UIAUTOMATOR"
    UIAUTOMATION = "UIAUTOMATION"
    XCTEST = "XCTEST"
    XCTEST_UI = "XCTEST_UI"
    APPIUM = "APPIUM"


class AppiumLanguage(str, Enum):
    """Language/runner combinations available for Appium tests."""

    JAVA_TESTNG = "JAVA_TESTNG"
    JAVA_JUNIT = "JAVA_JUNIT"
    PYTHON = "PYTHON"


class ArtifactCategory(str, Enum):
    """Artifact categories accepted by ListArtifacts."""

    FILE = "FILE"
    LOG = "LOG"
    SCREENSHOT = "SCREENSHOT"


# Test type (as used by ScheduleRun) → upload type of its test package
TEST_PACKAGE_UPLOAD_TYPES: dict[str, UploadType] = {
    "INSTRUMENTATION": UploadType.INSTRUMENTATION_TEST_PACKAGE,
    "CALABASH": UploadType.CALABASH_TEST_PACKAGE,
    "UIAUTOMATOR": UploadType.UIAUTOMATOR_TEST_PACKAGE,
    "UIAUTOMATION": UploadType.UIAUTOMATION_TEST_PACKAGE,
    "XCTEST": UploadType.XCTEST_TEST_PACKAGE,
    "XCTEST_UI": UploadType.XCTEST_UI_TEST_PACKAGE,
    "APPIUM_JAVA_TESTNG": UploadType.APPIUM_JAVA_TESTNG_TEST_PACKAGE,
    "APPIUM_JAVA_JUNIT": UploadType.APPIUM_JAVA_JUNIT_TEST_PACKAGE,
    "APPIUM_PYTHON": UploadType.APPIUM_PYTHON_TEST_PACKAGE,
    "APPIUM_WEB_JAVA_TESTNG": UploadType.APPIUM_WEB_JAVA_TESTNG_TEST_PACKAGE,
    "APPIUM_WEB_JAVA_JUNIT": UploadType.APPIUM_WEB_JAVA_JUNIT_TEST_PACKAGE,
    "APPIUM_WEB_PYTHON": UploadType.APPIUM_WEB_PYTHON_TEST_PACKAGE,
}


@dataclass(frozen=True)
class TestSpec:
    """
    A test package to upload and run, tagged with its framework.

    Attributes:
        framework: The test framework.
        path: Local path to the test package (or Calabash features zip).
        language: Appium language/runner; required for Appium, forbidden otherwise.
        web: Whether an Appium test targets the mobile web browser.
        filter: Optional test filter passed to ScheduleRun.
        parameters: Optional framework parameters passed to ScheduleRun.
    """

    __test__ = False  # not a pytest test class

    framework: Framework
    path: str
    language: Optional[AppiumLanguage] = None
    web: bool = False
    filter: Optional[str] = None
    parameters: dict[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        if self.framework is Framework.APPIUM:
            if self.language is None:
                raise ValueError("Appium tests need a language")
        elif self.language is not None or self.web:
            raise ValueError(
                f"language/web only apply to Appium tests, not {self.framework.value}"
            )

    # ── Constructors ───────────────────────────────────────────────

    @classmethod
    def instrumentation(cls, path: str, **kwargs: Any) -> "TestSpec":
        return cls(Framework.INSTRUMENTATION, path, **kwargs)

    @classmethod
    def calabash(cls, path: str, **kwargs: Any) -> "TestSpec":
        return cls(Framework.CALABASH, path, **kwargs)

    @classmethod
    def uiautomator(cls, path: str, **kwargs: Any) -> "TestSpec":
        return cls(Framework.UIAUTOMATOR, path, **kwargs)

    @classmethod
    def uiautomation(cls, path: str, **kwargs: Any) -> "TestSpec":
        return cls(Framework.UIAUTOMATION, path, **kwargs)

    @classmethod
    def xctest(cls, path: str, **kwargs: Any) -> "TestSpec":
        return cls(Framework.XCTEST, path, **kwargs)

    @classmethod
    def xctest_ui(cls, path: str, **kwargs: Any) -> "TestSpec":
        return cls(Framework.XCTEST_UI, path, **kwargs)

    @classmethod
    def appium(
        cls,
        path: str,
        language: AppiumLanguage,
        web: bool = False,
        **kwargs: Any,
    ) -> "TestSpec":
        return cls(Framework.APPIUM, path, language=AppiumLanguage(language), web=web, **kwargs)

    # ── Derived tags ───────────────────────────────────────────────

    @property
    def test_type(self) -> str:
        """ScheduleRun test type, e.g. ``XCTEST_UI`` or ``APPIUM_WEB_PYTHON``."""
        if self.framework is not Framework.APPIUM:
            return self.framework.value
        prefix = "APPIUM_WEB" if self.web else "APPIUM"
        return f"{prefix}_{self.language.value}"

    @property
    def upload_type(self) -> UploadType:
        return TEST_PACKAGE_UPLOAD_TYPES[self.test_type]

    def schedule_test(self, test_package_arn: str) -> dict[str, Any]:
        """
        Build the ``test`` argument for ScheduleRun.

        Args:
            test_package_arn: ARN of the uploaded test package.

        Returns:
            Request dict with type, package ARN and any filter/parameters.
        """
        test: dict[str, Any] = {
            "type": self.test_type,
            "testPackageArn": test_package_arn,
        }
        if self.filter:
            test["filter"] = self.filter
        if self.parameters:
            test["parameters"] = dict(self.parameters)
        return test


def _suffix(path: Optional[str]) -> str:
    if not path:
        raise MissingArtifactPathError()
    # Path.suffix ignores dotfiles, so a file named ".apk" would slip through
    name = Path(path).name.lower()
    return name[name.rfind("."):] if "." in name else ""


def classify_app(path: Optional[str]) -> UploadType:
    """
    Pick the upload type for an application binary.

    ``.apk`` is an Android app; ``.ipa`` and ``.zip`` are iOS apps.
    """
    suffix = _suffix(path)
    if suffix == ".apk":
        return UploadType.ANDROID_APP
    if suffix in (".ipa", ".zip"):
        return UploadType.IOS_APP
    raise UnrecognizedArtifactTypeError(path, "app")


def app_platform(path: Optional[str]) -> str:
    """Device platform (``ANDROID`` or ``IOS``) the app binary targets."""
    if classify_app(path) is UploadType.ANDROID_APP:
        return "ANDROID"
    return "IOS"


def classify_extra_data(path: Optional[str]) -> UploadType:
    """Extra data must be a ``.zip`` archive."""
    if _suffix(path) == ".zip":
        return UploadType.EXTERNAL_DATA
    raise UnrecognizedArtifactTypeError(path, "extra data file")

