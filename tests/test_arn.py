"""
Tests for Device Farm ARN helpers
=================================

- Splitting ARNs into segments and rejecting malformed ones
- Rewriting the resource type/path to move between run, job and suite
- Splitting resource paths into parent and leaf ids
"""

import pytest

from devicefarm_runner.farm import arn as arns
from devicefarm_runner.farm.errors import ArnFormatError
from tests.conftest import RUN_ARN


class TestSplitArn:
    def test_seven_segments(self):
        segments = arns.split_arn(RUN_ARN)
        assert len(segments) == 7
        assert segments[5] == "run"
        assert segments[6] == "proj-1/run-1"

    def test_too_few_segments(self):
        with pytest.raises(ArnFormatError, match="expected 7"):
            arns.split_arn("arn:aws:devicefarm:us-west-2:run:proj-1/run-1")

    def test_too_many_segments(self):
        with pytest.raises(ArnFormatError):
            arns.split_arn(RUN_ARN + ":extra")

    def test_empty(self):
        with pytest.raises(ArnFormatError, match="empty"):
            arns.split_arn("")

    def test_resource_type(self):
        assert arns.resource_type(RUN_ARN) == "run"

    def test_resource_path(self):
        assert arns.resource_path(RUN_ARN) == "proj-1/run-1"

    def test_empty_resource_path(self):
        with pytest.raises(ArnFormatError, match="empty resource path"):
            arns.resource_path("arn:aws:devicefarm:us-west-2:123:run:")


class TestSiblingArn:
    def test_job_from_run(self):
        result = arns.sibling_arn("a:b:c:d:e:f:run-id", "job", "run-id/job-1")
        assert result == "a:b:c:d:e:job:run-id/job-1"

    def test_suite_from_run(self):
        result = arns.sibling_arn("a:b:c:d:e:f:run-id", "suite", "run-id/job-1/s-1")
        assert result == "a:b:c:d:e:suite:run-id/job-1/s-1"

    def test_other_segments_preserved(self):
        result = arns.job_arn(RUN_ARN, "proj-1/run-1/job-9")
        original = RUN_ARN.split(":")
        rebuilt = result.split(":")
        assert len(rebuilt) == 7
        assert rebuilt[:5] == original[:5]
        assert rebuilt[5] == "job"
        assert rebuilt[6] == "proj-1/run-1/job-9"

    def test_suite_arn_helper(self):
        result = arns.suite_arn(RUN_ARN, "proj-1/run-1/job-1/suite-1")
        assert result == (
            "arn:aws:devicefarm:us-west-2:123456789012:suite:proj-1/run-1/job-1/suite-1"
        )

    def test_path_with_colon_rejected(self):
        with pytest.raises(ArnFormatError):
            arns.sibling_arn(RUN_ARN, "job", "proj-1:oops")

    def test_empty_type_rejected(self):
        with pytest.raises(ArnFormatError):
            arns.sibling_arn(RUN_ARN, "", "proj-1/run-1")

    def test_malformed_source_rejected(self):
        with pytest.raises(ArnFormatError):
            arns.job_arn("not-an-arn", "proj-1/run-1/job-1")


class TestSplitLeaf:
    def test_artifact_path(self):
        assert arns.split_leaf("testXYZ/artifact123") == ("testXYZ", "artifact123")

    def test_deep_path(self):
        parent, leaf = arns.split_leaf("p/r/j/s/t/a")
        assert parent == "p/r/j/s/t"
        assert leaf == "a"

    def test_no_separator(self):
        with pytest.raises(ArnFormatError):
            arns.split_leaf("artifact123")

    def test_trailing_separator(self):
        with pytest.raises(ArnFormatError):
            arns.split_leaf("testXYZ/")

    def test_short_id(self):
        assert arns.short_id(RUN_ARN) == "run-1"

    def test_short_id_without_slash(self):
        assert arns.short_id("arn:aws:devicefarm:us-west-2:123:project:proj-1") == "proj-1"
