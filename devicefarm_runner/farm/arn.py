"""
Device Farm ARN helpers.

Device Farm resource names look like::

    arn:aws:devicefarm:us-west-2:123456789012:run:<project-id>/<run-id>

Index 5 is the resource type and index 6 is the slash-delimited resource
path. Jobs, suites, tests and artifacts extend the path of their parent
(``<project-id>/<run-id>/<job-id>/...``), which is what lets us move between
levels of a run by rewriting those two segments.
"""

from devicefarm_runner.farm.errors import ArnFormatError

ARN_SEGMENTS = 7
RESOURCE_TYPE_INDEX = 5
RESOURCE_PATH_INDEX = 6


def split_arn(arn: str) -> list[str]:
    """Split an ARN into its seven colon-delimited segments."""
    if not arn:
        raise ArnFormatError(str(arn), "empty ARN")
    segments = arn.split(":")
    if len(segments) != ARN_SEGMENTS:
        raise ArnFormatError(
            arn, f"expected {ARN_SEGMENTS} ':'-separated segments, got {len(segments)}"
        )
    return segments


def resource_type(arn: str) -> str:
    return split_arn(arn)[RESOURCE_TYPE_INDEX]


def resource_path(arn: str) -> str:
    """Return the resource path, e.g. ``<project-id>/<run-id>/<job-id>``."""
    path = split_arn(arn)[RESOURCE_PATH_INDEX]
    if not path:
        raise ArnFormatError(arn, "empty resource path")
    return path


def sibling_arn(arn: str, new_type: str, path: str) -> str:
    """
    Rebuild ``arn`` with a different resource type and path.

    All other segments (partition, service, region, account) are kept, so a
    run ARN can be turned into the ARN of one of its jobs or suites.

    Args:
        arn: Any well-formed Device Farm ARN, usually a run ARN.
        new_type: Resource type to put at index 5 (``job``, ``suite``...).
        path: Resource path to put at index 6.

    Returns:
        The rebuilt ARN, still seven segments long.
    """
    if not new_type or ":" in new_type:
        raise ArnFormatError(arn, f"invalid resource type {new_type!r}")
    if not path or ":" in path:
        raise ArnFormatError(arn, f"invalid resource path {path!r}")
    segments = split_arn(arn)
    segments[RESOURCE_TYPE_INDEX] = new_type
    segments[RESOURCE_PATH_INDEX] = path
    return ":".join(segments)


def job_arn(run_arn: str, job_path: str) -> str:
    return sibling_arn(run_arn, "job", job_path)


def suite_arn(run_arn: str, suite_path: str) -> str:
    return sibling_arn(run_arn, "suite", suite_path)


def split_leaf(path: str) -> tuple[str, str]:
    """
    Split a resource path into ``(parent, leaf)`` on the last ``/``.

    >>> split_leaf("proj/run/job/suite/testXYZ/artifact123")
    ('proj/run/job/suite/testXYZ', 'artifact123')
    """
    parent, sep, leaf = path.rpartition("/")
    if not sep or not parent or not leaf:
        raise ArnFormatError(path, "resource path has no parent/leaf separator")
    return parent, leaf


def short_id(arn: str) -> str:
    """Return the last path component of an ARN (the resource's own id)."""
    path = resource_path(arn)
    return path.rpartition("/")[2]
