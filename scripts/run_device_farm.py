#!/usr/bin/env python3
"""
Device Farm Run Script
======================

Command line front end for the Device Farm client.

Usage:
    # Discovery
    python scripts/run_device_farm.py projects
    python scripts/run_device_farm.py pools "My Project"
    python scripts/run_device_farm.py devices "My Project"

    # Upload, schedule, wait and collect artifacts
    python scripts/run_device_farm.py run "My Project" "Top Devices" \\
        --app build/app.apk --tests build/tests.zip \\
        --framework APPIUM --appium-language PYTHON --results results/

Credentials come from .env / the environment (AWS_ACCESS_KEY_ID,
AWS_SECRET_ACCESS_KEY, AWS_ROLE_ARN) or the default AWS credential chain.
"""

import argparse
import sys
import time
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from devicefarm_runner.farm import (
    AppiumLanguage,
    DeviceFarmClient,
    DeviceFarmError,
    Framework,
    TestSpec,
)
from devicefarm_runner.farm.frameworks import app_platform
from devicefarm_runner.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

RUN_FINISHED = "COMPLETED"


def cmd_projects(farm: DeviceFarmClient, args: argparse.Namespace) -> int:
    for project in farm.list_projects():
        print(f"{project['name']:<40} {project['arn']}")
    return 0


def cmd_pools(farm: DeviceFarmClient, args: argparse.Namespace) -> int:
    for pool in farm.list_device_pools(args.project):
        print(f"{pool['name']:<40} {pool.get('type', ''):<10} {pool['arn']}")
    return 0


def cmd_devices(farm: DeviceFarmClient, args: argparse.Namespace) -> int:
    for device in farm.list_devices(args.project):
        print(
            f"{device.get('name', '')[:39]:<40} {device.get('platform', ''):<8} "
            f"{device.get('os', ''):<8} {device['arn']}"
        )
    return 0


def _test_spec(args: argparse.Namespace) -> TestSpec:
    framework = Framework(args.framework)
    if framework is Framework.APPIUM:
        return TestSpec.appium(
            args.tests,
            AppiumLanguage(args.appium_language),
            web=args.web,
            filter=args.filter,
        )
    return TestSpec(framework, args.tests, filter=args.filter)


def cmd_run(farm: DeviceFarmClient, args: argparse.Namespace) -> int:
    project = farm.get_project(args.project)
    pool = farm.get_device_pool(project, args.device_pool)
    spec = _test_spec(args)

    app_arn = None
    if args.app:
        app_arn = farm.upload_app(project, args.app)["arn"]
        platform = app_platform(args.app)
        print(f"Unmetered {platform} devices: {farm.get_unmetered_device_count(platform)}")

    if args.extra_data:
        farm.upload_extra_data(project, args.extra_data)

    test_upload = farm.upload_test(project, spec)

    configuration = None
    if args.extra_data_arn:
        configuration = {"extraDataPackageArn": args.extra_data_arn}

    run = farm.schedule_run(
        project["arn"],
        args.name,
        pool["arn"],
        spec.schedule_test(test_upload["arn"]),
        app_arn=app_arn,
        job_timeout_minutes=args.job_timeout,
        configuration=configuration,
    )["run"]
    print(f"Scheduled run {run['arn']}")

    while True:
        run = farm.describe_run(run["arn"])
        if run.get("status") == RUN_FINISHED:
            break
        logger.info("Run in progress", status=run.get("status"))
        time.sleep(args.poll_interval)

    print(f"Run finished with result {run.get('result')}")

    if args.results:
        collection = farm.get_artifacts(run["arn"], args.results)
        print(f"Saved {len(collection.files)} artifacts under {args.results}")

    return 0 if run.get("result") == "PASSED" else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Schedule AWS Device Farm runs and collect their artifacts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--role-arn", help="IAM role to assume before calling Device Farm")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("projects", help="List projects").set_defaults(func=cmd_projects)

    pools = sub.add_parser("pools", help="List device pools of a project")
    pools.add_argument("project")
    pools.set_defaults(func=cmd_pools)

    devices = sub.add_parser("devices", help="List devices available to a project")
    devices.add_argument("project")
    devices.set_defaults(func=cmd_devices)

    run = sub.add_parser("run", help="Upload, schedule and collect a run")
    run.add_argument("project")
    run.add_argument("device_pool")
    run.add_argument("--name", default="devicefarm-runner", help="Run name")
    run.add_argument("--app", help="App to test (.apk, .ipa or .zip)")
    run.add_argument("--tests", required=True, help="Test package to upload")
    run.add_argument(
        "--framework",
        choices=[f.value for f in Framework],
        default=Framework.INSTRUMENTATION.value,
    )
    run.add_argument(
        "--appium-language",
        choices=[lang.value for lang in AppiumLanguage],
        default=AppiumLanguage.JAVA_TESTNG.value,
    )
    run.add_argument("--web", action="store_true", help="Appium web (browser) tests")
    run.add_argument("--filter", help="Test filter")
    run.add_argument("--extra-data", help="Extra data .zip to upload")
    run.add_argument("--extra-data-arn", help="Existing extra data upload ARN for the run")
    run.add_argument("--job-timeout", type=int, default=60, help="Job timeout in minutes")
    run.add_argument("--poll-interval", type=float, default=30.0, help="Run status poll interval")
    run.add_argument("--results", help="Directory to download artifacts into")
    run.set_defaults(func=cmd_run)

    return parser


def main() -> int:
    args = build_parser().parse_args()
    setup_logging(level="DEBUG" if args.debug else "INFO", json_logs=False)

    try:
        farm = DeviceFarmClient(role_arn=args.role_arn, log_stream=sys.stdout)
        return args.func(farm, args)
    except DeviceFarmError as e:
        print(f"❌ {e}")
        return 1
    except KeyboardInterrupt:
        print("\n\nInterrupted. Goodbye! 👋")
        return 130


if __name__ == "__main__":
    sys.exit(main())
