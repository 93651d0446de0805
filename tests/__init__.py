"""
Test Package
============

Unit tests for the Device Farm runner. No test talks to AWS: boto3 and
httpx are replaced by the fakes in conftest.py.

Test organization:
    - test_arn.py: ARN splitting and rewriting
    - test_frameworks.py: Upload type classification and TestSpec
    - test_client_discovery.py: Construction, projects, pools, account settings
    - test_upload.py: Uploads and status polling
    - test_runs.py: Scheduling and artifact collection
    - test_config.py, test_logger.py, test_security.py: Ambient utilities

Run tests with:
    pytest tests/ -v
"""
