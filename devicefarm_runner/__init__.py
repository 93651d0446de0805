"""
Device Farm Runner
==================

Client for scheduling mobile test runs on AWS Device Farm and collecting
their artifacts.

Modules:
    - farm: Device Farm client, test framework catalogue, ARN helpers
    - config: Settings loaded from the environment / .env
    - utils: Logging and credential-handling helpers
"""

__version__ = "1.0.0"
__author__ = "Device Farm Runner Team"
