# ============================================================================
# VERSION - SIMPLEBUS TRANSPORT
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# ============================================================================
"""
Version information for the simplebus transport.

This is the single source of truth for the package version.
Updated manually for each release.
"""
# Version format: major.minor.patch
# Criteria for 0.3 - access policy sweep runs on first publish
__version__ = "0.3.1"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Build metadata
BUILD_DATE = "2026-10-19"

EPOCH = 1
CODENAME = "Simple Services Transport"
