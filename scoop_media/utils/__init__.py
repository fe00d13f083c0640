"""Utility helpers for the Scoop Media backend.

Submodules:
- aws: S3 object storage gateway
"""

__all__: list[str] = []
