"""
Configuration for the ClaimScan engine.

Loads threshold and weight overrides from environment variables and the
project .env file on top of the engine defaults.
"""

from backend_claimscan.config.settings import load_engine_config  # noqa: F401

__all__ = ["load_engine_config"]
