"""
Structured logging for ClaimScan.

JSON logs with timestamp, claim_id, event_type and check context.
Use get_logger() in all engine modules for aggregation-friendly output.
"""

from backend_claimscan.claimscan_logging.logger import bind_claim, get_logger

__all__ = ["bind_claim", "get_logger"]
