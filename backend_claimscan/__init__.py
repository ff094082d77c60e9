"""
Backend ClaimScan: statistical fraud-risk engine for insurance supplement claims.

Consumes a reconciled original-vs-supplement invoice comparison, detects
statistical anomalies in the billed line items and turns them into an
explainable 0-100 risk score with risk factors and recommendations.
"""

__version__ = "0.1.0"
