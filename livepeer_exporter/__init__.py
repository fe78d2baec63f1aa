"""
Prometheus exporter for Livepeer orchestrators.

Polls the Livepeer explorer and leaderboard APIs for a single orchestrator
and exposes the results in Prometheus format on an HTTP endpoint.
"""

__version__ = "0.1.0"
