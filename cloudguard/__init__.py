"""
CloudGuard: cloud security posture dashboard backend.

Stores per-user alert settings, reads audit findings across AWS, GCP and
Azure, and pushes severity-filtered alerts to an incident webhook.
"""

__version__ = "0.1.0"
