"""
Core cross-cutting pieces shared by the API server, alerting and database layers.
"""
