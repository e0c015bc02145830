"""
API server package: HTTP interface for the dashboard UI.

Alert settings CRUD, test / single / audit alert triggers, and the dashboard
read model. Identity, persistence and alerting are injected through app.state.
"""
