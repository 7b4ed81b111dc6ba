"""
API Services Layer.

Database operations behind the team, time-entry and candidate endpoints.
Access decisions are delegated to ``core.hierarchy``.
"""
