"""
Per-domain repository modules for database access.

Repositories are plain functions over a Session; authorization decisions
are made by callers (services and api.permissions), never here.
"""
