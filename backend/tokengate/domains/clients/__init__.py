"""Clients domain: read-mostly registry of third-party applications.

Registration is an external administrative process; this domain only
resolves client identifiers and enforces the enabled/disabled policy.
"""
