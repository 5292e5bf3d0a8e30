"""
Backend package for the community API.

This package provides a FastAPI application with document store, account
and champion catalog abstractions so the same handlers run on Firestore,
an SQL database or in memory.
"""
