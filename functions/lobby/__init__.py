"""
Party and scrim rules: membership, waitlists, team building and permissions.

Functions here operate on the dataclasses in `shared.types` and never touch
the document store; HTTP handlers load documents, call into this package
inside a transaction, and write the result back.
"""
