"""
Persistence adapters.

json_storage encodes the user table to a single JSON file; user_store holds
the authoritative in-memory table that routers and the flush scheduler share.
"""
