"""
Background use cases around the record store.

flush_scheduler decides when the table is written to the data file.
"""
