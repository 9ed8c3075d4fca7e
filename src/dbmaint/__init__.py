"""
db-maintenance: periodic database maintenance service.

Runs ``VACUUM FULL`` over bloated tables, ``REINDEX`` over a configured
table list and a batched deletion of rows past their retention period
inside a daily time window, reporting every run to an operator channel.
"""

__version__ = "0.1.0"
