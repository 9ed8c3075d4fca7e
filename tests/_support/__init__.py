"""
Test support utilities for db-maintenance tests.

Hand-written collaborators that stand in for the database, the operator
channel and the wall clock, so job bodies and the scheduler facade can be
driven deterministically.
"""
