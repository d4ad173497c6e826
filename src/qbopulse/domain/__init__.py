"""Domain layer for qbopulse.

Services are imported from their modules directly; the database layer
imports entities from this package, so nothing is re-exported here.
"""
