"""
Innovation Hub - suggestion box core

Students submit improvement suggestions, peers upvote and comment, and
administrators triage, score and change suggestion status. This package
holds the consistency core behind those operations: the vote ledger,
the denormalised counters, status-change notification fan-out and the
retry layer around every datastore mutation.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
