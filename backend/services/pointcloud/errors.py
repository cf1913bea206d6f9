"""Exceptions raised by the point cloud engine.

Expected data variation (no parsable records, empty selections, a
zero-length profile line) is reported through empty results. Only caller
contract violations raise.
"""


class PointCloudError(Exception):
    """Base class for point cloud engine errors."""


class ContractViolationError(PointCloudError, ValueError):
    """Arrays or vectors passed in do not have the shape the call requires."""
