"""Error hierarchy for timetable extraction and persistence.

The HTTP layer maps these onto status codes: input problems become 400-class
responses, persistence problems become 500-class responses. Nothing in this
package retries automatically; callers that supply grids own their retries.
"""


class TimetableError(Exception):
    """Base exception for all timetable service errors."""

    pass


class MalformedInputError(TimetableError):
    """Request body is missing a required field or has the wrong shape.

    Reported to the caller, no state change.
    """

    pass


class NoDataFoundError(TimetableError):
    """Grid carries no qualifying coloured region, or grouping produced nothing.

    Distinct from MalformedInputError: the body was well-formed but empty of
    timetable data.
    """

    pass


class PersistenceError(TimetableError):
    """Backing store rejected a write or delete.

    Examples: Redis connection dropped mid-process, disk full.
    """

    pass


class AuthenticationError(TimetableError):
    """Admin password missing or wrong."""

    pass
