"""
Error taxonomy for the pokemon collection.

Every failure the service layer can report is one of these types. The
HTTP adapter owns the mapping to status codes; nothing below it knows
about HTTP.
"""


class PokemonError(Exception):
    """Base class for collection errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidIdentifier(PokemonError):
    """Path identifier is not a non-negative integer."""

    def __init__(self, raw: str, action: str = "access"):
        super().__init__(f"Specify a valid pokemon ID to {action}: {raw!r}")
        self.raw = raw


class InvalidRecord(PokemonError):
    """Submitted record is not a JSON object."""


class IdentityMismatch(PokemonError):
    """Embedded record id disagrees with the path id."""

    def __init__(self, path_id: int, record_id: object):
        super().__init__(
            f"Record id {record_id!r} does not match pokemon ID {path_id}"
        )
        self.path_id = path_id
        self.record_id = record_id


class NotFound(PokemonError):
    """No record with the given id, or an empty collection."""

    def __init__(self, id: int | None = None):
        if id is None:
            message = "The pokemon collection has no records"
        else:
            message = f"No pokemon with ID {id}"
        super().__init__(message)
        self.id = id


class AllocationFailure(PokemonError):
    """The id counter increment did not commit."""

    def __init__(self, message: str = "Failed to allocate a pokemon ID"):
        super().__init__(message)


class AtomicFailure(PokemonError):
    """A bulk delete commit did not apply."""

    def __init__(self, message: str = "Failed to delete the pokemon collection"):
        super().__init__(message)
