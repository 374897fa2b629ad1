"""Error taxonomy shared by every layer."""


class MnemeError(Exception):
    """Base class for all scheduling and review errors."""


class NotFoundError(MnemeError):
    """A referenced card, deck or history entry does not exist."""

    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with id {entity_id} not found")


class InvalidRatingError(MnemeError, ValueError):
    """A rating value outside Again/Hard/Good/Easy reached the core."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Unsupported rating {value!r}")


class StoreError(MnemeError):
    """The backing store could not be read or written."""
