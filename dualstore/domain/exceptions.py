"""Domain-specific exceptions — framework-independent."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """One failed constraint on one field.

    ``index`` is set when the field belongs to one candidate of a bulk batch.
    """

    field: str
    message: str
    index: int | None = None

    def to_dict(self) -> dict:
        data: dict = {"field": self.field, "message": self.message}
        if self.index is not None:
            data["index"] = self.index
        return data


class RecordValidationError(Exception):
    """Raised when candidate record data fails one or more constraints."""

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        super().__init__("; ".join(e.message for e in self.errors) or "Validation failed")


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class DuplicateEntityError(Exception):
    """Raised when attempting to create a duplicate entity."""

    def __init__(self, entity_type: str, field: str, value: str):
        self.entity_type = entity_type
        self.field = field
        self.value = value
        super().__init__(f"{entity_type} with {field}='{value}' already exists")


class BulkInsertError(Exception):
    """Raised when a bulk insert fails part-way and earlier records were kept."""

    def __init__(self, entity_type: str, inserted: int, errors: list[FieldError]):
        self.entity_type = entity_type
        self.inserted = inserted
        self.errors = list(errors)
        super().__init__(
            f"{entity_type} bulk insert stopped after {inserted} record(s): "
            + "; ".join(e.message for e in self.errors)
        )


class ResourceExhaustedError(Exception):
    """Raised when a datastore connection cannot be acquired in time."""

    def __init__(self, resource: str, detail: str = ""):
        self.resource = resource
        self.detail = detail
        message = f"{resource} is unavailable"
        if detail:
            message += f": {detail}"
        super().__init__(message)
