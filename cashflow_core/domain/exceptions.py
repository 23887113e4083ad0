"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotFoundError(DomainException):
    """Transaction, rule or profile id does not exist"""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} with ID {entity_id} does not exist")
        self.kind = kind
        self.entity_id = entity_id


class InvalidStateError(DomainException):
    """Operation is not valid for the entity's current state"""

    pass


class ValidationError(DomainException):
    """Amount or date input is malformed"""

    pass
