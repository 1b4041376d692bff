"""Exceptions raised by the retention services."""


class RetentionError(Exception):
    """Base class for retention workflow errors."""


class EntityNotFoundError(RetentionError, LookupError):
    """A user or subscription the operation needs does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class UnknownRetentionActionError(RetentionError, ValueError):
    """The requested action is not one of EMAIL, CALL, DISCOUNT, CREDIT."""

    def __init__(self, action):
        self.action = action
        super().__init__(f"Unknown retention action: {action}")


class StaleWriteError(RetentionError):
    """A score write lost a race: the record changed since it was read."""

    def __init__(self, subscription_id: str, expected_version: int, actual_version: int):
        self.subscription_id = subscription_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Subscription {subscription_id} changed since read "
            f"(expected version {expected_version}, found {actual_version})"
        )
