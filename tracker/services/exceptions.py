class RequestNotFound(LookupError):
    """No service request with the given id (or the id is malformed)."""


class InvalidStatus(ValueError):
    pass


class DeliveryRejected(ValueError):
    pass
