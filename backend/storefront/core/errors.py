"""Service-layer errors.

Both kinds subclass ``ValueError`` so callers that only care about "the input
was rejected" can keep catching ``ValueError``. Routers map ``NotFoundError``
to 404 and ``InvalidRequestError`` to 400.
"""


class NotFoundError(ValueError):
    """A referenced coupon, segment, user or order does not exist."""


class InvalidRequestError(ValueError):
    """The request breaks a business rule (expired coupon, duplicate slug, ...)."""
