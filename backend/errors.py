# backend/errors.py


class ShimError(Exception):
    """Base error for anything that comes back as the error arm of the envelope."""

    kind = "error"


class TransportError(ShimError, RuntimeError):
    """Store or endpoint unreachable."""

    kind = "transport"


class NotFoundError(ShimError, LookupError):
    """Mutation target id does not exist."""

    kind = "not_found"


class ValidationError(ShimError, ValueError):
    """Missing required field, bad amount or unknown enum value."""

    kind = "validation"


def error_from_message(message: str) -> ShimError:
    """
    Rebuilds a typed error from the message of an error envelope.
    The wire only carries text, so the type is inferred from its wording.
    """
    text = (message or "").lower()

    if "not found" in text:
        return NotFoundError(message)

    if "unreachable" in text or "write failed" in text:
        return TransportError(message)

    if text.startswith("invalid") or "required" in text or "must be" in text:
        return ValidationError(message)

    return ShimError(message or "Unknown error")
