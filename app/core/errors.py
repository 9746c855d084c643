class BookingValidationError(ValueError):
    """Booking request has missing fields or values a booking cannot hold."""

    def __init__(self, missing: list[str] | None = None, invalid: list[str] | None = None, message: str | None = None):
        self.missing = missing or []
        self.invalid = invalid or []
        if message is None:
            message = "Campos obrigatórios em falta" if self.missing else "Campos inválidos"
        super().__init__(f"{message}: {', '.join(self.missing + self.invalid)}")
        self.message = message


class SignatureInvalid(Exception):
    """Webhook body could not be authenticated against the signing secret."""


class PayloadMalformed(Exception):
    """A recognised event kind arrived with an unexpected shape."""


class ProviderError(RuntimeError):
    pass


class StoreError(RuntimeError):
    pass


class BookingConflict(StoreError):
    """A booking already exists for this provider session id."""


class EmailError(RuntimeError):
    pass
