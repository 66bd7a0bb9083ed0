# app/domain/errors.py
"""
Wyjatki domenowe serwisu koszyka.

Serwisy rzucaja te klasy, routery mapuja je na kody HTTP:
ValidationError -> 400, NotFoundError -> 404, ConflictError -> 409,
UpstreamError -> 502, SignatureError -> 400.
"""


class CartServiceError(Exception):
    """Bazowy wyjatek, message jest bezpieczny do pokazania klientowi."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


class ValidationError(CartServiceError):
    """Brakujace pola, pusty koszyk, koszyk w wielu walutach."""


class NotFoundError(CartServiceError):
    """Nieznany produkt, zamowienie albo koszyk."""


class ConflictError(CartServiceError):
    """Stan nie pozwala na operacje (np. anulowanie oplaconego zamowienia)."""


class UpstreamError(CartServiceError):
    """Zewnetrzny dostawca nie odpowiedzial albo zwrocil blad."""

    def __init__(self, message: str, details: dict | None = None, retryable: bool = True):
        super().__init__(message, details)
        self.retryable = retryable


class SignatureError(CartServiceError):
    """Niepoprawny podpis webhooka, zadna zmiana stanu nie moze nastapic."""
