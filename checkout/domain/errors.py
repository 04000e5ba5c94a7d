# checkout/domain/errors.py
from decimal import Decimal


class DomainError(Exception):
    """Bledy biznesowe - oczekiwane, uzytkownik moze zareagowac."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(DomainError):
    status_code = 404


class UserNotFound(NotFound):
    pass


class CartNotFound(NotFound):
    pass


class CartItemNotFound(NotFound):
    pass


class OrderNotFound(NotFound):
    pass


class ProductNotFound(NotFound):
    pass


class PromoCodeNotFound(NotFound):
    pass


class ValidationError(DomainError, ValueError):
    pass


class InvalidAmount(ValidationError):
    pass


class DuplicatePromoCode(ValidationError):
    status_code = 409


class InsufficientStock(DomainError):
    status_code = 409

    def __init__(self, available: int, in_cart: int | None = None):
        message = f"Niewystarczajacy stan magazynowy. Dostepne: {available}"
        if in_cart is not None:
            message += f", w koszyku: {in_cart}"
        super().__init__(message)
        self.available = available
        self.in_cart = in_cart


class InsufficientBalance(DomainError):
    status_code = 409

    def __init__(self, available: Decimal, requested: Decimal):
        super().__init__(
            f"Niewystarczajace saldo portfela. Dostepne: {available}, zadane: {requested}"
        )
        self.available = available
        self.requested = requested


class PromoInvalid(DomainError):
    reason = "invalid"


class PromoUnknown(PromoInvalid):
    reason = "not_found"

    def __init__(self, code: str):
        super().__init__(f"Nieprawidlowy kod promocyjny '{code}'")


class PromoInactive(PromoInvalid):
    reason = "inactive"

    def __init__(self, code: str):
        super().__init__(f"Kod promocyjny '{code}' jest nieaktywny")


class PromoExpired(PromoInvalid):
    reason = "expired"

    def __init__(self, code: str):
        super().__init__(f"Kod promocyjny '{code}' wygasl")


class PromoUsageLimitExceeded(PromoInvalid):
    reason = "usage_limit_exceeded"

    def __init__(self, code: str):
        super().__init__(f"Limit uzyc kodu '{code}' zostal wyczerpany")


class CartEmpty(DomainError):
    def __init__(self):
        super().__init__("Koszyk jest pusty")


class WalletAmountExceedsTotal(DomainError):
    def __init__(self, requested: Decimal, total: Decimal):
        super().__init__(
            f"Kwota z portfela ({requested}) nie moze przekraczac sumy zamowienia ({total})"
        )
        self.requested = requested
        self.total = total


class AlreadyProcessed(DomainError):
    status_code = 409


class ConcurrencyConflict(DomainError, RuntimeError):
    status_code = 409


class CheckoutInProgress(ConcurrencyConflict):
    pass


class InfrastructureError(Exception):
    """Awaria bazy lub uslug zewnetrznych - nie mylic z bledami biznesowymi."""


class PersistenceError(InfrastructureError):
    pass


class CatalogUnavailable(InfrastructureError):
    pass
