# checkout/api/errors.py
from fastapi import HTTPException

from checkout.domain.errors import DomainError, InfrastructureError
from checkout.utils.logging import get_logger

logger = get_logger(__name__)

# bledy, ktore routery zamieniaja na odpowiedz HTTP
HANDLED_ERRORS = (DomainError, InfrastructureError, PermissionError)


def to_http(e: Exception) -> HTTPException:
    """Mapowanie bledow serwisow na odpowiedzi HTTP."""
    if isinstance(e, DomainError):
        return HTTPException(status_code=e.status_code, detail=e.message)
    if isinstance(e, PermissionError):
        return HTTPException(status_code=403, detail=str(e))
    # awaria bazy / katalogu - klient moze ponowic tylko operacje idempotentne
    logger.error(f"Infrastructure failure: {e}")
    return HTTPException(status_code=503, detail="Usluga chwilowo niedostepna, sprobuj ponownie")
