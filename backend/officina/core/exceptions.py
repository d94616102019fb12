"""
Eccezioni Custom per l'applicazione.
Progetto: Officina Online (Ordini e Pagamenti)

Definisce eccezioni specifiche del dominio per una gestione
centralizzata degli errori. Ogni eccezione porta con sé lo status HTTP
e un error_code stabile che il frontend usa per distinguere i casi
(es. "pagamento non ancora riuscito" vs "pagamento rifiutato").

NOTA: BusinessValidationError è volutamente distinta da pydantic.ValidationError.
- pydantic.ValidationError: errori di formato/tipo nei dati di input (gestiti da FastAPI → 422)
- BusinessValidationError: violazioni delle regole di business logic (gestiti dal nostro handler → 400)
"""

from typing import Any, Dict, Optional

__all__ = [
    "AppException",
    "AuthenticationError",
    "AuthorizationError",
    "OwnershipViolationError",
    "NotFoundError",
    "BusinessValidationError",
    "ValidationError",
    "InvalidAmountError",
    "PaymentMismatchError",
    "PaymentNotCompletedError",
    "WebhookSignatureError",
    "ConflictError",
    "DuplicateError",
    "DuplicateServiceError",
    "AlreadyPaidError",
    "ExternalServiceError",
]


class AppException(Exception):
    """
    Base exception per l'applicazione.

    Tutte le eccezioni custom ereditano da questa classe base.

    Attributes:
        status_code: HTTP status code da restituire al client
        error_code: Identificativo univoco dell'errore per il frontend
        detail: Messaggio di errore leggibile per l'utente
        extra: Dizionario con dati aggiuntivi per il frontend
    """

    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"
    default_detail: str = "Errore interno del server"

    def __init__(
        self,
        detail: Optional[str] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Inizializza l'eccezione.

        Args:
            detail: Messaggio di errore dettagliato (default: quello di classe)
            error_code: Identificativo univoco (default: quello di classe)
            extra: Dati aggiuntivi da passare al frontend (default: None)
        """
        self.detail = detail if detail is not None else self.default_detail
        self.error_code = error_code if error_code is not None else self.error_code
        self.extra = extra
        self.status_code = self.__class__.status_code
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Corpo JSON della risposta di errore."""
        return {
            "detail": self.detail,
            "error_code": self.error_code,
            "extra": self.extra,
        }


# ------------------------------------------------------------
# Identità e permessi
# ------------------------------------------------------------
class AuthenticationError(AppException):
    """
    Token mancante, firma non valida o token scaduto.

    Il gestore HTTP aggiunge l'header WWW-Authenticate: Bearer.
    """

    status_code: int = 401
    error_code: str = "UNAUTHENTICATED"
    default_detail: str = "Autenticazione richiesta"


class AuthorizationError(AppException):
    """
    Eccezione sollevata per accesso non autorizzato.

    L'utente è autenticato ma non ha i permessi per l'operazione.

    Esempi di utilizzo:
        - "Un dipendente non può riassegnare il veicolo dell'ordine"
        - "Solo gli amministratori possono gestire i dipendenti"
    """

    status_code: int = 403
    error_code: str = "FORBIDDEN"
    default_detail: str = "Accesso non autorizzato"


class OwnershipViolationError(AuthorizationError):
    """Il veicolo indicato non appartiene al cliente dell'ordine."""

    error_code: str = "OWNERSHIP_VIOLATION"
    default_detail: str = "Il veicolo non appartiene al cliente"


class NotFoundError(AppException):
    """
    Eccezione sollevata quando una risorsa non viene trovata.

    Usata anche per risorse che esistono ma appartengono ad altri clienti:
    l'esistenza non deve trapelare.
    """

    status_code: int = 404
    error_code: str = "RESOURCE_NOT_FOUND"
    default_detail: str = "Risorsa non trovata"


# ------------------------------------------------------------
# Validazione di business
# ------------------------------------------------------------
class BusinessValidationError(ValueError, AppException):
    """
    Eccezione sollevata per violazioni delle regole di business logic.

    Eredita da ValueError per essere catturata dai validatori Pydantic.

    NON confondere con pydantic.ValidationError che gestisce
    la validazione dello schema/formato dei dati in input.
    """

    status_code: int = 400
    error_code: str = "BUSINESS_VALIDATION_ERROR"
    default_detail: str = "Validazione dati fallita"

    def __init__(
        self,
        detail: Optional[str] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        # Chiama AppException.__init__ direttamente per evitare ValueError
        AppException.__init__(self, detail, error_code, extra)


# Alias per compatibilità
ValidationError = BusinessValidationError


class InvalidAmountError(BusinessValidationError):
    """L'importo dell'ordine deve essere maggiore di zero per essere pagato."""

    error_code: str = "INVALID_AMOUNT"
    default_detail: str = "L'importo dell'ordine deve essere maggiore di 0"


class PaymentMismatchError(BusinessValidationError):
    """L'intento di pagamento non corrisponde all'ordine indicato."""

    error_code: str = "PAYMENT_MISMATCH"
    default_detail: str = "L'intento di pagamento non corrisponde all'ordine"


class PaymentNotCompletedError(BusinessValidationError):
    """
    Il processore non riporta l'intento come riuscito.

    error_code PAYMENT_NOT_COMPLETED: il cliente può ancora completare il pagamento.
    error_code PAYMENT_REJECTED: l'intento è stato annullato, serve un nuovo intento.
    """

    error_code: str = "PAYMENT_NOT_COMPLETED"
    default_detail: str = "Pagamento non completato"


class WebhookSignatureError(BusinessValidationError):
    """Firma del webhook mancante o non valida, oppure payload illeggibile."""

    error_code: str = "INVALID_WEBHOOK_SIGNATURE"
    default_detail: str = "Firma del webhook non valida"


# ------------------------------------------------------------
# Conflitti di stato
# ------------------------------------------------------------
class ConflictError(AppException):
    """
    Eccezione sollevata per conflitti di stato.

    Utilizzata quando un'operazione non può essere eseguita
    a causa dello stato corrente della risorsa (es. aggiornamento
    concorrente dello stesso ordine).
    """

    status_code: int = 409
    error_code: str = "CONFLICT_STATE"
    default_detail: str = "Conflitto di stato"


class DuplicateError(ConflictError):
    """
    Eccezione sollevata quando si tenta di creare una risorsa duplicata.

    Utilizzata per violazioni di vincoli unique (es. email già registrata).
    """

    error_code: str = "DUPLICATE_RESOURCE"
    default_detail: str = "Risorsa già esistente"


class DuplicateServiceError(ConflictError):
    """Il servizio è già associato all'ordine."""

    status_code: int = 400
    error_code: str = "DUPLICATE_SERVICE"
    default_detail: str = "Servizio già associato a questo ordine"


class AlreadyPaidError(ConflictError):
    """L'ordine risulta già pagato."""

    status_code: int = 400
    error_code: str = "ALREADY_PAID"
    default_detail: str = "L'ordine è già stato pagato"


# ------------------------------------------------------------
# Servizi esterni
# ------------------------------------------------------------
class ExternalServiceError(AppException):
    """Il processore di pagamento non è raggiungibile o ha rifiutato la richiesta."""

    status_code: int = 502
    error_code: str = "EXTERNAL_SERVICE_ERROR"
    default_detail: str = "Errore del servizio di pagamento"
