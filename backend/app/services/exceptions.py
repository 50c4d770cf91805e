# backend/app/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The router layer is responsible for mapping these to appropriate HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    ├── NotFoundError
    │   ├── PortfolioNotFoundError
    │   └── HoldingNotFoundError
    ├── ConflictError
    │   └── PortfolioExistsError
    ├── MarketDataError
    │   ├── ProviderUnavailableError
    │   ├── RateLimitError
    │   └── PriceResolutionError
    └── ChainDataError

Propagation policy:
    Best-effort enrichment steps (transaction history, live balance during
    valuation) log and continue. Authoritative steps (listing transactions,
    final pricing) let these exceptions reach the caller.
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input validation fails before any upstream call is made.

    Covers malformed filter values, negative amounts and bad addresses.
    Request body validation is still handled by Pydantic.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Portfolio", "Holding")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class PortfolioNotFoundError(NotFoundError):
    """
    Raised when a portfolio cannot be found.

    Attributes:
        portfolio_id: ID of the portfolio that was not found
    """

    def __init__(self, portfolio_id: int) -> None:
        self.portfolio_id = portfolio_id
        super().__init__(
            f"Portfolio {portfolio_id} not found",
            resource_type="Portfolio",
            resource_id=portfolio_id,
        )


class HoldingNotFoundError(NotFoundError):
    """Raised when a holding does not exist in the given portfolio."""

    def __init__(self, holding_id: int, portfolio_id: int | None = None) -> None:
        self.holding_id = holding_id
        self.portfolio_id = portfolio_id
        message = f"Holding {holding_id} not found"
        if portfolio_id is not None:
            message += f" in portfolio {portfolio_id}"
        super().__init__(message, resource_type="Holding", resource_id=holding_id)


# =============================================================================
# CONFLICT ERRORS
# =============================================================================


class ConflictError(ServiceError):
    """Raised when a write would violate a uniqueness rule."""


class PortfolioExistsError(ConflictError):
    """
    Raised when a portfolio is already registered for a wallet address.

    Attributes:
        address: The (lowercase) wallet address
    """

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"Portfolio for address '{address}' already exists")


# =============================================================================
# MARKET DATA PROVIDER ERRORS
# =============================================================================


class MarketDataError(ServiceError):
    """
    Base exception for price provider failures.

    Attributes:
        provider: Name of the provider that failed
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(MarketDataError):
    """
    Raised when an upstream provider is temporarily unavailable.

    Examples:
    - Network timeout
    - Server errors (500, 502, 503)
    - API maintenance

    This is a retryable error.
    """

    def __init__(self, provider: str, reason: str) -> None:
        message = f"Provider '{provider}' is unavailable: {reason}"
        super().__init__(message, provider=provider)
        self.reason = reason


class RateLimitError(MarketDataError):
    """
    Raised when a rate limit has been exceeded.

    Used both for our own sliding-window limiter (the call was never sent)
    and for upstream HTTP 429 responses. Retryable with backoff.

    Attributes:
        retry_after: Seconds to wait before retrying (if known)
    """

    def __init__(self, provider: str, retry_after: int | None = None) -> None:
        message = f"Rate limit exceeded for provider '{provider}'"
        if retry_after:
            message += f" (retry after {retry_after}s)"
        super().__init__(message, provider=provider)
        self.retry_after = retry_after


class PriceResolutionError(MarketDataError):
    """
    Raised when neither the primary nor the fallback price provider
    could serve a batch.

    Attributes:
        primary_error: Why the primary call did not succeed
        fallback_error: Why the fallback call did not succeed (None if no
                        fallback is configured)
    """

    def __init__(
            self,
            primary_error: Exception,
            fallback_error: Exception | None = None,
    ) -> None:
        self.primary_error = primary_error
        self.fallback_error = fallback_error
        message = f"both primary and fallback providers failed: primary: {primary_error}"
        if fallback_error is not None:
            message += f"; fallback: {fallback_error}"
        else:
            message += "; fallback: not configured"
        super().__init__(message)


# =============================================================================
# CHAIN DATA PROVIDER ERRORS
# =============================================================================


class ChainDataError(ServiceError):
    """
    Raised when the chain-data provider returns an unusable response.

    Attributes:
        provider: Name of the provider that failed
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


__all__ = [
    "ServiceError",
    "ValidationError",
    "NotFoundError",
    "PortfolioNotFoundError",
    "HoldingNotFoundError",
    "ConflictError",
    "PortfolioExistsError",
    "MarketDataError",
    "ProviderUnavailableError",
    "RateLimitError",
    "PriceResolutionError",
    "ChainDataError",
]
