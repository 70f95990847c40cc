from typing import Optional, Any

class InalaError(Exception):
    """
    Base exception for the INALA ERP application.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class ResourceNotFoundError(InalaError):
    """
    Raised when a requested resource is not found.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)

class AuthenticationError(InalaError):
    """
    Raised when the acting user cannot be identified.
    """
    def __init__(self, message: str = "Authentication failed", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", status_code=401, details=details)

class PermissionDeniedError(InalaError):
    """
    Raised when the acting user's role does not allow an operation.
    """
    def __init__(self, message: str = "Permission denied", details: Optional[Any] = None):
        super().__init__(message, code="PERMISSION_DENIED", status_code=403, details=details)

class ValidationError(InalaError):
    """
    Raised when input validation fails.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=422, details=details)

class BusinessRuleError(InalaError):
    """
    Raised when an operation would break a business rule
    (crediting a walk-in, repaying a closed loan, voiding twice...).
    """
    def __init__(self, message: str = "Business rule violation", details: Optional[Any] = None):
        super().__init__(message, code="BUSINESS_RULE_VIOLATION", status_code=409, details=details)

class TenantGuardError(InalaError):
    """
    Raised when a tenant-scoped operation is attempted without a usable tenant ID.
    """
    def __init__(self, message: str = "Invalid or missing tenant", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_TENANT", status_code=400, details=details)

class ExternalServiceError(InalaError):
    """
    Raised when an external service (mail relay, exchange rate feed) fails.
    """
    def __init__(self, message: str = "External service error", details: Optional[Any] = None):
        super().__init__(message, code="EXTERNAL_SERVICE_ERROR", status_code=502, details=details)
