"""
Custom Exceptions for NetDesigner
=================================

Raise these from services instead of generic Exception so the API layer can map
them onto HTTP responses:

    from netdesigner.core.exceptions import ResourceNotFoundError

    if not design:
        raise ResourceNotFoundError("NetworkDesign", design_id)

4xx errors are reported with status "fail", everything else with status "error".
"""

from typing import Optional, Any, Dict, List


class NetDesignerError(Exception):
    """Base exception for all NetDesigner errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    @property
    def status(self) -> str:
        return "fail" if 400 <= self.status_code < 500 else "error"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# Alias kept for the generic application-error wrapper
AppError = NetDesignerError


def validation_error(message: str, details: Optional[Dict[str, Any]] = None) -> NetDesignerError:
    return NetDesignerError(message, code="VALIDATION_ERROR", details=details, status_code=400)


def not_found(resource: str = "Resource") -> NetDesignerError:
    return NetDesignerError(f"{resource} not found", code="NOT_FOUND", status_code=404)


def unauthorized(message: str = "Unauthorized access") -> NetDesignerError:
    return NetDesignerError(message, code="UNAUTHORIZED", status_code=401)


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(NetDesignerError):
    """User authentication failed"""
    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class IdentityProviderError(AuthenticationError):
    """Identity provider rejected the token"""

    def __init__(self, message: str = "Invalid identity token"):
        super().__init__(message)
        self.code = "IDENTITY_TOKEN_INVALID"


class AuthorizationError(NetDesignerError):
    """User not authorized for this action"""
    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


class LimitExceededError(AuthorizationError):
    """Plan limit reached"""

    def __init__(self, message: str, limit: int, current: int):
        super().__init__(message)
        self.code = "LIMIT_EXCEEDED"
        self.details = {"limit": limit, "current": current}


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(NetDesignerError):
    """Base class for not found errors"""
    status_code = 404

    def __init__(self, resource_type: str, resource_id: Optional[str] = None):
        message = f"{resource_type} not found"
        if resource_id:
            message = f"{resource_type} with ID '{resource_id}' not found"
        super().__init__(
            message,
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(NetDesignerError):
    """Input validation failed"""
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, errors: Optional[List[str]] = None):
        details: Dict[str, Any] = {}
        if field:
            details["field"] = field
        if errors:
            details["errors"] = errors
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class ConflictError(NetDesignerError):
    """Operation conflicts with the current state of a resource"""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, code="CONFLICT")


# ============================================
# External service errors
# ============================================

class PaymentProviderError(NetDesignerError):
    """Payment provider call failed"""
    status_code = 502

    def __init__(self, message: str, provider_status: Optional[int] = None):
        super().__init__(message, code="PAYMENT_PROVIDER_ERROR")
        if provider_status:
            self.details["provider_status"] = provider_status


class StorageError(NetDesignerError):
    """Storage operation failed"""

    def __init__(self, message: str):
        super().__init__(message, code="STORAGE_ERROR")


class ReportGenerationError(NetDesignerError):
    """Report rendering failed"""

    def __init__(self, message: str, report_type: Optional[str] = None):
        super().__init__(message, code="REPORT_GENERATION_FAILED")
        if report_type:
            self.details["report_type"] = report_type


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: NetDesignerError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "status": error.status,
        "error": error.code,
        "message": error.message,
        "details": error.details
    }


REQUEST_SECTIONS = ("body", "query", "path", "header", "cookie")


def validation_messages(errors: List[Dict[str, Any]]) -> List[str]:
    """Flatten pydantic errors into "path: message" strings, request section dropped"""
    messages = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in REQUEST_SECTIONS:
            loc = loc[1:]
        message = err.get("msg", "Invalid value")
        messages.append(f"{'.'.join(loc)}: {message}" if loc else message)
    return messages
