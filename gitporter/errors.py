"""Error handling framework for the gitporter MCP server."""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional

from .github_api import GitHubAPIError
from .reconcile.error_types import (
    AcquisitionFailure,
    ConfigurationError,
    GitPorterError,
    InstallError,
    PathBusyError,
    RemoteConfigError,
    ValidationError,
    VcsOperationError,
)
from .scaffold import ProjectExistsError, ScaffoldError


class ErrorCategory(Enum):
    """Categories of errors for structured error handling."""
    VALIDATION = "validation"
    REMOTE_CONFIG = "remote_config"
    VCS_OPERATION = "vcs_operation"
    ACQUISITION = "acquisition"
    GITHUB_API = "github_api"
    SCAFFOLD = "scaffold"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


@dataclass
class ErrorResponse:
    """Standardized error response format for tool calls."""
    error: str
    error_code: str
    message: str
    timestamp: str
    category: str
    context: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert error response to dictionary format."""
        result = {
            "success": False,
            "error": self.error,
            "error_code": self.error_code,
            "message": self.message,
            "timestamp": self.timestamp,
            "category": self.category
        }
        if self.context:
            result["context"] = self.context
        return result


def _merge_context(error: Exception, context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    merged = dict(context or {})
    if isinstance(error, GitPorterError):
        for key, value in error.context().items():
            merged.setdefault(key, value)
    return merged


class ErrorHandler:
    """Maps exceptions raised by tool operations onto ErrorResponse objects and logs them."""

    def __init__(self):
        self.logger = logging.getLogger('gitporter.error_handler')

    def _respond(
        self,
        error: str,
        error_code: str,
        message: str,
        category: ErrorCategory,
        context: Dict[str, Any],
        level: int = logging.WARNING
    ) -> ErrorResponse:
        self.logger.log(
            level,
            f"{error}: {message}",
            extra={
                'operation': f"{category.value}_error",
                'error_code': error_code,
                'path': context.get('path')
            }
        )
        return ErrorResponse(
            error=error,
            error_code=error_code,
            message=message,
            timestamp=datetime.now().isoformat(),
            category=category.value,
            context=context
        )

    def handle_validation_error(self, error: Exception, context: Dict[str, Any] = None) -> ErrorResponse:
        """Handle input validation errors."""
        context = _merge_context(error, context)

        text = str(error).lower()
        if "not found" in text:
            error_code = "VALIDATION_PATH_NOT_FOUND"
        elif "missing" in text:
            error_code = "VALIDATION_NOT_A_PROJECT"
        elif context.get('field'):
            error_code = f"VALIDATION_INVALID_{str(context['field']).upper()}"
        else:
            error_code = "VALIDATION_GENERAL_ERROR"

        return self._respond("Validation error", error_code, f"Input validation failed: {error}",
                             ErrorCategory.VALIDATION, context)

    def handle_remote_config_error(self, error: Exception, context: Dict[str, Any] = None) -> ErrorResponse:
        """Handle failures while pointing 'origin' at the requested endpoint."""
        context = _merge_context(error, context)
        return self._respond("Remote configuration failed", "REMOTE_CONFIG_ERROR",
                             f"Could not configure remote: {error}", ErrorCategory.REMOTE_CONFIG, context)

    def handle_vcs_error(self, error: Exception, context: Dict[str, Any] = None) -> ErrorResponse:
        """Handle git command failures."""
        context = _merge_context(error, context)

        if isinstance(error, VcsOperationError):
            error_code = f"GIT_{error.kind.name}"
        else:
            error_code = "GIT_GENERAL_ERROR"

        if error_code == "GIT_NOTHING_TO_COMMIT":
            message = "Nothing to commit: the working copy has no changes"
        elif error_code == "GIT_AUTHENTICATION":
            message = f"Authentication with the remote failed: {error}"
        else:
            message = f"Git operation failed: {error}"

        return self._respond("Git operation failed", error_code, message, ErrorCategory.VCS_OPERATION, context)

    def handle_acquisition_error(self, error: Exception, context: Dict[str, Any] = None) -> ErrorResponse:
        """Handle failed project acquisitions, including cleanup warnings."""
        context = _merge_context(error, context)

        cause = error.__cause__
        if isinstance(cause, InstallError):
            error_code = "ACQUISITION_INSTALL_FAILED"
        elif isinstance(cause, VcsOperationError):
            error_code = "ACQUISITION_CLONE_FAILED"
        elif isinstance(cause, ConfigurationError):
            error_code = "ACQUISITION_HELPER_SCRIPT_MISSING"
        else:
            error_code = "ACQUISITION_GENERAL_ERROR"

        return self._respond("Project acquisition failed", error_code, f"Acquisition failed: {error}",
                             ErrorCategory.ACQUISITION, context, level=logging.ERROR)

    def handle_github_api_error(self, error: Exception, context: Dict[str, Any] = None) -> ErrorResponse:
        """Handle GitHub REST API failures."""
        context = dict(context or {})
        status = getattr(error, 'status_code', None)
        if status is not None:
            context.setdefault('status_code', status)

        if status is None:
            error_code = "GITHUB_UNREACHABLE"
        elif status in (401, 403):
            error_code = "GITHUB_UNAUTHORIZED"
        elif status == 404:
            error_code = "GITHUB_NOT_FOUND"
        elif status == 422:
            error_code = "GITHUB_UNPROCESSABLE"
        else:
            error_code = "GITHUB_API_ERROR"

        return self._respond("GitHub API request failed", error_code, f"GitHub API error: {error}",
                             ErrorCategory.GITHUB_API, context)

    def handle_scaffold_error(self, error: Exception, context: Dict[str, Any] = None) -> ErrorResponse:
        """Handle project scaffolding failures."""
        context = _merge_context(error, context)
        if isinstance(error, ProjectExistsError):
            error_code = "SCAFFOLD_PROJECT_EXISTS"
        else:
            error_code = "SCAFFOLD_FAILED"
        return self._respond("Project scaffolding failed", error_code, str(error), ErrorCategory.SCAFFOLD, context)

    def handle_configuration_error(self, error: Exception, context: Dict[str, Any] = None) -> ErrorResponse:
        """Handle missing or invalid configuration."""
        context = _merge_context(error, context)
        return self._respond("Configuration error", "CONFIGURATION_ERROR", str(error),
                             ErrorCategory.CONFIGURATION, context, level=logging.ERROR)

    def handle_system_error(self, error: Exception, context: Dict[str, Any] = None) -> ErrorResponse:
        """Handle unexpected errors."""
        context = _merge_context(error, context)

        if isinstance(error, PathBusyError):
            error_code = "PATH_BUSY"
        elif isinstance(error, PermissionError):
            error_code = "SYSTEM_PERMISSION_DENIED"
        elif isinstance(error, OSError):
            error_code = "SYSTEM_IO_ERROR"
        else:
            error_code = "SYSTEM_GENERAL_ERROR"

        return self._respond("Operation failed", error_code, f"Unexpected error: {error}",
                             ErrorCategory.SYSTEM, context, level=logging.ERROR)

    def handle_error(self, error: Exception, context: Dict[str, Any] = None) -> ErrorResponse:
        """Dispatch ``error`` to the handler for its category."""
        if isinstance(error, ValidationError):
            return self.handle_validation_error(error, context)
        if isinstance(error, RemoteConfigError):
            return self.handle_remote_config_error(error, context)
        if isinstance(error, VcsOperationError):
            return self.handle_vcs_error(error, context)
        if isinstance(error, AcquisitionFailure):
            return self.handle_acquisition_error(error, context)
        if isinstance(error, GitHubAPIError):
            return self.handle_github_api_error(error, context)
        if isinstance(error, (ScaffoldError, ProjectExistsError)):
            return self.handle_scaffold_error(error, context)
        if isinstance(error, ConfigurationError):
            return self.handle_configuration_error(error, context)
        return self.handle_system_error(error, context)

    def create_success_response(self, operation: str, data: Any, context: Dict[str, Any] = None) -> Dict[str, Any]:
        """Create a standardized success response for tool calls."""
        response = {
            "success": True,
            "operation": operation,
            "timestamp": datetime.now().isoformat(),
            "data": data
        }

        if context:
            response["context"] = context

        return response


# Initialize global error handler
error_handler = ErrorHandler()
