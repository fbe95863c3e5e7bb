"""Exceptions for strict input parsing.

The controller itself never raises: malformed catalogs and saved selections
degrade to no-ops or default seeding.  These exceptions only surface when a
caller opts into strict parsing (``strict=True``) to validate data before
handing it over.
"""

from typing import Union


class PermStateException(Exception):
    """Base exception for permstate errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "PERMSTATE_ERROR",
        details: Union[dict, list, None] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Render the error in a standardized shape.

        Format:
        {
            "error": {
                "code": "ERROR_CODE",
                "message": "Human-readable error message",
                "details": {...}  // Optional additional details
            }
        }
        """
        content = {
            "error": {
                "code": self.error_code,
                "message": self.message,
            }
        }

        if self.details:
            content["error"]["details"] = self.details

        return content


class CatalogFormatError(PermStateException):
    """A module or submodule entry of the permission catalog is malformed."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(
            message=message,
            error_code="CATALOG_FORMAT_ERROR",
            details={"path": path} if path else None,
        )


class SelectionFormatError(PermStateException):
    """A saved permission selection failed validation."""

    def __init__(self, message: str, errors: list | None = None):
        super().__init__(
            message=message,
            error_code="SELECTION_FORMAT_ERROR",
            details={"errors": errors} if errors else None,
        )
