# app/services/errors.py
"""
Domain errors raised by the service layer.

Endpoints translate these into HTTP responses; `status_code` carries the mapping.
All of them are raised before the first write of an operation.
"""


class InventoryError(Exception):
    status_code = 400


class ValidationError(InventoryError):
    status_code = 400


class ConflictError(InventoryError):
    status_code = 409


class NotFoundError(InventoryError):
    status_code = 404


class PermissionDeniedError(InventoryError):
    status_code = 403
