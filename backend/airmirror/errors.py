"""Error taxonomy shared by the sync engine and the HTTP layer."""


class AirMirrorError(Exception):
    """Base exception; carries a machine-readable code and an HTTP status."""

    code = "internal_error"
    status_code = 500

    def __init__(self, message: str, *, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"success": False, "error": self.code, "detail": self.message}


class ConnectivityError(AirMirrorError):
    """A remote call (Airtable, destination store, leaderboard) failed. Safe to retry."""

    code = "connectivity_error"
    status_code = 502


class UpsertBatchError(ConnectivityError):
    """A destination upsert batch failed after `committed` rows were already written."""

    code = "upsert_failed"

    def __init__(self, message: str, *, committed: int):
        super().__init__(message)
        self.committed = committed


class NotFoundError(AirMirrorError):
    """Referenced table or record does not exist in the source base."""

    code = "not_found"
    status_code = 404


class SchemaMissingError(AirMirrorError):
    """
    Destination table is absent.

    Never auto-healed: `sql` holds the DDL an operator has to run.
    """

    code = "schema_missing"
    status_code = 500

    def __init__(self, message: str, *, table_name: str, sql: str):
        super().__init__(message)
        self.table_name = table_name
        self.sql = sql

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["table_name"] = self.table_name
        data["sql"] = self.sql
        return data


class ValidationError(AirMirrorError):
    """Malformed webhook payload, rejected before any remote call."""

    code = "missing_required_field"
    status_code = 400


class WebhookAuthError(AirMirrorError):
    """Webhook secret missing from configuration or not matching."""

    code = "bad_secret"
    status_code = 401
