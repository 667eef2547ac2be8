from __future__ import annotations


class StoreError(Exception):
    def __init__(
        self,
        *,
        code: str,
        message: str,
        error_class: str,
        retryable: bool,
        http_status: int,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.error_class = error_class
        self.retryable = retryable
        self.http_status = http_status


def invalid_query(code: str, message: str) -> StoreError:
    return StoreError(
        code=code,
        message=message,
        error_class="validation",
        retryable=False,
        http_status=400,
    )


def write_conflict(message: str) -> StoreError:
    return StoreError(
        code="STORE_WRITE_CONFLICT",
        message=message,
        error_class="transient",
        retryable=True,
        http_status=409,
    )
