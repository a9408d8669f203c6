from __future__ import annotations


class SchoolSetupError(Exception):
    """Базовая ошибка мастера настройки школы."""


class ValidationError(SchoolSetupError):
    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


class UnsupportedFileType(SchoolSetupError):
    def __init__(self, field_name: str, file_name: str, content_type: str | None = None) -> None:
        self.field_name = field_name
        self.file_name = file_name
        self.content_type = content_type
        super().__init__(f"{field_name}: unsupported file type ({file_name or content_type or 'unknown'})")


class SubmissionInProgress(SchoolSetupError):
    def __init__(self) -> None:
        super().__init__("submission already in progress")


class TransportFailure(SchoolSetupError):
    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        self.message = message
        prefix = f"HTTP {status}: " if status is not None else ""
        super().__init__(prefix + message)
