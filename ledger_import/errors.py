class LedgerImportError(RuntimeError):
    pass


class ConfigurationMissing(LedgerImportError):
    def __init__(self, names: list[str]) -> None:
        self.names = list(names)
        super().__init__(f"missing required configuration: {', '.join(self.names)}")


class SourceUnavailable(LedgerImportError):
    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class StoreDeleteFailed(LedgerImportError):
    pass


class StoreInsertFailed(LedgerImportError):
    def __init__(self, message: str, *, batch_index: int | None = None) -> None:
        self.batch_index = batch_index
        super().__init__(message)


class ImportAlreadyRunning(LedgerImportError):
    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"an import for kind '{kind}' is already running")


class ConfigurationInvalid(LedgerImportError):
    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        super().__init__(f"invalid configuration {name}: {reason}")
