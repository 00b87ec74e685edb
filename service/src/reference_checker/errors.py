class ReferenceCheckerError(Exception):
    pass


class InitializationError(ReferenceCheckerError):
    pass


class MalformedProfile(ReferenceCheckerError):
    def __init__(self, msg: str, path: str | None = None) -> None:
        super().__init__(msg)
        self.path = path


class ProfileNotFound(ReferenceCheckerError):
    def __init__(self, url: str) -> None:
        super().__init__(f"profile '{url}' is not registered")
        self.url = url


class NotInitialized(ReferenceCheckerError):
    pass
