class PageorientError(Exception):
    pass


class InvalidRotation(PageorientError, ValueError):
    pass


class InvalidPageCount(PageorientError, ValueError):
    pass


class InvalidPageNumber(PageorientError, ValueError):
    pass


class RequestError(PageorientError):
    status: int = 500
    code: str = "internal_error"
    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: int | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status is not None:
            self.status = status
        if retryable is not None:
            self.retryable = retryable


class ValidationError(RequestError):
    status = 400
    code = "invalid_image"


class CapacityError(RequestError):
    status = 413
    code = "file_too_large"
    retryable = True


class FeatureDisabledError(RequestError):
    status = 503
    code = "ocr_disabled"


class DetectionTimeoutError(RequestError):
    status = 504
    code = "ocr_timeout"
    retryable = True


class InternalError(RequestError):
    status = 500
    code = "internal_error"


class OrientationRequestError(PageorientError):
    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        code: str | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.retryable = retryable


class BatchCancelled(PageorientError):
    pass
