class TutorError(Exception):
    """Base class for errors raised inside the tutor backend."""


class UpstreamError(TutorError):
    """An external collaborator (LLM, sandbox, OCR) did not give a usable answer."""

    def __init__(self, service: str, message: str):
        super().__init__(f"{service}: {message}")
        self.service = service


class UpstreamTimeout(UpstreamError):
    pass


class UpstreamFailure(UpstreamError):
    pass
