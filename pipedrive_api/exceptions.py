class PipedriveError(Exception):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class APIBadResponse(PipedriveError):
    """Response advertised JSON but the payload could not be parsed."""
