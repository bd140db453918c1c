class PromotionError(Exception):
    """Domain error raised while resolving promotions for a cart."""

    error_type = "server-error"

    def __init__(self, message: str, error_type: str | None = None):
        super().__init__(message)
        self.message = message
        if error_type is not None:
            self.error_type = error_type


class InvalidParamsError(PromotionError):
    """A promotion the user just submitted could not be applied."""

    error_type = "invalid-params"
