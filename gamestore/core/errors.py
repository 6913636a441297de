"""
Domain errors raised by services and rendered by the API layer.

Every error carries the HTTP status it maps to and a message that is safe to
show to the caller.
"""


class StoreError(Exception):
    status_code = 500
    message = "Unexpected error."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


# ---- not found ----
class NotFoundError(StoreError):
    status_code = 404
    message = "Resource not found."

class CartNotFoundError(NotFoundError):
    message = "Shopping cart not found."

class GameNotFoundError(NotFoundError):
    message = "Game not found."

class NotInCartError(NotFoundError):
    message = "Game not found in the shopping cart."

class NoCartToCheckoutError(CartNotFoundError):
    status_code = 400
    message = "Shopping cart is not found."

class UserNotFoundError(NotFoundError):
    message = "User not found."

class OrderNotFoundError(NotFoundError):
    message = "Order not found."

class GenreNotFoundError(NotFoundError):
    message = "Genre not found."


# ---- conflicts ----
class ConflictError(StoreError):
    status_code = 409
    message = "Conflict."

class AlreadyInCartError(ConflictError):
    status_code = 400
    message = "Game is already in the shopping cart."

class AlreadyOwnedError(ConflictError):
    status_code = 400
    message = "Game is already in the library."

class DuplicateAccountError(ConflictError):
    message = "The username or email is already in use."

class DuplicateGenreError(ConflictError):
    message = "A genre with this name already exists."


# ---- identity ----
class UnauthorizedError(StoreError):
    status_code = 401
    message = "The provided token is invalid or has expired. Please authenticate again."

class ForbiddenError(StoreError):
    status_code = 403
    message = "Admin only."


# ---- validation ----
class ValidationFailedError(StoreError):
    status_code = 400
    message = "Invalid request."

class EmptyCartError(ValidationFailedError):
    message = "Shopping cart is empty."


# ---- collaborators ----
class UpstreamError(StoreError):
    status_code = 500
    message = "An upstream service failed."

class EmailDeliveryError(UpstreamError):
    message = "The email could not be delivered."

class MediaUploadError(UpstreamError):
    message = "An error occurred while uploading the file."
