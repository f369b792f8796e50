class RecipeError(Exception):
    """Base for errors reported back to the caller."""

    status_code = 500


class ValidationError(RecipeError):
    status_code = 400


class RecipeNotFound(RecipeError):
    status_code = 404


class StorageUnavailable(RecipeError):
    status_code = 500


class MethodNotAllowed(RecipeError):
    status_code = 405
