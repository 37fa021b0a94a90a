class NordenError(Exception):
    """Base class for errors raised by the site's services."""


class NotFound(NordenError):
    pass


class UploadError(NordenError):
    """The uploaded file was empty or of a type we don't store."""


class StorageError(NordenError):
    """The media store could not save or remove an object."""
