"""Custom exception classes"""


class FieldServiceException(Exception):
    """Base exception for the field service backend"""
    status_code = 500


class ValidationException(FieldServiceException):
    """Invalid input rejected before any side effect"""
    status_code = 400


class NotFoundException(FieldServiceException):
    """Referenced record does not exist (or is not visible to the caller)"""
    status_code = 404


class AuthorizationException(FieldServiceException):
    """Caller lacks the role required for an operation"""
    status_code = 403


class UpstreamException(FieldServiceException):
    """External service errors (embedding provider, vector index)"""
    status_code = 502


class EmbeddingException(UpstreamException):
    """Embedding generation failed"""
    pass


class VectorStoreException(UpstreamException):
    """Vector index operation failed"""
    pass


class DatabaseException(FieldServiceException):
    """Database operation errors"""
    pass


class StorageException(FieldServiceException):
    """Chunk persistence failed and was rolled back"""
    pass
