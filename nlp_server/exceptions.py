"""
NLP Server Exception Hierarchy

Every error is a request or configuration problem, never a transient fault:
none of them is retryable. Each carries a ``kind`` and the offending
identifier so the HTTP layer can map it to a distinct failure response.
"""
from typing import Any, Dict, Optional


class NLPServerError(Exception):
    """
    Base class for the errors raised by the pipeline commands

    Attributes:
        message: Human-readable error message
        kind: Stable name of the error kind
        status_code: HTTP status the error is reported with
        is_retryable: Always False, none of these errors is transient
    """

    kind: str = "NLPServerError"
    status_code: int = 500
    is_retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def identifiers(self) -> Dict[str, Any]:
        """Get the identifiers that name what the error is about"""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the externally visible error body"""
        body = {"error": self.kind, "detail": self.message}
        body.update(self.identifiers())
        return body

    def __str__(self):
        return f"{self.kind}: {self.message}"


class EmptyInput(NLPServerError):
    """The input text is empty or blank"""

    kind = "EmptyInput"
    status_code = 400

    def __init__(self, message: str = "The input text is empty"):
        super().__init__(message)


class LanguageNotSupported(NLPServerError):
    """
    The forced or detected language has no resources for the requested operation
    """

    kind = "LanguageNotSupported"
    status_code = 400

    def __init__(self, language: str, operation: Optional[str] = None):
        message = f"Language not supported: '{language}'"
        if operation:
            message += f" (operation: {operation})"
        super().__init__(message)
        self.language = language
        self.operation = operation

    def identifiers(self) -> Dict[str, Any]:
        return {"language": self.language}


class LanguageDetectionUnavailable(NLPServerError):
    """
    No language was given and no language detector is configured

    This is a configuration error, not something the caller can recover from
    by retrying the same request.
    """

    kind = "LanguageDetectionUnavailable"
    status_code = 503

    def __init__(self, message: str = "Cannot determine language automatically (missing language detector)"):
        super().__init__(message)


class MissingResource(NLPServerError):
    """
    A required per-language resource is absent

    Examples: the embeddings of a language whose encoder is enabled, the
    locations dictionary.
    """

    kind = "MissingResource"
    status_code = 500

    def __init__(self, resource: str, language: str):
        super().__init__(f"Missing resource '{resource}' for language '{language}'")
        self.resource = resource
        self.language = language

    def identifiers(self) -> Dict[str, Any]:
        return {"resource": self.resource, "language": self.language}


class InvalidDomain(NLPServerError):
    """The requested frame extractor domain is not registered"""

    kind = "InvalidDomain"
    status_code = 400

    def __init__(self, domain: str):
        super().__init__(f"Invalid frame extractor domain: '{domain}'")
        self.domain = domain

    def identifiers(self) -> Dict[str, Any]:
        return {"domain": self.domain}


class ResourceConfigurationError(NLPServerError):
    """The resources configuration file is unreadable or malformed"""

    kind = "ResourceConfigurationError"
    status_code = 500

    def __init__(self, message: str, path: Optional[str] = None,
                 original_error: Optional[Exception] = None):
        super().__init__(message)
        self.path = path
        self.original_error = original_error

    def identifiers(self) -> Dict[str, Any]:
        return {"path": self.path} if self.path else {}
