# src/iot_dispatch/utils/exceptions.py
from typing import Optional


class IoTDispatchError(Exception):
    """Base exception class for the dispatch gateway"""
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

class ConfigurationError(IoTDispatchError):
    """Raised when there are issues with configuration"""
    pass

class InitializationError(IoTDispatchError):
    """Raised when component initialization fails"""
    pass

class CommunicationError(IoTDispatchError):
    """Raised when communication with external services fails"""

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status

class InvalidPayload(IoTDispatchError):
    """Raised when a request is malformed or misses required fields"""
    status_code = 400

class UnknownEntity(IoTDispatchError):
    """Raised for unrecognized devices, services or unconfigured commands"""
    status_code = 400

class ResolutionFailure(IoTDispatchError):
    """Raised when the directory or command catalog cannot be consulted"""
    status_code = 500

    def __init__(self, message: str, uri: Optional[str] = None):
        super().__init__(message)
        self.uri = uri

class ForwardingFailure(IoTDispatchError):
    """Raised when the final downstream call fails"""
    status_code = 200

    def __init__(self, message: str, uri: str):
        super().__init__(message)
        self.uri = uri

class UnsupportedOperation(IoTDispatchError):
    """Raised for paths that are explicitly disabled"""
    status_code = 404
