"""Common error handling for all services"""

class ServiceError(Exception):
    """Base exception for all service errors"""
    pass

class ConfigError(ServiceError):
    """Base exception for configuration errors"""
    pass

class EngineError(ServiceError):
    """Base exception for session engine errors"""
    pass

class PersistenceError(ServiceError):
    """Base exception for session persistence errors"""
    pass

class DatabaseError(PersistenceError):
    """Base exception for database-related errors"""
    pass

class ScriptError(ServiceError):
    """Base exception for user script execution errors"""
    pass

class NotificationError(ServiceError):
    """Base exception for notification delivery errors"""
    pass

class RunnerError(ServiceError):
    """Base exception for timer runner errors"""
    pass
