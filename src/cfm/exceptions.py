"""
Exception taxonomy for CFM.

Per-item errors (everything except InvalidBatchInput) are contained by the
batch orchestrator and recorded on the BatchResult. Only InvalidBatchInput
escapes a batch call.
"""


class CfmError(Exception):
    """Base exception for all CFM errors"""
    pass


class ValidationError(CfmError):
    """Raised when an analysis result lacks a required substructure"""
    pass


class MappingError(CfmError):
    """Raised when a source construct cannot be represented canonically"""
    pass


class GenerationError(CfmError):
    """Raised when a generator cannot produce output for a valid form"""
    pass


class UnexpectedError(CfmError):
    """Wraps any other exception raised while processing a batch item"""
    pass


class InvalidBatchInput(CfmError):
    """Raised when the batch entry point itself is called incorrectly"""
    pass


class UnknownTargetError(CfmError):
    """Raised when no generator is registered under a target name"""
    pass


class ConfigError(CfmError):
    """Raised when a generation options document is malformed"""
    pass
