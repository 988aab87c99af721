"""
Playback Errors
===============

Terminal error taxonomy for a playback run.

Every failure mode is unrecoverable for a single run: errors propagate
to the CLI, which logs them once and maps them to an exit code.
"""


class PlayerError(Exception):
    """Base class for all playback failures."""
    
    exit_code: int = 1


class SourceNotFound(PlayerError):
    """Raised when the video path is missing, not a file, or unreadable."""
    
    exit_code = 2


class DecodeError(PlayerError):
    """Raised when the decoder reports a corrupt or unsupported frame."""
    
    exit_code = 3


class RenderTargetError(PlayerError):
    """Raised when the display surface can no longer be written to."""
    
    exit_code = 4
