"""
ascii-player
============

Terminal video player that renders every frame of a video as ASCII art.

The package is organised as a small frame pipeline:
    - stream: Video decoding behind the FrameSource interface
    - convert: Downsampling to a character grid and glyph mapping
    - display: Fixed-origin terminal repaint
    - playback: Pacing controller, playback clock and the Player loop

Example:
    from ascii_player.config import load_config
    from ascii_player.playback import Player
    
    settings = load_config()
    summary = Player.from_settings(settings).play("clip.mp4")
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
