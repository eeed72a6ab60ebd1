"""File conversion service.

Accepts media uploads, converts them with ffmpeg (using a hardware video
encoder when one is usable) and serves the converted files.
"""

__version__ = "0.1.0"
