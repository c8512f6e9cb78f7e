"""PhotoOverlay application package.

Composites a background image and a transparent overlay through an external
renderer (ffmpeg) and streams the resulting PNG back to HTTP clients.
"""

__all__: list[str] = []
