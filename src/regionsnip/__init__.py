"""RegionSnip: screen region and full-screen capture to an image file.

- Interactive drag-to-select overlay spanning every monitor
- Non-interactive capture of one monitor or the whole virtual desktop
- PNG or JPEG output with optional downscale
- One JSON result line on stdout per run
"""

__version__ = "1.0.0"
