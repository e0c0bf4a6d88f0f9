"""Per-folder EXIF metadata index for images in S3-compatible object stores."""

__version__ = "0.1.0"
