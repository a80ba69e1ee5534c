"""Read, write and strip JPEG and PNG metadata for web images."""

__version__ = "0.2.0"