"""Test factories for images and model directories."""

from .images import make_image, make_image_bytes
from .models import write_model_dir

__all__ = [
    "make_image",
    "make_image_bytes",
    "write_model_dir",
]
