"""Shared model bases."""

from .base import SerialFlashBaseModel
from .results import BaseResult


__all__ = ["BaseResult", "SerialFlashBaseModel"]
