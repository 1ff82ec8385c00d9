"""Adapters for external systems."""

from .serial_adapter import SerialPortAdapter, create_serial_adapter


__all__ = ["SerialPortAdapter", "create_serial_adapter"]
