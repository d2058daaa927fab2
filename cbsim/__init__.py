"""Colour-blindness simulation, image filters, a UDP image service and a quiz web service."""

__version__ = "0.1.0"