"""Headless entity-component physics: rigid bodies, sphere/box/capsule collisions and position-based cloth."""

__version__ = "0.1.0"