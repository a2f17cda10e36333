"""Admin backend for the product catalog."""

__version__ = '0.1.0'
