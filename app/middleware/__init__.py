"""Middleware package"""
from .request_id import RequestIdMiddleware
from .sanitize import register_input_sanitizer

__all__ = [
    'RequestIdMiddleware',
    'register_input_sanitizer',
]
