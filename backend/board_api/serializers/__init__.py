"""
Response serializers and envelope helpers.
"""

from .response import wrap_one, wrap_many, wrap_error, error_from_exception, build_meta

__all__ = ['wrap_one', 'wrap_many', 'wrap_error', 'error_from_exception', 'build_meta']
