"""
Housing board API contracts.

Typed schemas for users and posts, projection of full entities into
embedded views, and the envelopes every response is wrapped in.
"""

__version__ = "0.1.0"
