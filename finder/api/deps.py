"""
FastAPI dependencies.
"""
from fastapi import Request

from finder.core.operations import Finder


def get_finder(request: Request) -> Finder:
    """The Finder built at startup; shared read-only by all requests."""
    return request.app.state.finder
