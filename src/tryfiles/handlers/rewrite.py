"""
Request rewriters.

A rewriter takes the incoming request and returns the request that should
be looked up. TryFilesHandler applies it exactly once, before anything
touches the filesystem:

    handler.strip_prefix("/app")     GET /app/assets/x.js  →  /assets/x.js
    handler.strip_suffix(".html")    GET /about.html       →  /about

Both built-ins trim `path` and `raw_path` independently, and leave either
one alone when it does not carry the prefix/suffix.
"""

from typing import Callable

from ..http.request import HTTPRequest


Rewriter = Callable[[HTTPRequest], HTTPRequest]


def strip_prefix(prefix: str) -> Rewriter:
    """Build a rewriter that removes `prefix` from the start of the path."""

    def rewrite(request: HTTPRequest) -> HTTPRequest:
        if prefix:
            if request.path.startswith(prefix):
                request.path = request.path[len(prefix):]
            if request.raw_path.startswith(prefix):
                request.raw_path = request.raw_path[len(prefix):]
        return request

    return rewrite


def strip_suffix(suffix: str) -> Rewriter:
    """Build a rewriter that removes `suffix` from the end of the path."""

    def rewrite(request: HTTPRequest) -> HTTPRequest:
        if suffix:
            if request.path.endswith(suffix):
                request.path = request.path[:-len(suffix)]
            if request.raw_path.endswith(suffix):
                request.raw_path = request.raw_path[:-len(suffix)]
        return request

    return rewrite
