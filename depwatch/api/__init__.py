"""Falcon ASGI HTTP API for depwatch.

Usage
-----
Build the application with every service wired in::

    from depwatch.api import create_app
    from depwatch.api.app import AppDependencies

    app = create_app(AppDependencies(services=services))

Public API
----------
create_app
    Application factory returning a configured ``falcon.asgi.App``.

"""

from __future__ import annotations

from depwatch.api.app import create_app

__all__ = ["create_app"]
