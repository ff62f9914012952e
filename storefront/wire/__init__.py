"""
Wire — the HTTP surface.

    from storefront.wire import create_app

    storefront = await Storefront.open(Settings.from_env())
    app = create_app(storefront, close_on_shutdown=True)
    # uvicorn.run(app)

Request models decode JSON into domain values with `to_domain()`,
response models encode results with `from_domain()`.
"""

from storefront.wire._app import create_app
from storefront.wire._errors import error_body, install_error_handlers, status_for
from storefront.wire._deps import get_storefront, rate_limited, require_admin
from storefront.wire import _codecs as codecs

__all__ = (
    "create_app",
    "error_body",
    "install_error_handlers",
    "status_for",
    "get_storefront",
    "rate_limited",
    "require_admin",
    "codecs",
)
