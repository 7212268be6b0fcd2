from __future__ import annotations

from django.utils.deprecation import MiddlewareMixin


class SecurityHeadersMiddleware(MiddlewareMixin):
    """Add a Content-Security-Policy and related headers to every response.

    The API only serves JSON, so the policy is strict. The Swagger UI page
    loads its assets from the jsDelivr CDN and is the only relaxed path.
    """

    docs_path = "/api/docs/"
    docs_cdn = "https://cdn.jsdelivr.net"

    def process_response(self, request, response):  # noqa: D401
        if request.path == self.docs_path:
            csp = (
                "default-src 'self'; "
                f"script-src 'self' {self.docs_cdn}; "
                f"style-src 'self' 'unsafe-inline' {self.docs_cdn}; "
                f"img-src 'self' data: {self.docs_cdn}; "
                "frame-ancestors 'none'"
            )
        else:
            csp = (
                "default-src 'self'; "
                "img-src 'self' https://res.cloudinary.com data:; "
                "script-src 'self'; "
                "style-src 'self'; "
                "frame-ancestors 'none'"
            )
        response["Content-Security-Policy"] = csp
        response.setdefault("Cross-Origin-Opener-Policy", "same-origin")
        return response
