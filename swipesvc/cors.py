"""Cross-origin resource sharing for WSGI applications."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Sequence

WSGIApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]


@dataclass(frozen=True)
class CORSOptions:
    """Which origins, methods and headers a cross-origin caller may use."""

    allowed_origins: Sequence[str] = ()
    allowed_methods: Sequence[str] = ()
    allowed_headers: Sequence[str] = ()
    allow_credentials: bool = False
    max_age: int = 0

    def response_headers(self, origin: str) -> list[tuple[str, str]]:
        """The CORS headers sent to a caller from ``origin``."""
        headers: list[tuple[str, str]] = []
        if self.allowed_origins:
            headers.append(("Access-Control-Allow-Origin", origin))
        if self.allowed_methods:
            headers.append(("Access-Control-Allow-Methods", ", ".join(self.allowed_methods)))
        if self.allowed_headers:
            headers.append(("Access-Control-Allow-Headers", ", ".join(self.allowed_headers)))
        if self.allow_credentials:
            headers.append(("Access-Control-Allow-Credentials", "true"))
        if self.max_age > 0:
            headers.append(("Access-Control-Max-Age", str(self.max_age)))
        return headers

    def allows(self, origin: str) -> bool:
        if not self.allowed_origins:
            return True
        return any(allowed in ("*", origin) for allowed in self.allowed_origins)


def cors(options: CORSOptions) -> Callable[[WSGIApp], WSGIApp]:
    """Middleware that adds CORS headers and answers preflight requests.

    Requests from origins that are not allowed pass through untouched.
    """

    def middleware(app: WSGIApp) -> WSGIApp:
        def wrapped(environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
            origin = environ.get("HTTP_ORIGIN", "")
            if not options.allows(origin):
                return app(environ, start_response)

            extra = options.response_headers(origin)

            if environ.get("REQUEST_METHOD") == "OPTIONS":
                start_response("204 No Content", extra)
                return []

            def cors_start_response(
                status: str,
                headers: list[tuple[str, str]],
                exc_info: Optional[Any] = None,
            ) -> Any:
                present = {name.lower() for name, _ in headers}
                merged = list(headers) + [
                    (name, value) for name, value in extra if name.lower() not in present
                ]
                return start_response(status, merged, exc_info)

            return app(environ, cors_start_response)

        return wrapped

    return middleware