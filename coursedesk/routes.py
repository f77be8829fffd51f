"""URL routing for the enrollment API."""

from __future__ import annotations

from typing import Any, Callable, Iterable

from werkzeug.wrappers import Request, Response

from coursedesk.handlers import Handler

View = Callable[[Request], Response]


class Application:
    """WSGI application dispatching requests to the handler by path and method."""

    def __init__(self, handler: Handler) -> None:
        self.handler = handler
        self._routes: dict[str, dict[str, View]] = {
            "/signup": {"POST": handler.course_sign_up},
            "/courses": {"GET": handler.list_courses},
            "/cancel": {"POST": handler.cancel_course},
            "/classmates": {"GET": handler.list_classmates},
        }

    def __call__(self, environ: dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        response = self._dispatch(Request(environ))
        return response(environ, start_response)

    def _dispatch(self, request: Request) -> Response:
        methods = self._routes.get(request.path)
        if methods is None:
            return Response(
                "404 page not found\n", status=404, content_type="text/plain; charset=utf-8"
            )
        view = methods.get(request.method)
        if view is None:
            return Response(status=405)
        return view(request)


def setup_routes(handler: Handler) -> Application:
    """Return the application serving the handler's endpoints."""
    return Application(handler)