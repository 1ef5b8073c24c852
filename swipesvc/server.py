"""HTTP interface of the service: swipe and match endpoints behind CORS and request logging."""

from __future__ import annotations

import json
import logging
import re
import time
import uuid
from http import HTTPStatus
from typing import Any, Callable, Iterable, Mapping, Optional

import jwt
from werkzeug.exceptions import HTTPException, MethodNotAllowed, NotFound
from werkzeug.routing import Map, Rule
from werkzeug.wrappers import Request, Response

from swipesvc.cors import CORSOptions, cors
from swipesvc.domain import Pagination, Swipe, UserID
from swipesvc.logger import ROOT_LOGGER
from swipesvc.usecases import MatchesUseCase, SwipesUseCase

DEFAULT_PAGE_LIMIT = 25

DEFAULT_CORS = CORSOptions(
    allowed_origins=("http://localhost:3000",),
    allowed_methods=("GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"),
    allowed_headers=("Origin", "Content-Type", "Accept", "Authorization"),
    allow_credentials=True,
)

_TEXT = "text/plain; charset=utf-8"
_BEARER_PREFIX = "Bearer "
_INT_RE = re.compile(r"[+-]?[0-9]+")
_HYPHENATED = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"
_UUID_RE = re.compile(
    rf"[0-9a-f]{{32}}|(?:urn:uuid:)?{_HYPHENATED}|\{{{_HYPHENATED}\}}", re.IGNORECASE
)
_SIGNING_METHODS = frozenset(
    {f"{family}{bits}" for family in ("HS", "RS", "PS", "ES") for bits in (256, 384, 512)}
    | {"EdDSA", "none"}
)

_URLS = Map(
    [
        Rule("/swipes", methods=["GET"], endpoint="get_swipes"),
        Rule("/swipes", methods=["POST"], endpoint="create_swipe"),
        Rule("/matches", methods=["GET"], endpoint="get_matches"),
        Rule("/healthy", methods=["GET"], endpoint="healthy"),
    ]
)


class AuthError(Exception):
    """The request carries no usable user identity."""


class _Object(list):
    """Key/value pairs of a JSON object, in document order."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


_DECODER = json.JSONDecoder(object_pairs_hook=_Object, parse_constant=_reject_constant)


def _atoi(text: Optional[str]) -> Optional[int]:
    if text is None or not _INT_RE.fullmatch(text):
        return None
    value = int(text)
    return value if -(2**63) <= value < 2**63 else None


def pagination(args: Mapping[str, str]) -> Pagination:
    """Page from the ``page`` and ``limit`` query arguments.

    ``page`` is used as the offset when it is a non-negative integer; ``limit``
    when it is a positive one. Otherwise the offset is 0 and the limit 25.
    """
    page = _atoi(args.get("page"))
    size = _atoi(args.get("limit"))
    return Pagination(
        offset=page if page is not None and page >= 0 else 0,
        limit=size if size is not None and size > 0 else DEFAULT_PAGE_LIMIT,
    )


def _parse_uuid(text: str) -> uuid.UUID:
    """Parse a UUID in canonical, braced, URN or plain hex form."""
    if not _UUID_RE.fullmatch(text):
        raise ValueError(f"invalid UUID: {text!r}")
    return uuid.UUID(text)


def user_id_from_authorization(header: Optional[str]) -> UserID:
    """User id from the subject of the bearer token; the signature is not checked."""
    if not header:
        raise AuthError("no Authorization header")
    compact = header.removeprefix(_BEARER_PREFIX)
    try:
        algorithm = jwt.get_unverified_header(compact).get("alg")
        claims = jwt.decode(compact, options={"verify_signature": False})
    except jwt.PyJWTError as exc:
        raise AuthError(f"failed to parse jwt: {exc}") from exc
    if algorithm not in _SIGNING_METHODS:
        raise AuthError(f"failed to parse jwt: signing method {algorithm} is unavailable")
    if not isinstance(claims, dict):
        raise AuthError("invalid token claims")
    subject = claims.get("sub", "")
    if not isinstance(subject, str):
        raise AuthError("failed to get subject from jwt: invalid type for claim sub")
    try:
        return _parse_uuid(subject)
    except ValueError as exc:
        raise AuthError(f"invalid subject: {exc}") from exc


def _decode_swipe_request(body: bytes) -> tuple[uuid.UUID, bool]:
    """Target id and like flag from the first JSON value of a request body."""
    text = body.decode("utf-8").lstrip(" \t\r\n")
    if not text:
        raise ValueError("empty request body")
    value, _ = _DECODER.raw_decode(text)
    target, like = uuid.UUID(int=0), False
    if value is None:
        return target, like
    if not isinstance(value, _Object):
        raise ValueError("request body is not a JSON object")
    for key, item in value:
        name = key.lower()
        if item is None or name not in ("targetid", "like"):
            continue
        if name == "targetid":
            if not isinstance(item, str):
                raise ValueError("targetId must be a string")
            target = _parse_uuid(item)
        else:
            if not isinstance(item, bool):
                raise ValueError("like must be a boolean")
            like = item
    return target, like


def _text(body: str, code: int) -> Response:
    response = Response(body, status=code, content_type=_TEXT)
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response


def _error(code: HTTPStatus) -> Response:
    return _text(f"{code.phrase}\n", int(code))


def _empty_ok() -> Response:
    response = Response(status=int(HTTPStatus.OK))
    response.headers.remove("Content-Type")
    return response


def _json_ids(ids: Iterable[uuid.UUID]) -> Response:
    body = json.dumps([str(item) for item in ids], separators=(",", ":")) + "\n"
    return Response(body, status=int(HTTPStatus.OK), content_type=_TEXT)


class SwipeApp:
    """WSGI application serving swipes and matches."""

    def __init__(
        self,
        matches_uc: MatchesUseCase,
        swipes_uc: SwipesUseCase,
        log: Optional[logging.Logger] = None,
        cors_options: CORSOptions = DEFAULT_CORS,
    ) -> None:
        self._matches_uc = matches_uc
        self._swipes_uc = swipes_uc
        self._log = (log or logging.getLogger(ROOT_LOGGER)).getChild("http_server")
        self._log.info("register handlers")
        self._endpoints: dict[str, Callable[[Request], Response]] = {
            "get_swipes": self._get_swipes,
            "create_swipe": self._create_swipe,
            "get_matches": self._get_matches,
            "healthy": lambda request: _empty_ok(),
        }
        self._handler = cors(cors_options)(self._route)

    def __call__(self, environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        started = time.perf_counter()
        status_code = int(HTTPStatus.OK)

        def recording_start_response(status: str, headers: list, exc_info: Any = None) -> Any:
            nonlocal status_code
            status_code = int(status.split(None, 1)[0])
            return start_response(status, headers, exc_info)

        result = self._handler(environ, recording_start_response)
        request_fields = {
            "method": environ.get("REQUEST_METHOD", ""),
            "path": environ.get("PATH_INFO", ""),
            "status": status_code,
            "dur": f"{(time.perf_counter() - started) * 1000:.3f}ms",
            "remote_ip": f"{environ.get('REMOTE_ADDR', '')}:{environ.get('REMOTE_PORT', '')}",
            "user_agent": environ.get("HTTP_USER_AGENT", ""),
        }
        self._log.debug("request", extra={"fields": {"request": request_fields}})
        return result

    def _route(self, environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        try:
            endpoint, _ = _URLS.bind_to_environ(environ).match()
            response = self._endpoints[endpoint](Request(environ))
        except NotFound:
            response = _text("404 page not found\n", int(HTTPStatus.NOT_FOUND))
        except MethodNotAllowed as exc:
            response = _error(HTTPStatus.METHOD_NOT_ALLOWED)
            response.headers["Allow"] = ", ".join(sorted(exc.valid_methods or ()))
        except HTTPException as exc:
            response = exc.get_response(environ)
        except AuthError as exc:
            self._log.warning("no auth user", extra={"fields": {"error": exc}})
            response = _error(HTTPStatus.UNAUTHORIZED)
        return response(environ, start_response)

    def _fail(self, message: str, exc: Exception) -> Response:
        self._log.error(message, extra={"fields": {"error": exc}})
        return _error(HTTPStatus.INTERNAL_SERVER_ERROR)

    def _create_swipe(self, request: Request) -> Response:
        user_id = user_id_from_authorization(request.headers.get("Authorization"))
        try:
            target, like = _decode_swipe_request(request.get_data())
        except ValueError as exc:
            self._log.debug("could not unmarshal swipe", extra={"fields": {"error": exc}})
            return _error(HTTPStatus.BAD_REQUEST)
        try:
            self._swipes_uc.create_swipe(
                Swipe(init=user_id, target=target, init_resp=like, target_resp=None)
            )
        except Exception as exc:
            return self._fail("failed to create swipe", exc)
        return _empty_ok()

    def _get_swipes(self, request: Request) -> Response:
        user_id = user_id_from_authorization(request.headers.get("Authorization"))
        try:
            swipes = self._swipes_uc.my_swipes(user_id, pagination(request.args))
        except Exception as exc:
            return self._fail("failed to get swipes", exc)
        return _json_ids(swipe.init for swipe in swipes)

    def _get_matches(self, request: Request) -> Response:
        user_id = user_id_from_authorization(request.headers.get("Authorization"))
        try:
            matches = self._matches_uc.matches(user_id, pagination(request.args))
        except Exception as exc:
            return self._fail("failed to get matches", exc)
        return _json_ids(
            match.target if match.target != user_id else match.init for match in matches
        )


def create_app(matches_uc: MatchesUseCase, swipes_uc: SwipesUseCase) -> SwipeApp:
    """The service's WSGI application with the default CORS policy."""
    return SwipeApp(matches_uc, swipes_uc)