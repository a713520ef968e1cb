"""
REST resources mounted on the hosting Flask application.

A resource exposes one handler per HTTP verb. Collection endpoints live at
the resource's base path, item endpoints at ``{base_path}/<id>``:

    GET    /users        -> get_all(request)
    POST   /users        -> post(request)
    DELETE /users        -> delete_all(request)
    GET    /users/<id>   -> get(request, id)
    PUT    /users/<id>   -> put(request, id)
    DELETE /users/<id>   -> delete(request, id)
"""

import logging
import posixpath
from typing import Any, Callable, Optional, Tuple

from flask import Flask, Response, jsonify, request

from loom.error.application_error import ApplicationError, DuplicateEntryError, NotImplementedYetError

logger = logging.getLogger(__name__)

RESOURCE_VERBS: Tuple[str, ...] = ("get_all", "get", "post", "put", "delete_all", "delete")

# (verb handler, HTTP method, item endpoint)
_ROUTES: Tuple[Tuple[str, str, bool], ...] = (
    ("get_all", "GET", False),
    ("post", "POST", False),
    ("delete_all", "DELETE", False),
    ("get", "GET", True),
    ("put", "PUT", True),
    ("delete", "DELETE", True),
)


class Resource:
    """
    Base class for REST resources.

    Subclasses override the verbs they support; the rest answer with 501.
    Set ``base_path`` to mount somewhere other than the path derived from the
    registration key.
    """

    base_path: Optional[str] = None

    def get_all(self, request: Any) -> Any:
        raise NotImplementedYetError(f"{self.__class__.__name__} does not implement get_all")

    def get(self, request: Any, id: str) -> Any:
        raise NotImplementedYetError(f"{self.__class__.__name__} does not implement get")

    def post(self, request: Any) -> Any:
        raise NotImplementedYetError(f"{self.__class__.__name__} does not implement post")

    def put(self, request: Any, id: str) -> Any:
        raise NotImplementedYetError(f"{self.__class__.__name__} does not implement put")

    def delete_all(self, request: Any) -> Any:
        raise NotImplementedYetError(f"{self.__class__.__name__} does not implement delete_all")

    def delete(self, request: Any, id: str) -> Any:
        raise NotImplementedYetError(f"{self.__class__.__name__} does not implement delete")


def derive_base_path(key: str) -> str:
    """Turn a registration key such as ``api/users.py`` into ``/api/users``."""
    stem, _ = posixpath.splitext(key)
    return normalize_path(stem)


def normalize_path(path: str) -> str:
    return "/" + path.strip("/")


def error_response(error: ApplicationError) -> Tuple[Response, int]:
    return jsonify({"error": error.__class__.__name__, "message": error.message}), error.code


def _endpoint(handler: Callable[..., Any]) -> Callable[..., Any]:
    def view(**kwargs: Any) -> Any:
        try:
            result = handler(request, *kwargs.values())
        except ApplicationError as e:
            logger.debug(f"{request.method} {request.path} failed: {e}")
            return error_response(e)
        if isinstance(result, Response) or isinstance(result, tuple):
            return result
        return jsonify(result)

    return view


def mount_resource(app: Flask, resource: Any, base_path: str, name: Optional[str] = None) -> None:
    """
    Add URL rules for every verb of a resource under base_path.

    Args:
        app: Hosting web application
        resource: Constructed resource instance
        base_path: Collection path of the resource
        name: Registration key, used to name the endpoints; defaults to base_path

    Raises:
        DuplicateEntryError: If something is already mounted at base_path
    """
    base_path = normalize_path(base_path)
    if any(rule.rule == base_path for rule in app.url_map.iter_rules()):
        raise DuplicateEntryError(
            f"Cannot mount {resource.__class__.__name__}: '{base_path}' is already mounted"
        )
    for verb, method, is_item in _ROUTES:
        rule = f"{base_path.rstrip('/')}/<id>" if is_item else base_path
        app.add_url_rule(
            rule,
            endpoint=f"{name or base_path}:{verb}",
            view_func=_endpoint(getattr(resource, verb)),
            methods=[method],
        )
    logger.info(f"Mounted resource {resource.__class__.__name__} at {base_path}")
