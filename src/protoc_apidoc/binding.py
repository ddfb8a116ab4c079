from __future__ import annotations

from typing import Dict, NamedTuple

from protoc_apidoc.models import Method

DEFAULT_VERB = "POST"

VERBS_BY_PATTERN: Dict[str, str] = {
    "get": "GET",
    "put": "PUT",
    "post": "POST",
    "delete": "DELETE",
    "patch": "PATCH",
}


class Binding(NamedTuple):
    verb: str
    path: str


def resolve_binding(method: Method, patch_as_delete: bool = False) -> Binding:
    """Derive the HTTP verb and path of a method from its google.api.http rule.

    Methods without a rule, or with a pattern other than get/put/post/delete/
    patch (e.g. custom), fall back to POST on the method's full name.
    With patch_as_delete, patch rules resolve to DELETE as earlier releases
    of the generator emitted.
    """
    rule = method.http_rule
    if rule is None or rule.pattern not in VERBS_BY_PATTERN:
        return Binding(DEFAULT_VERB, method.full_name)

    verb = VERBS_BY_PATTERN[rule.pattern]
    if rule.pattern == "patch" and patch_as_delete:
        verb = "DELETE"
    return Binding(verb, rule.path)
