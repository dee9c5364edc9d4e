"""Minimal deterministic OpenAPI document for the VanSupport API.

Paths come from the ENDPOINTS registry below; the Ticket schema carries the
live status graph under `x-transitions` so clients can render the allowed
next states without hardcoding them.
"""
from typing import Any, Dict, List, Tuple

from .config.pagination import PAGE_SIZES, DEFAULT_PAGE_SIZE
from .constants.ticketing import PRIORITIES, URGENCIES, AUTHOR_TYPES
from .models.ticket import Ticket

__all__ = ["build_openapi_spec", "ENDPOINTS"]

# (method, path, summary, access, paginated)
# access: "public", "login", "tech" (manager/admin) or "admin"
ENDPOINTS: List[Tuple[str, str, str, str, bool]] = [
    ("post", "/api/auth/login", "Login and set the session cookie", "public", False),
    ("post", "/api/auth/logout", "Clear the session cookie", "public", False),
    ("get", "/api/auth/me", "Current user", "login", False),
    ("get", "/api/tickets/unassigned", "Unassigned active tickets, most urgent first", "tech", True),
    ("get", "/api/tickets/my-tickets", "Active tickets assigned to the caller", "tech", True),
    ("get", "/api/tickets/all", "All tickets with filters and sort", "admin", True),
    ("get", "/api/tickets/{ticket_id}", "Ticket detail with comments and attachments", "tech", False),
    ("post", "/api/tickets/{ticket_id}/assign", "Assign a ticket", "tech", False),
    ("put", "/api/tickets/{ticket_id}/status", "Change ticket status", "tech", False),
    ("post", "/api/tickets/{ticket_id}/comments", "Add a technician comment", "tech", False),
    ("put", "/api/tickets/{ticket_id}/priority", "Change ticket priority", "tech", False),
    ("post", "/api/tickets/create", "File a new ticket", "public", False),
    ("get", "/api/tickets/public/{ticket_id}", "Customer view of a ticket", "public", False),
    ("get", "/api/tickets/public/{ticket_id}/comments", "Comment feed (use since= when polling)", "public", False),
    ("post", "/api/tickets/public/{ticket_id}/comments", "Add a customer comment", "public", False),
    ("put", "/api/tickets/public/{ticket_id}/resolve", "Customer marks the ticket resolved", "public", False),
    ("post", "/api/tickets/public/{ticket_id}/reopen", "Reopen as a new linked ticket", "public", False),
    ("post", "/api/tickets/public/{ticket_id}/attachments", "Upload an image or video", "public", False),
    ("get", "/api/owners", "List owners with van counts", "login", True),
    ("post", "/api/owners", "Create owner", "tech", False),
    ("get", "/api/owners/{owner_id}", "Owner detail", "login", False),
    ("put", "/api/owners/{owner_id}", "Update owner", "tech", False),
    ("delete", "/api/owners/{owner_id}", "Delete owner without dependents", "tech", False),
    ("get", "/api/owners/{owner_id}/check-dependencies", "Count vans and tickets referencing the owner", "login", False),
    ("get", "/api/vans", "List vans", "login", True),
    ("post", "/api/vans", "Create van", "tech", False),
    ("get", "/api/vans/{van_id}", "Van detail", "login", False),
    ("put", "/api/vans/{van_id}", "Update van", "tech", False),
    ("delete", "/api/vans/{van_id}", "Delete van without tickets", "tech", False),
    ("get", "/api/vans/{van_id}/check-dependencies", "Count tickets referencing the van", "login", False),
    ("get", "/api/categories", "Active ticket categories", "public", False),
    ("get", "/api/admin/users", "List users", "admin", False),
    ("post", "/api/admin/users", "Create user", "admin", False),
    ("put", "/api/admin/users/{user_id}", "Update user", "admin", False),
    ("delete", "/api/admin/users/{user_id}", "Delete user", "admin", False),
    ("put", "/api/admin/users/{user_id}/roles", "Replace user roles", "admin", False),
    ("put", "/api/admin/users/{user_id}/password", "Reset user password", "admin", False),
    ("get", "/api/admin/roles", "List roles", "admin", False),
]

ACCESS_ROLES = {"login": [], "tech": ["manager", "admin"], "admin": ["admin"]}


def _obj(props: Dict[str, Any], required: List[str] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "object", "properties": props}
    if required:
        schema["required"] = required
    return schema


def _str(**kw) -> Dict[str, Any]:
    return {"type": "string", **kw}


def _int() -> Dict[str, Any]:
    return {"type": "integer"}


def _schemas() -> Dict[str, Any]:
    from .services.ticket_lifecycle import TICKET_FSM
    ticket = _obj({
        "id": _str(format="uuid"),
        "ticket_number": _int(),
        "subject": _str(minLength=5, maxLength=200),
        "description": _str(minLength=20, maxLength=2000),
        "status": _str(enum=list(Ticket.ALL_STATUSES)),
        "priority": _str(enum=list(PRIORITIES)),
        "urgency": _str(enum=list(URGENCIES), nullable=True),
        "owner_id": _int(),
        "van_id": _int(),
        "category_id": _int(),
        "assigned_to": _int(),
        "resolution": _str(nullable=True),
        "reopened_from_id": _str(format="uuid", nullable=True),
        "created_at": _str(format="date-time"),
    }, ["id", "ticket_number", "subject", "status", "priority"])
    ticket["x-transitions"] = {s: sorted(TICKET_FSM.allowed_from(s)) for s in TICKET_FSM.states()}
    return {
        "Ticket": ticket,
        "Comment": _obj({
            "id": _str(format="uuid"),
            "author_name": _str(),
            "author_type": _str(enum=list(AUTHOR_TYPES)),
            "comment_text": _str(),
            "is_resolution": {"type": "boolean"},
            "created_at": _str(format="date-time"),
        }, ["id", "author_type", "comment_text"]),
        "Attachment": _obj({
            "id": _str(format="uuid"),
            "comment_id": _str(format="uuid", nullable=True),
            "mime_type": _str(),
            "public_url": _str(),
            "uploaded_by_type": _str(),
        }, ["id", "mime_type", "public_url"]),
        "Owner": _obj({"id": _int(), "name": _str(), "company": _str(nullable=True), "phone": _str(),
                       "email": _str(nullable=True), "van_count": _int()}, ["id", "name", "phone"]),
        "Van": _obj({"id": _int(), "van_number": _str(), "make": _str(), "version": _str(nullable=True),
                     "year": _int(), "vin": _str(nullable=True), "owner_id": _int()}, ["id", "van_number", "make"]),
        "User": _obj({"id": _int(), "email": _str(), "full_name": _str(nullable=True),
                      "is_active": {"type": "boolean"}, "roles": {"type": "array", "items": _str()}}, ["id", "email"]),
        "Role": _obj({"id": _int(), "name": _str(), "description": _str(nullable=True),
                      "user_count": _int()}, ["id", "name"]),
        "DependencyCheck": _obj({"hasDependencies": {"type": "boolean"}, "ticketCount": _int(),
                                 "vanCount": _int(), "message": _str()},
                                ["hasDependencies", "ticketCount", "vanCount", "message"]),
        "Pagination": _obj({
            "page": _int(), "limit": _int(), "totalCount": _int(), "totalPages": _int(),
            "hasNextPage": {"type": "boolean"}, "hasPreviousPage": {"type": "boolean"},
        }, ["page", "limit", "totalCount", "totalPages", "hasNextPage", "hasPreviousPage"]),
        "Error": _obj({"error": _obj({"status": _int(), "title": _str(), "detail": _str(),
                                      "fields": {"type": "object", "additionalProperties": _str()}},
                                     ["status", "title", "detail"])}, ["error"]),
    }


def _path_params(path: str) -> List[Dict[str, Any]]:
    params = []
    for part in path.split("/"):
        if part.startswith("{"):
            name = part.strip("{}")
            schema = _str(format="uuid") if name == "ticket_id" else _int()
            params.append({"name": name, "in": "path", "required": True, "schema": schema})
    return params


def build_openapi_spec() -> Dict[str, Any]:
    components: Dict[str, Any] = {
        "schemas": _schemas(),
        "parameters": {
            "PageParam": {"name": "page", "in": "query", "schema": {"type": "integer", "minimum": 1, "default": 1}},
            "LimitParam": {"name": "limit", "in": "query",
                           "schema": {"type": "integer", "enum": list(PAGE_SIZES), "default": DEFAULT_PAGE_SIZE},
                           "description": "Values outside the enum fall back to the default"},
        },
        "responses": {
            "NotFound": {"description": "Not Found", "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Error"}}}},
            "BadRequest": {"description": "Bad Request", "content": {"application/json": {"schema": {"$ref": "#/components/schemas/Error"}}}},
        },
        "securitySchemes": {
            "CookieAuth": {"type": "apiKey", "in": "cookie", "name": "token"},
            "BearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
        },
    }

    paths: Dict[str, Any] = {}
    tags = set()
    for method, path, summary, access, paginated in ENDPOINTS:
        tag = path.split("/")[2].capitalize()
        tags.add(tag)
        rid = path.strip("/").replace("/", "_").replace("{", "").replace("}", "").replace("-", "_")
        op: Dict[str, Any] = {
            "summary": summary,
            "operationId": f"{method}_{rid}",
            "tags": [tag],
            "responses": {"200": {"description": "OK"}, "400": {"$ref": "#/components/responses/BadRequest"}},
        }
        params = _path_params(path)
        if paginated:
            params += [{"$ref": "#/components/parameters/PageParam"}, {"$ref": "#/components/parameters/LimitParam"}]
        if params:
            op["parameters"] = params
        if "{" in path:
            op["responses"]["404"] = {"$ref": "#/components/responses/NotFound"}
        if access == "public":
            op["security"] = []
        else:
            op["x-required-roles"] = ACCESS_ROLES[access]
        paths.setdefault(path, {})[method] = op

    return {
        "openapi": "3.0.3",
        "info": {"title": "VanSupport API", "version": "0.1.0"},
        "paths": paths,
        "components": components,
        "security": [{"CookieAuth": []}, {"BearerAuth": []}],
        "tags": [{"name": n, "description": f"{n} endpoints"} for n in sorted(tags)],
    }
