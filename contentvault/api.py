import json
import logging

from aiohttp import web

from .db import ContentVaultStore
from .schema import SlugConflictError, StorageError, ValidationError, validate_content_payload

logger = logging.getLogger("ContentVault")

STORE_KEY = web.AppKey("store", ContentVaultStore)


def _json_response(obj, status=200):
    return web.Response(
        status=status,
        text=json.dumps(obj, ensure_ascii=False),
        content_type="application/json",
    )


def _error(msg, status, **extra):
    body = {"error": msg}
    body.update(extra)
    return _json_response(body, status=status)


def _bad_request(msg, **extra):
    return _error(msg, 400, **extra)


@web.middleware
async def error_middleware(request, handler):
    try:
        return await handler(request)
    except web.HTTPException as exc:
        # Router errors on the JSON API (unknown path, wrong method) keep the JSON error shape.
        if exc.status < 400 or not request.path.startswith("/api/"):
            raise
        resp = _error(exc.reason, exc.status)
        if "Allow" in exc.headers:
            resp.headers["Allow"] = exc.headers["Allow"]
        return resp
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return _error("Internal server error", 500)


def setup_routes(app):
    routes = web.RouteTableDef()

    @routes.get("/api/health")
    async def health(request):
        store = request.app[STORE_KEY]
        try:
            count = store.count_contents()
        except StorageError:
            logger.exception("Health check could not read the datastore")
            return _json_response({"ok": False, "db_path": store.db_path}, status=500)
        return _json_response({"ok": True, "db_path": store.db_path, "count": count})

    @routes.get("/api/content")
    async def list_contents(request):
        store = request.app[STORE_KEY]
        try:
            records = store.list_contents()
        except StorageError:
            logger.exception("Error fetching all content")
            return _error("Failed to fetch content", 500)
        return _json_response([r.to_dict() for r in records])

    @routes.get("/api/content/{slug}")
    async def get_content(request):
        store = request.app[STORE_KEY]
        slug = request.match_info["slug"]
        try:
            record = store.find_by_slug(slug)
        except KeyError:
            return _error("Content not found", 404)
        except StorageError:
            logger.exception("Error fetching content for slug %s", slug)
            return _error("Failed to fetch content", 500)
        return _json_response(record.to_dict())

    @routes.post("/api/content")
    async def save_content(request):
        store = request.app[STORE_KEY]
        try:
            payload = await request.json()
        except ValueError:
            return _bad_request("Invalid JSON body")
        try:
            content_id, fields = validate_content_payload(payload)
        except ValidationError as exc:
            if exc.missing:
                return _bad_request(exc.message, missing=exc.missing)
            return _bad_request(exc.message)

        if content_id:
            try:
                record = store.update_content(content_id, fields)
            except KeyError:
                return _error("Content not found for update", 404)
            except SlugConflictError:
                return _error("Slug already in use", 409, slug=fields.slug)
            except StorageError:
                logger.exception("Error updating content %s", content_id)
                return _error("Failed to update content", 500)
            logger.info("Content updated: %s", record.slug)
            return _json_response({"message": "Content updated successfully", "id": record.id})

        try:
            record = store.insert_content(fields)
        except SlugConflictError:
            return _error("Slug already in use", 409, slug=fields.slug)
        except StorageError:
            logger.exception("Error creating content %s", fields.slug)
            return _error("Failed to create content", 500)
        logger.info("New content created: %s", record.slug)
        return _json_response({"message": "Content created successfully", "id": record.id}, status=201)

    @routes.delete("/api/content/{content_id}")
    async def delete_content(request):
        store = request.app[STORE_KEY]
        content_id = request.match_info["content_id"]
        try:
            store.delete_content(content_id)
        except KeyError:
            return _error("Content not found for deletion", 404)
        except StorageError:
            logger.exception("Error deleting content with ID %s", content_id)
            return _error("Failed to delete content", 500)
        logger.info("Content deleted: ID %s", content_id)
        return _json_response({"message": "Content deleted successfully"})

    app.add_routes(routes)
