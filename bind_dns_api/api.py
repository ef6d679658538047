"""HTTP interface for managing zones and records."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable, TypeVar

from flask import Flask, Response, jsonify, request

from .manager import Manager, ManagerError
from .models import (
    APIResponse,
    CreateDomainRequest,
    CreateRecordRequest,
    HealthResponse,
    UpdateRecordRequest,
    record_type,
)

VERSION = "1.0.0"

_Model = TypeVar("_Model")


class _InvalidBody(Exception):
    """The request body could not be read as the expected JSON object."""


def _now_rfc3339() -> str:
    text = datetime.now().astimezone().isoformat(timespec="seconds")
    return text[:-6] + "Z" if text.endswith("+00:00") else text


def _reply(status: int, **fields: Any) -> tuple[Response, int]:
    return jsonify(APIResponse(**fields).to_dict()), status


def _failure(status: int, exc: Exception) -> tuple[Response, int]:
    return _reply(status, success=False, error=str(exc))


def _read_body(model: Callable[[Any], _Model]) -> _Model:
    raw = request.get_data(as_text=True)
    try:
        return model(json.loads(raw))
    except ValueError as exc:
        raise _InvalidBody(str(exc)) from exc


def create_app(manager: Manager) -> Flask:
    """Build the Flask application serving the zone management API."""
    app = Flask(__name__)

    @app.errorhandler(_InvalidBody)
    def invalid_body(exc: _InvalidBody):
        return _reply(400, success=False, error=f"Invalid request body: {exc}")

    @app.get("/api/v1/health")
    def health_check():
        body = HealthResponse(status="healthy", timestamp=_now_rfc3339(), version=VERSION)
        return jsonify(body.to_dict()), 200

    @app.get("/api/v1/domains")
    def list_domains():
        try:
            domains = manager.list_domains()
        except ManagerError as exc:
            return _failure(500, exc)
        return _reply(200, success=True, data=domains)

    @app.get("/api/v1/domains/<name>")
    def get_domain(name: str):
        try:
            domain = manager.get_domain(name)
        except ManagerError as exc:
            return _failure(404, exc)
        return _reply(200, success=True, data=domain)

    @app.post("/api/v1/domains")
    def create_domain():
        req = _read_body(CreateDomainRequest.from_dict)
        try:
            manager.create_domain(req.name, req)
        except ManagerError as exc:
            return _failure(409, exc)
        return _reply(201, success=True, message="Domain created successfully")

    @app.put("/api/v1/domains/<name>")
    def update_domain(name: str):
        req = _read_body(CreateDomainRequest.from_dict)
        try:
            manager.update_domain(name, req)
        except ManagerError as exc:
            return _failure(404, exc)
        return _reply(200, success=True, message="Domain updated successfully")

    @app.delete("/api/v1/domains/<name>")
    def delete_domain(name: str):
        try:
            manager.delete_domain(name)
        except ManagerError as exc:
            return _failure(404, exc)
        return _reply(200, success=True, message="Domain deleted successfully")

    @app.get("/api/v1/domains/<name>/records")
    def list_records(name: str):
        try:
            records = manager.list_records(name)
        except ManagerError as exc:
            return _failure(404, exc)
        return _reply(200, success=True, data=records)

    @app.post("/api/v1/domains/<name>/records")
    def add_record(name: str):
        req = _read_body(CreateRecordRequest.from_dict)
        try:
            manager.add_record(name, req)
        except ManagerError as exc:
            return _failure(500, exc)
        return _reply(201, success=True, message="Record added successfully")

    @app.put("/api/v1/domains/<name>/records/<record_name>/<rtype>")
    def update_record(name: str, record_name: str, rtype: str):
        req = _read_body(UpdateRecordRequest.from_dict)
        try:
            manager.update_record(name, record_name, record_type(rtype), req)
        except ManagerError as exc:
            return _failure(404, exc)
        return _reply(200, success=True, message="Record updated successfully")

    @app.delete("/api/v1/domains/<name>/records/<record_name>/<rtype>")
    def delete_record(name: str, record_name: str, rtype: str):
        try:
            manager.delete_record(name, record_name, record_type(rtype))
        except ManagerError as exc:
            return _failure(404, exc)
        return _reply(200, success=True, message="Record deleted successfully")

    @app.post("/api/v1/domains/<name>/reload")
    def reload_zone(name: str):
        try:
            manager.reload_zone(name)
        except ManagerError as exc:
            return _failure(500, exc)
        return _reply(200, success=True, message="Zone reloaded successfully")

    @app.post("/api/v1/reload")
    def reload_all():
        try:
            manager.reload_all()
        except ManagerError as exc:
            return _failure(500, exc)
        return _reply(200, success=True, message="All zones reloaded successfully")

    return app