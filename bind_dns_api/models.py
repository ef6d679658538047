"""Data types exchanged by the DNS management API."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

ZERO_TIME = "0001-01-01T00:00:00Z"

_FRACTION = re.compile(r"\.(\d{6})\d+")


class ValidationError(ValueError):
    """Raised when incoming data does not have the expected shape."""


class DNSRecordType(str, Enum):
    """Known DNS record types."""

    A = "A"
    AAAA = "AAAA"
    CNAME = "CNAME"
    MX = "MX"
    TXT = "TXT"
    NS = "NS"
    SOA = "SOA"
    PTR = "PTR"
    SRV = "SRV"

    def __str__(self) -> str:
        return self.value


def record_type(value: str) -> DNSRecordType | str:
    """Return the matching record type member, or the text itself if unknown."""
    try:
        return DNSRecordType(value)
    except ValueError:
        return value


def _type_text(value: DNSRecordType | str) -> str:
    return value.value if isinstance(value, DNSRecordType) else value


def _expect_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValidationError(f"{what} must be a JSON object")
    return data


def _str_field(data: Mapping[str, Any], key: str, required: bool = False) -> str:
    value = data.get(key)
    if value is None:
        value = ""
    elif not isinstance(value, str):
        raise ValidationError(f"field {key!r} must be a string")
    if required and not value:
        raise ValidationError(f"field {key!r} is required")
    return value


def _int_field(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"field {key!r} must be an integer")
    return value


def _str_list_field(data: Mapping[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValidationError(f"field {key!r} must be a list of strings")
    return list(value)


def _format_time(moment: datetime | None) -> str:
    if moment is None:
        return ZERO_TIME
    if moment.tzinfo is None:
        moment = moment.astimezone()
    text = moment.isoformat()
    return text[:-6] + "Z" if text.endswith("+00:00") else text


def _parse_time(value: Any, key: str) -> datetime | None:
    if value is None or value == ZERO_TIME:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"field {key!r} must be a timestamp string")
    text = _FRACTION.sub(r".\1", value)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(f"field {key!r} is not a valid timestamp") from exc


def _serialize(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return {key: _serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    return value


@dataclass
class DNSRecord:
    """A single resource record of a zone."""

    id: str = ""
    name: str = ""
    type: DNSRecordType | str = ""
    value: str = ""
    ttl: int = 0
    priority: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": _type_text(self.type),
            "value": self.value,
            "ttl": self.ttl,
        }
        if self.priority:
            result["priority"] = self.priority
        result["created_at"] = _format_time(self.created_at)
        result["updated_at"] = _format_time(self.updated_at)
        return result

    @classmethod
    def from_dict(cls, data: Any) -> DNSRecord:
        data = _expect_mapping(data, "record")
        return cls(
            id=_str_field(data, "id"),
            name=_str_field(data, "name"),
            type=record_type(_str_field(data, "type")),
            value=_str_field(data, "value"),
            ttl=_int_field(data, "ttl"),
            priority=_int_field(data, "priority"),
            created_at=_parse_time(data.get("created_at"), "created_at"),
            updated_at=_parse_time(data.get("updated_at"), "updated_at"),
        )


@dataclass
class SOARecord:
    """Start-of-authority data of a zone."""

    mname: str = ""
    rname: str = ""
    serial: int = 0
    refresh: int = 0
    retry: int = 0
    expire: int = 0
    minimum: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "mname": self.mname,
            "rname": self.rname,
            "serial": self.serial,
            "refresh": self.refresh,
            "retry": self.retry,
            "expire": self.expire,
            "minimum": self.minimum,
        }

    @classmethod
    def from_dict(cls, data: Any) -> SOARecord:
        if data is None:
            return cls()
        data = _expect_mapping(data, "soa")
        return cls(
            mname=_str_field(data, "mname"),
            rname=_str_field(data, "rname"),
            serial=_int_field(data, "serial"),
            refresh=_int_field(data, "refresh"),
            retry=_int_field(data, "retry"),
            expire=_int_field(data, "expire"),
            minimum=_int_field(data, "minimum"),
        )


@dataclass
class Domain:
    """A DNS zone with its SOA data, name servers and records."""

    name: str = ""
    type: str = ""
    file: str = ""
    soa: SOARecord = field(default_factory=SOARecord)
    nameservers: list[str] = field(default_factory=list)
    records: list[DNSRecord] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "file": self.file,
            "soa": self.soa.to_dict(),
            "nameservers": list(self.nameservers),
            "records": [record.to_dict() for record in self.records],
            "created_at": _format_time(self.created_at),
            "updated_at": _format_time(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Any) -> Domain:
        data = _expect_mapping(data, "domain")
        records = data.get("records") or []
        if not isinstance(records, list):
            raise ValidationError("field 'records' must be a list")
        return cls(
            name=_str_field(data, "name"),
            type=_str_field(data, "type"),
            file=_str_field(data, "file"),
            soa=SOARecord.from_dict(data.get("soa")),
            nameservers=_str_list_field(data, "nameservers"),
            records=[DNSRecord.from_dict(item) for item in records],
            created_at=_parse_time(data.get("created_at"), "created_at"),
            updated_at=_parse_time(data.get("updated_at"), "updated_at"),
        )


@dataclass
class CreateDomainRequest:
    """Body of a request that creates or replaces a zone."""

    name: str = ""
    type: str = ""
    nameservers: list[str] = field(default_factory=list)
    soa: SOARecord = field(default_factory=SOARecord)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "nameservers": list(self.nameservers),
            "soa": self.soa.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> CreateDomainRequest:
        data = _expect_mapping(data, "request body")
        return cls(
            name=_str_field(data, "name", required=True),
            type=_str_field(data, "type"),
            nameservers=_str_list_field(data, "nameservers"),
            soa=SOARecord.from_dict(data.get("soa")),
        )


@dataclass
class CreateRecordRequest:
    """Body of a request that adds a record to a zone."""

    name: str = ""
    type: DNSRecordType | str = ""
    value: str = ""
    ttl: int = 0
    priority: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": _type_text(self.type),
            "value": self.value,
            "ttl": self.ttl,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: Any) -> CreateRecordRequest:
        data = _expect_mapping(data, "request body")
        return cls(
            name=_str_field(data, "name", required=True),
            type=record_type(_str_field(data, "type", required=True)),
            value=_str_field(data, "value", required=True),
            ttl=_int_field(data, "ttl"),
            priority=_int_field(data, "priority"),
        )


@dataclass
class UpdateRecordRequest:
    """Body of a request that replaces a record's data."""

    name: str = ""
    type: DNSRecordType | str = ""
    value: str = ""
    ttl: int = 0
    priority: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": _type_text(self.type),
            "value": self.value,
            "ttl": self.ttl,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: Any) -> UpdateRecordRequest:
        data = _expect_mapping(data, "request body")
        return cls(
            name=_str_field(data, "name"),
            type=record_type(_str_field(data, "type")),
            value=_str_field(data, "value"),
            ttl=_int_field(data, "ttl"),
            priority=_int_field(data, "priority"),
        )


@dataclass
class APIResponse:
    """Standard envelope of every API reply."""

    success: bool = False
    message: str = ""
    data: Any = None
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success}
        if self.message:
            result["message"] = self.message
        if self.data is not None:
            result["data"] = _serialize(self.data)
        if self.error:
            result["error"] = self.error
        return result

    @classmethod
    def from_dict(cls, data: Any) -> APIResponse:
        data = _expect_mapping(data, "response")
        success = data.get("success", False)
        if not isinstance(success, bool):
            raise ValidationError("field 'success' must be a boolean")
        return cls(
            success=success,
            message=_str_field(data, "message"),
            data=data.get("data"),
            error=_str_field(data, "error"),
        )


@dataclass
class HealthResponse:
    """Reply of the health check endpoint."""

    status: str = ""
    timestamp: str = ""
    version: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "timestamp": self.timestamp,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Any) -> HealthResponse:
        data = _expect_mapping(data, "response")
        return cls(
            status=_str_field(data, "status"),
            timestamp=_str_field(data, "timestamp"),
            version=_str_field(data, "version"),
        )


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)