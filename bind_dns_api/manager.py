"""Management of zone files for a BIND name server."""

from __future__ import annotations

import os
import re
import shutil
import subprocess
import threading
import time
from dataclasses import replace
from datetime import datetime

from .config import BINDConfig
from .models import (
    CreateDomainRequest,
    CreateRecordRequest,
    DNSRecord,
    DNSRecordType,
    Domain,
    SOARecord,
    UpdateRecordRequest,
    utc_now,
)

_INTEGER = re.compile(r"[+-]?[0-9]+")

_id_lock = threading.Lock()
_last_id = 0


class ManagerError(Exception):
    """Base class of errors raised while managing zones."""


class DomainExistsError(ManagerError):
    """The zone to be created already exists."""


class DomainNotFoundError(ManagerError):
    """The requested zone does not exist."""


class RecordNotFoundError(ManagerError):
    """No record with the given name and type is in the zone."""


class ReloadError(ManagerError):
    """Reloading zones through rndc failed."""


def _atoi(text: str) -> int | None:
    """Parse a plain decimal integer, or return None."""
    if _INTEGER.fullmatch(text):
        return int(text)
    return None


def generate_record_id() -> str:
    """Return a unique identifier for a record."""
    global _last_id
    with _id_lock:
        stamp = max(time.time_ns(), _last_id + 1)
        _last_id = stamp
    return f"rec_{stamp}"


def _rfc3339_now() -> str:
    text = datetime.now().astimezone().isoformat(timespec="seconds")
    return text[:-6] + "Z" if text.endswith("+00:00") else text


class Manager:
    """Reads and writes zone files and asks rndc to reload them."""

    def __init__(self, config: BINDConfig) -> None:
        self.config = config
        self._lock = threading.RLock()

    # ----- zones -----

    def zone_exists(self, domain_name: str) -> bool:
        """Whether a zone file exists for the domain."""
        with self._lock:
            return os.path.exists(self.zone_file_path(domain_name))

    def list_domains(self) -> list[str]:
        """Names of all zones in the zone directory."""
        with self._lock:
            try:
                entries = sorted(os.scandir(self.config.zone_directory), key=lambda e: e.name)
            except OSError as exc:
                raise ManagerError(f"failed to read zone directory: {exc}") from exc
            return [
                entry.name.removesuffix(".zone")
                for entry in entries
                if not entry.is_dir()
            ]

    def get_domain(self, domain_name: str) -> Domain:
        """Read a zone with its SOA data, name servers and records."""
        with self._lock:
            zone_file = self.zone_file_path(domain_name)
            content = self._read_zone(zone_file)
            records, soa, nameservers = self.parse_zone_file(content)
            return Domain(
                name=domain_name,
                type="master",
                file=zone_file,
                soa=soa,
                nameservers=nameservers,
                records=records,
            )

    def create_domain(self, domain_name: str, req: CreateDomainRequest) -> None:
        """Write a new zone file; fails if the zone already exists."""
        with self._lock:
            zone_file = self.zone_file_path(domain_name)
            if os.path.exists(zone_file):
                raise DomainExistsError(f"domain {domain_name} already exists")
            content = self.generate_zone_file(domain_name, req)
            self._write_zone(zone_file, content, "failed to create zone file")

    def update_domain(self, domain_name: str, req: CreateDomainRequest) -> None:
        """Regenerate an existing zone file."""
        with self._lock:
            zone_file = self.zone_file_path(domain_name)
            try:
                os.stat(zone_file)
            except FileNotFoundError as exc:
                raise DomainNotFoundError(f"domain {domain_name} does not exist") from exc
            except OSError as exc:
                raise ManagerError(f"failed to check domain existence: {exc}") from exc
            content = self.generate_zone_file(domain_name, req)
            self._write_zone(zone_file, content, "failed to update zone file")

    def delete_domain(self, domain_name: str) -> None:
        """Remove a zone file."""
        with self._lock:
            try:
                os.remove(self.zone_file_path(domain_name))
            except FileNotFoundError as exc:
                raise DomainNotFoundError(f"domain {domain_name} does not exist") from exc
            except OSError as exc:
                raise ManagerError(f"failed to delete zone file: {exc}") from exc

    # ----- records -----

    def list_records(self, domain_name: str) -> list[DNSRecord]:
        """All records of a zone."""
        return self.get_domain(domain_name).records

    def add_record(self, domain_name: str, req: CreateRecordRequest) -> None:
        """Append a record to a zone file."""
        with self._lock:
            zone_file = self.zone_file_path(domain_name)
            content = self._read_zone(zone_file)
            now = utc_now()
            record = DNSRecord(
                id=generate_record_id(),
                name=req.name,
                type=req.type,
                value=req.value,
                ttl=req.ttl or self.config.default_ttl,
                priority=req.priority,
                created_at=now,
                updated_at=now,
            )
            updated = content + "\n" + self.format_record_line(record)
            self._write_zone(zone_file, updated, "failed to write zone file")

    def update_record(
        self,
        domain_name: str,
        record_name: str,
        record_type: DNSRecordType | str,
        req: UpdateRecordRequest,
    ) -> None:
        """Replace every record line matching the name and type."""
        with self._lock:
            zone_file = self.zone_file_path(domain_name)
            lines = self._read_zone(zone_file).split("\n")
            replacement = self.format_record_line(
                DNSRecord(
                    name=record_name,
                    type=record_type,
                    value=req.value,
                    ttl=req.ttl or self.config.default_ttl,
                    priority=req.priority,
                    updated_at=utc_now(),
                )
            )
            found = False
            new_lines = []
            for line in lines:
                if self._is_record_line(line) and self.matches_record_line(
                    line.strip(), record_name, record_type
                ):
                    found = True
                    new_lines.append(replacement)
                else:
                    new_lines.append(line)
            if not found:
                raise RecordNotFoundError(
                    f"record {record_name} of type {record_type} not found"
                )
            self._write_zone(zone_file, "\n".join(new_lines), "failed to write zone file")

    def delete_record(
        self, domain_name: str, record_name: str, record_type: DNSRecordType | str
    ) -> None:
        """Remove every record line matching the name and type."""
        with self._lock:
            zone_file = self.zone_file_path(domain_name)
            lines = self._read_zone(zone_file).split("\n")
            kept = [
                line
                for line in lines
                if not (
                    self._is_record_line(line)
                    and self.matches_record_line(line.strip(), record_name, record_type)
                )
            ]
            if len(kept) == len(lines):
                raise RecordNotFoundError(
                    f"record {record_name} of type {record_type} not found"
                )
            self._write_zone(zone_file, "\n".join(kept), "failed to write zone file")

    # ----- reloading -----

    def reload_zone(self, domain_name: str) -> None:
        """Ask rndc to reload one zone."""
        self._run_rndc(["reload", domain_name])

    def reload_all(self) -> None:
        """Ask rndc to reload every zone."""
        self._run_rndc(["reload"])

    def _run_rndc(self, command: list[str]) -> None:
        rndc = self.config.rndc_path
        if not rndc or shutil.which(rndc) is None:
            raise ReloadError(f"rndc not found at {rndc}")
        args = [rndc]
        if self.config.rndc_conf_path:
            args += ["-c", self.config.rndc_conf_path]
        args += command
        try:
            result = subprocess.run(
                args, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, check=False
            )
        except OSError as exc:
            raise ReloadError(f"rndc reload failed: {exc}, output: ") from exc
        if result.returncode != 0:
            output = result.stdout.decode(errors="replace")
            raise ReloadError(
                f"rndc reload failed: exit status {result.returncode}, output: {output}"
            )

    # ----- zone file text -----

    def zone_file_path(self, domain_name: str) -> str:
        """Path of the zone file of a domain."""
        return os.path.join(self.config.zone_directory, domain_name + ".zone")

    def generate_zone_file(self, domain_name: str, req: CreateDomainRequest) -> str:
        """Text of a new zone file, filling unset SOA fields with defaults."""
        cfg = self.config
        soa = replace(req.soa)
        soa.mname = soa.mname or f"ns1.{domain_name}."
        soa.rname = soa.rname or f"admin.{domain_name}."
        soa.serial = soa.serial or int(time.time())
        soa.refresh = soa.refresh or cfg.default_refresh
        soa.retry = soa.retry or cfg.default_retry
        soa.expire = soa.expire or cfg.default_expire
        soa.minimum = soa.minimum or cfg.default_minimum

        nameservers = req.nameservers or [f"ns1.{domain_name}."]

        parts = [
            f"; Zone file for {domain_name}\n",
            f"; Generated by BIND DNS API - {_rfc3339_now()}\n",
            "\n",
            f"$ORIGIN {domain_name}.\n",
            f"$TTL {cfg.default_ttl}\n\n",
            f"@\tIN\tSOA\t{soa.mname}\t{soa.rname}\t(\n",
            f"\t\t\t{soa.serial}\t; Serial\n",
            f"\t\t\t{soa.refresh}\t; Refresh\n",
            f"\t\t\t{soa.retry}\t; Retry\n",
            f"\t\t\t{soa.expire}\t; Expire\n",
            f"\t\t\t{soa.minimum}\t; Minimum TTL\n",
            "\t\t\t)\n\n",
        ]
        parts.extend(f"@\tIN\tNS\t{ns}\n" for ns in nameservers)
        parts.append("\n")
        parts.append("@\tIN\tA\t127.0.0.1\n")
        parts.append("www\tIN\tA\t127.0.0.1\n")
        return "".join(parts)

    def parse_zone_file(
        self, content: str
    ) -> tuple[list[DNSRecord], SOARecord, list[str]]:
        """Extract the records, SOA data and name servers from zone text."""
        records: list[DNSRecord] = []
        soa = SOARecord()
        nameservers: list[str] = []
        in_soa = False
        soa_lines: list[str] = []

        for raw in content.splitlines():
            line = raw.strip()
            if not line or line.startswith(";"):
                continue
            if "SOA" in line:
                in_soa = True
                soa_lines.append(line)
                continue
            if in_soa:
                soa_lines.append(line)
                if ")" in line:
                    in_soa = False
                    soa = self.parse_soa_record(soa_lines)
                continue
            record = self.parse_record_line(line)
            if record is not None:
                if record.type == DNSRecordType.NS:
                    nameservers.append(record.value)
                records.append(record)
        return records, soa, nameservers

    def parse_soa_record(self, lines: list[str]) -> SOARecord:
        """Read SOA data from the lines making up the SOA record."""
        soa = SOARecord()
        parts = " ".join(lines).split()

        for i, part in enumerate(parts):
            if part == "SOA" and i + 2 < len(parts):
                soa.mname = parts[i + 1].strip("()")
                soa.rname = parts[i + 2].strip("()")
                break

        for part in parts:
            num = _atoi(part.strip("();"))
            if num is None:
                continue
            if soa.serial == 0:
                soa.serial = num
            elif soa.refresh == 0:
                soa.refresh = num
            elif soa.retry == 0:
                soa.retry = num
            elif soa.expire == 0:
                soa.expire = num
            elif soa.minimum == 0:
                soa.minimum = num
        return soa

    def parse_record_line(self, line: str) -> DNSRecord | None:
        """Parse one record line, or return None if it is not one.

        Accepts ``NAME [TTL] [CLASS] TYPE VALUE`` and
        ``[TTL] [CLASS] NAME TYPE VALUE``.
        """
        parts = line.split()
        if len(parts) < 3:
            return None

        now = utc_now()
        record = DNSRecord(
            id=generate_record_id(),
            created_at=now,
            updated_at=now,
            ttl=self.config.default_ttl,
        )

        idx = 0
        ttl = _atoi(parts[idx])
        has_ttl = ttl is not None
        if has_ttl:
            record.ttl = ttl
            idx += 1

        if idx < len(parts) and parts[idx].upper() == "IN":
            idx += 1

        if idx >= len(parts) - 1:
            return None

        record.name = parts[idx]
        idx += 1

        if not has_ttl and idx < len(parts):
            ttl = _atoi(parts[idx])
            if ttl is not None:
                record.ttl = ttl
                idx += 1

        if idx < len(parts) and parts[idx].upper() == "IN":
            idx += 1

        if idx >= len(parts):
            return None

        try:
            record.type = DNSRecordType(parts[idx].upper())
        except ValueError:
            return None
        idx += 1

        if idx < len(parts):
            if record.type == DNSRecordType.MX:
                priority = _atoi(parts[idx])
                if priority is not None:
                    record.priority = priority
                    idx += 1
            record.value = " ".join(parts[idx:])
        return record

    def format_record_line(self, record: DNSRecord) -> str:
        """Zone file line for a record."""
        line = f"{record.name}\t{record.ttl}\tIN\t{record.type}\t"
        if record.type == DNSRecordType.MX and record.priority > 0:
            line += f"{record.priority} "
        return line + record.value

    def matches_record_line(
        self, line: str, name: str, record_type: DNSRecordType | str
    ) -> bool:
        """Whether a zone line holds a record with this name and type."""
        parts = line.split()
        if len(parts) < 3:
            return False

        idx = 0
        if _atoi(parts[idx]) is not None:
            idx += 1
        if idx < len(parts) and parts[idx].upper() == "IN":
            idx += 1

        if idx >= len(parts) or parts[idx] != name:
            return False
        idx += 1

        if idx < len(parts) and _atoi(parts[idx]) is not None:
            idx += 1
        if idx < len(parts) and parts[idx].upper() == "IN":
            idx += 1

        return idx < len(parts) and parts[idx].upper() == str(record_type)

    # ----- helpers -----

    @staticmethod
    def _is_record_line(line: str) -> bool:
        trimmed = line.strip()
        return bool(trimmed) and not trimmed.startswith(";")

    @staticmethod
    def _read_zone(zone_file: str) -> str:
        try:
            with open(zone_file, encoding="utf-8") as handle:
                return handle.read()
        except FileNotFoundError as exc:
            raise DomainNotFoundError(f"failed to read zone file: {exc}") from exc
        except OSError as exc:
            raise ManagerError(f"failed to read zone file: {exc}") from exc

    @staticmethod
    def _write_zone(zone_file: str, content: str, failure: str) -> None:
        try:
            with open(zone_file, "w", encoding="utf-8") as handle:
                handle.write(content)
        except OSError as exc:
            raise ManagerError(f"{failure}: {exc}") from exc