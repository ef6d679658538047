import os
import sys
from concurrent.futures import ThreadPoolExecutor

import pytest

from bind_dns_api.config import BINDConfig
from bind_dns_api.manager import (
    DomainExistsError,
    DomainNotFoundError,
    Manager,
    ManagerError,
    RecordNotFoundError,
    ReloadError,
    generate_record_id,
)
from bind_dns_api.models import (
    CreateDomainRequest,
    CreateRecordRequest,
    DNSRecord,
    DNSRecordType,
    SOARecord,
    UpdateRecordRequest,
)


@pytest.fixture
def manager(tmp_path):
    cfg = BINDConfig(
        zone_directory=str(tmp_path),
        default_ttl=3600,
        default_refresh=7200,
        default_retry=3600,
        default_expire=1209600,
        default_minimum=86400,
    )
    return Manager(cfg)


@pytest.fixture
def example(manager):
    manager.create_domain("example.com", CreateDomainRequest(name="example.com"))
    return manager


def test_new_manager_keeps_config():
    cfg = BINDConfig(zone_directory="./zones", default_ttl=3600)
    assert Manager(cfg).config is cfg


@pytest.mark.parametrize("domain", ["example.com", "test.org", "sub.domain.com"])
def test_zone_file_path(manager, domain):
    expected = os.path.join(manager.config.zone_directory, domain + ".zone")
    assert manager.zone_file_path(domain) == expected


def test_zone_exists(manager, tmp_path):
    assert not manager.zone_exists("example.com")
    (tmp_path / "example.com.zone").write_text("; test zone")
    assert manager.zone_exists("example.com")


def test_list_domains(manager, tmp_path):
    assert manager.list_domains() == []
    for zone in ["example.com.zone", "test.org.zone", "mydomain.net.zone"]:
        (tmp_path / zone).write_text("; test")
    (tmp_path / "subdir").mkdir()
    assert sorted(manager.list_domains()) == ["example.com", "mydomain.net", "test.org"]


def test_list_domains_missing_directory(tmp_path):
    mgr = Manager(BINDConfig(zone_directory=str(tmp_path / "missing")))
    with pytest.raises(ManagerError, match="failed to read zone directory"):
        mgr.list_domains()


def test_create_domain(manager):
    req = CreateDomainRequest(
        name="example.com",
        nameservers=["ns1.example.com.", "ns2.example.com."],
        soa=SOARecord(mname="ns1.example.com.", rname="admin.example.com."),
    )
    manager.create_domain("example.com", req)
    assert manager.zone_exists("example.com")
    with pytest.raises(DomainExistsError, match="domain example.com already exists"):
        manager.create_domain("example.com", req)


def test_create_domain_with_defaults(manager):
    manager.create_domain("test.com", CreateDomainRequest(name="test.com"))
    domain = manager.get_domain("test.com")
    assert domain.nameservers == ["ns1.test.com."]
    assert domain.soa.refresh == 7200
    assert domain.soa.retry == 3600
    assert domain.soa.expire == 1209600
    assert domain.soa.minimum == 86400
    assert domain.soa.mname == "ns1.test.com."
    assert domain.soa.rname == "admin.test.com."


def test_get_domain(manager):
    req = CreateDomainRequest(
        name="example.com", nameservers=["ns1.example.com.", "ns2.example.com."]
    )
    manager.create_domain("example.com", req)
    domain = manager.get_domain("example.com")
    assert domain.name == "example.com"
    assert domain.type == "master"
    assert domain.nameservers == ["ns1.example.com.", "ns2.example.com."]
    assert domain.file == manager.zone_file_path("example.com")


def test_get_domain_not_found(manager):
    with pytest.raises(DomainNotFoundError):
        manager.get_domain("nonexistent.com")


def test_update_domain(example):
    req = CreateDomainRequest(
        name="example.com",
        nameservers=["ns1.updated.com.", "ns2.updated.com.", "ns3.updated.com."],
    )
    example.update_domain("example.com", req)
    assert len(example.get_domain("example.com").nameservers) == 3


def test_update_domain_not_found(manager):
    with pytest.raises(DomainNotFoundError, match="does not exist"):
        manager.update_domain("nonexistent.com", CreateDomainRequest(name="nonexistent.com"))


def test_delete_domain(example):
    example.delete_domain("example.com")
    assert not example.zone_exists("example.com")


def test_delete_domain_not_found(manager):
    with pytest.raises(DomainNotFoundError, match="domain nonexistent.com does not exist"):
        manager.delete_domain("nonexistent.com")


def test_add_record(example):
    example.add_record(
        "example.com",
        CreateRecordRequest(name="api", type=DNSRecordType.A, value="192.168.1.100", ttl=3600),
    )
    records = example.list_records("example.com")
    assert any(
        r.name == "api" and r.type == DNSRecordType.A and r.value == "192.168.1.100"
        for r in records
    )


def test_add_record_not_found(manager):
    with pytest.raises(DomainNotFoundError):
        manager.add_record(
            "nonexistent.com",
            CreateRecordRequest(name="api", type=DNSRecordType.A, value="192.168.1.100"),
        )


def test_add_record_with_default_ttl(example):
    example.add_record(
        "example.com",
        CreateRecordRequest(name="host", type=DNSRecordType.A, value="192.168.1.1", ttl=0),
    )
    hosts = [r for r in example.list_records("example.com") if r.name == "host"]
    assert [r.ttl for r in hosts] == [3600]


def test_add_record_mx_with_priority(example):
    example.add_record(
        "example.com",
        CreateRecordRequest(
            name="@", type=DNSRecordType.MX, value="mail.example.com.", priority=10, ttl=3600
        ),
    )
    mx = [r for r in example.list_records("example.com") if r.type == DNSRecordType.MX]
    assert len(mx) == 1
    assert mx[0].priority == 10
    assert mx[0].value == "mail.example.com."


def test_list_records(example):
    for req in [
        CreateRecordRequest(name="www", type=DNSRecordType.A, value="192.168.1.1"),
        CreateRecordRequest(name="api", type=DNSRecordType.A, value="192.168.1.2"),
        CreateRecordRequest(
            name="@", type=DNSRecordType.MX, value="mail.example.com.", priority=10
        ),
    ]:
        example.add_record("example.com", req)
    assert len(example.list_records("example.com")) >= 3


def test_list_records_not_found(manager):
    with pytest.raises(DomainNotFoundError):
        manager.list_records("nonexistent.com")


def test_update_record(example):
    example.add_record(
        "example.com",
        CreateRecordRequest(name="www", type=DNSRecordType.A, value="192.168.1.1", ttl=3600),
    )
    example.update_record(
        "example.com", "www", DNSRecordType.A, UpdateRecordRequest(value="192.168.1.100", ttl=7200)
    )
    records = example.list_records("example.com")
    assert any(
        r.name == "www" and r.value == "192.168.1.100" and r.ttl == 7200 for r in records
    )


def test_update_record_not_found(example):
    with pytest.raises(RecordNotFoundError, match="record nonexistent of type A not found"):
        example.update_record(
            "example.com", "nonexistent", DNSRecordType.A, UpdateRecordRequest(value="192.168.1.1")
        )


def test_delete_record(example):
    example.add_record(
        "example.com",
        CreateRecordRequest(name="temp", type=DNSRecordType.A, value="192.168.1.1"),
    )
    example.delete_record("example.com", "temp", DNSRecordType.A)
    names = [r.name for r in example.list_records("example.com")]
    assert "temp" not in names
    assert "www" in names


def test_delete_record_not_found(example):
    with pytest.raises(RecordNotFoundError):
        example.delete_record("example.com", "nonexistent", DNSRecordType.A)


@pytest.mark.parametrize(
    "record, expected",
    [
        (
            DNSRecord(name="www", type=DNSRecordType.A, value="192.168.1.1", ttl=3600),
            "www\t3600\tIN\tA\t192.168.1.1",
        ),
        (
            DNSRecord(
                name="@", type=DNSRecordType.MX, value="mail.example.com.", ttl=3600, priority=10
            ),
            "@\t3600\tIN\tMX\t10 mail.example.com.",
        ),
        (
            DNSRecord(name="blog", type=DNSRecordType.CNAME, value="www.example.com.", ttl=3600),
            "blog\t3600\tIN\tCNAME\twww.example.com.",
        ),
        (
            DNSRecord(
                name="@",
                type=DNSRecordType.TXT,
                value='"v=spf1 include:_spf.google.com ~all"',
                ttl=3600,
            ),
            '@\t3600\tIN\tTXT\t"v=spf1 include:_spf.google.com ~all"',
        ),
    ],
)
def test_format_record_line(manager, record, expected):
    assert manager.format_record_line(record) == expected


@pytest.mark.parametrize(
    "line, name, rtype, expected",
    [
        ("www\t3600\tIN\tA\t192.168.1.1", "www", DNSRecordType.A, True),
        ("@\t3600\tIN\tMX\t10 mail.example.com.", "@", DNSRecordType.MX, True),
        ("www\t3600\tIN\tA\t192.168.1.1", "api", DNSRecordType.A, False),
        ("www\t3600\tIN\tA\t192.168.1.1", "www", DNSRecordType.CNAME, False),
        ("invalid", "www", DNSRecordType.A, False),
    ],
)
def test_matches_record_line(manager, line, name, rtype, expected):
    assert manager.matches_record_line(line, name, rtype) is expected


@pytest.mark.parametrize(
    "line, name, rtype, value, ttl",
    [
        ("www 3600 IN A 192.168.1.1", "www", DNSRecordType.A, "192.168.1.1", 3600),
        ("www IN A 192.168.1.1", "www", DNSRecordType.A, "192.168.1.1", 3600),
        ("@ IN MX 10 mail.example.com.", "@", DNSRecordType.MX, "mail.example.com.", 3600),
        ("blog IN CNAME www.example.com.", "blog", DNSRecordType.CNAME, "www.example.com.", 3600),
        ("300 IN host A 10.0.0.1", "host", DNSRecordType.A, "10.0.0.1", 300),
    ],
)
def test_parse_record_line(manager, line, name, rtype, value, ttl):
    record = manager.parse_record_line(line)
    assert record is not None
    assert (record.name, record.type, record.value, record.ttl) == (name, rtype, value, ttl)


@pytest.mark.parametrize("line", ["$TTL 3600", "www IN", "www IN BOGUS value"])
def test_parse_record_line_rejects(manager, line):
    assert manager.parse_record_line(line) is None


def test_parse_record_line_mx_priority(manager):
    record = manager.parse_record_line("@ IN MX 10 mail.example.com.")
    assert record.priority == 10


def test_generate_zone_file(manager):
    req = CreateDomainRequest(
        name="example.com",
        nameservers=["ns1.example.com.", "ns2.example.com."],
        soa=SOARecord(mname="ns1.example.com.", rname="admin.example.com."),
    )
    content = manager.generate_zone_file("example.com", req)
    for needle in [
        "SOA",
        "ns1.example.com.",
        "admin.example.com.",
        "IN\tNS",
        "IN\tA",
        "$ORIGIN example.com",
        "$TTL",
    ]:
        assert needle in content
    assert "@\tIN\tNS\tns2.example.com.\n" in content
    assert content.endswith("www\tIN\tA\t127.0.0.1\n")


def test_generate_zone_file_with_defaults(manager):
    content = manager.generate_zone_file("test.com", CreateDomainRequest(name="test.com"))
    assert "ns1.test.com." in content
    assert "; Serial" in content
    assert "; Refresh" in content
    assert "\t\t\t7200\t; Refresh\n" in content
    assert "$TTL 3600\n" in content


def test_parse_soa_record(manager):
    soa = manager.parse_soa_record(
        [
            "@ IN SOA ns1.example.com. admin.example.com. (",
            "2024011501 ; Serial",
            "7200 ; Refresh",
            "3600 ; Retry",
            "1209600 ; Expire",
            "86400 ) ; Minimum TTL",
        ]
    )
    assert soa == SOARecord(
        mname="ns1.example.com.",
        rname="admin.example.com.",
        serial=2024011501,
        refresh=7200,
        retry=3600,
        expire=1209600,
        minimum=86400,
    )


ZONE = """; Zone file for example.com
$ORIGIN example.com.
$TTL 3600

@ IN SOA ns1.example.com. admin.example.com. (
\t2024011501 ; Serial
\t7200 ; Refresh
\t3600 ; Retry
\t1209600 ; Expire
\t86400 ; Minimum TTL
)

@ IN NS ns1.example.com.
@ IN NS ns2.example.com.

@ IN A 192.168.1.1
www IN A 192.168.1.2
mail IN A 192.168.1.3

@ IN MX 10 mail.example.com.

blog IN CNAME www.example.com.
"""


def test_parse_zone_file(manager):
    records, soa, nameservers = manager.parse_zone_file(ZONE)
    assert soa.mname == "ns1.example.com."
    assert soa.serial == 2024011501
    assert nameservers == ["ns1.example.com.", "ns2.example.com."]
    assert len(records) >= 5
    assert any(r.type == DNSRecordType.A and r.name == "www" for r in records)
    assert any(r.type == DNSRecordType.MX for r in records)
    assert any(r.type == DNSRecordType.CNAME and r.name == "blog" for r in records)


def test_generate_record_id():
    ids = {generate_record_id() for _ in range(100)}
    assert len(ids) == 100
    assert generate_record_id().startswith("rec_")


def test_manager_concurrency(example):
    with ThreadPoolExecutor(max_workers=10) as pool:
        domains = list(pool.map(example.get_domain, ["example.com"] * 10))
    assert [domain.name for domain in domains] == ["example.com"] * 10
    assert all(domain.nameservers == ["ns1.example.com."] for domain in domains)


def test_reload_zone_no_rndc(manager):
    manager.config.rndc_path = "/nonexistent/rndc"
    with pytest.raises(ReloadError, match="rndc not found at /nonexistent/rndc"):
        manager.reload_zone("example.com")


def test_reload_all_no_rndc(manager):
    manager.config.rndc_path = "/nonexistent/rndc"
    with pytest.raises(ReloadError, match="rndc not found"):
        manager.reload_all()


def _recording_manager(manager, out):
    manager.config.rndc_path = sys.executable
    manager.config.rndc_conf_path = (
        f"import sys; open({str(out)!r}, 'w').write(' '.join(sys.argv[1:]))"
    )
    return manager


def test_reload_zone_passes_arguments(manager, tmp_path):
    out = tmp_path / "args.txt"
    _recording_manager(manager, out).reload_zone("example.com")
    assert out.read_text() == "reload example.com"


def test_reload_all_passes_arguments(manager, tmp_path):
    out = tmp_path / "args.txt"
    _recording_manager(manager, out).reload_all()
    assert out.read_text() == "reload"


def test_reload_failure_reports_output(manager):
    manager.config.rndc_path = sys.executable
    manager.config.rndc_conf_path = "raise SystemExit('broken')"
    with pytest.raises(ReloadError, match="rndc reload failed.*broken"):
        manager.reload_zone("example.com")