# bind-dns-api

A small HTTP API for managing BIND DNS zones. It writes and edits zone files
in a directory of your choice and can ask BIND to reload them through `rndc`.

## Installation

```
pip install .
```

For running the tests:

```
pip install .[test]
pytest
```

## Running the server

```
bind-dns-api --config config.json
```

`--config` (also accepted as `-config`) defaults to `config.json`. If the file
does not exist, the built-in defaults are used. The zone directory is created
on start-up if it is missing. The server is Flask's built-in server, started
on the configured host and port.

### Configuration

The configuration is a JSON file. Every key is optional, and any key you
leave out keeps its default:

```json
{
  "server": {"host": "0.0.0.0", "port": 8080},
  "bind": {
    "named_conf_path": "/etc/bind/named.conf",
    "zone_directory": "./zones",
    "rndc_path": "/usr/sbin/rndc",
    "rndc_conf_path": "/etc/bind/rndc.conf",
    "default_ttl": 3600,
    "default_refresh": 7200,
    "default_retry": 3600,
    "default_expire": 1209600,
    "default_minimum": 86400
  },
  "logging": {"level": "info", "format": "json", "output_path": "stdout"}
}
```

Malformed JSON, or a value of the wrong type, stops the server with an error.

- `zone_directory`: where zone files live, one `<domain>.zone` file per domain.
- `rndc_path`, `rndc_conf_path`: the `rndc` program used for reloads and the
  file passed to it with `-c` (left out when empty).
- `default_ttl`: the `$TTL` of new zones and the TTL of records added or
  updated without one.
- `default_refresh`, `default_retry`, `default_expire`, `default_minimum`:
  SOA values used when a request leaves them at zero.

## Endpoints

All routes are under `/api/v1`:

| Method | Path                                      | Purpose                      | Error status |
|--------|-------------------------------------------|------------------------------|--------------|
| GET    | `/health`                                 | Health check                 |              |
| GET    | `/domains`                                | List domains                 | 500          |
| POST   | `/domains`                                | Create a domain              | 400, 409     |
| GET    | `/domains/<name>`                         | Domain with SOA and records  | 404          |
| PUT    | `/domains/<name>`                         | Regenerate a domain's zone   | 400, 404     |
| DELETE | `/domains/<name>`                         | Delete a domain              | 404          |
| GET    | `/domains/<name>/records`                 | List records                 | 404          |
| POST   | `/domains/<name>/records`                 | Add a record                 | 400, 500     |
| PUT    | `/domains/<name>/records/<record>/<type>` | Update a record              | 400, 404     |
| DELETE | `/domains/<name>/records/<record>/<type>` | Delete a record              | 404          |
| POST   | `/domains/<name>/reload`                  | `rndc reload <name>`         | 500          |
| POST   | `/reload`                                 | `rndc reload`                | 500          |

A 400 means the body was not valid JSON or lacked a required field (`name`
for domains; `name`, `type` and `value` for new records).

The health check answers `{"status": "healthy", "timestamp": ..., "version":
"1.0.0"}`. Every other response has the form
`{"success": ..., "message": ..., "data": ..., "error": ...}`; `success` is
always present, and `message`, `data` and `error` are left out when they are
empty.

A new zone gets an SOA record, one NS record per given name server (or
`ns1.<domain>.` if none are given), and `A 127.0.0.1` records for `@` and
`www`. A zero SOA serial is replaced by the current Unix time.

Example:

```
curl -X POST localhost:8080/api/v1/domains \
     -H 'Content-Type: application/json' \
     -d '{"name": "example.com", "nameservers": ["ns1.example.com."]}'

curl -X POST localhost:8080/api/v1/domains/example.com/records \
     -H 'Content-Type: application/json' \
     -d '{"name": "@", "type": "MX", "value": "mail.example.com.", "priority": 10}'
```

## Using it as a library

```python
import os

from bind_dns_api.api import create_app
from bind_dns_api.config import default_config
from bind_dns_api.manager import Manager
from bind_dns_api.models import CreateDomainRequest, CreateRecordRequest, DNSRecordType

cfg = default_config()
os.makedirs(cfg.bind.zone_directory, exist_ok=True)

manager = Manager(cfg.bind)
manager.create_domain("example.com", CreateDomainRequest(name="example.com"))
manager.add_record(
    "example.com",
    CreateRecordRequest(name="api", type=DNSRecordType.A, value="192.0.2.10"),
)
print(manager.list_records("example.com"))

app = create_app(manager)  # a Flask application
```

`bind_dns_api.server.build_app(config_path)` does the same from a
configuration file: it loads the file, creates the zone directory and returns
the Flask application, with the loaded configuration in
`app.config["BIND_DNS_CONFIG"]`.

`Manager` methods raise `ManagerError` or one of its subclasses:
`DomainExistsError`, `DomainNotFoundError`, `RecordNotFoundError` and
`ReloadError`. `bind_dns_api.config` also has `load_config(path)` and
`save_config(config, path)` for the JSON file.

## What it does not do

- It does not edit `named.conf`: new zones are written as files only, and must
  be declared to BIND separately. `named_conf_path` is read from the
  configuration but not used.
- The `logging` settings are read and kept but not applied; the server logs
  to the standard Python logging setup.
- There is no authentication on the API.