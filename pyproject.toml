[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bind-dns-api"
version = "1.0.0"
description = "HTTP API for managing BIND DNS zone files and records"
requires-python = ">=3.10"
dependencies = [
    "flask",
]
keywords = ["dns", "bind", "zone", "rndc", "rest", "api"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: Flask",
    "Topic :: Internet :: Name Service (DNS)",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
bind-dns-api = "bind_dns_api.server:main"

[tool.hatch.build.targets.wheel]
packages = ["bind_dns_api"]

[tool.pytest.ini_options]
addopts = "-ra"
