"""Command that connects to the database and serves the enrollment API."""

from __future__ import annotations

import argparse
import os
import sys
import time
from contextlib import closing
from typing import Any, Sequence
from urllib.parse import parse_qs

import pymysql
from werkzeug.serving import run_simple

from coursedesk.enrollment import EnrollmentUseCase
from coursedesk.handlers import Handler
from coursedesk.repositories import (
    SQLCourseEnrollmentRepository,
    SQLCourseRepository,
    SQLStudentRepository,
)
from coursedesk.routes import setup_routes
from coursedesk.services import CourseEnrollmentService, CourseService, StudentService

DEFAULT_STARTUP_DELAY = 10.0
"""Seconds to wait before connecting, giving a freshly started database time to come up."""

_DEFAULT_MYSQL_PORT = 3306
_DEFAULT_TCP_ADDRESS = "127.0.0.1:3306"
_DEFAULT_UNIX_SOCKET = "/tmp/mysql.sock"
_USERINFO_SEPARATOR = ":"


def _split_host_port(address: str) -> tuple[str, str | None]:
    if address.startswith("["):
        end = address.find("]")
        if end == -1:
            raise ValueError(f"invalid address {address!r}: missing ']'")
        host, rest = address[1:end], address[end + 1 :]
        if not rest:
            return host, None
        if not rest.startswith(":"):
            raise ValueError(f"invalid address {address!r}")
        return host, rest[1:]
    host, sep, port = address.rpartition(":")
    if not sep:
        return address, None
    return host, port


def _parse_port_number(text: str) -> int:
    if not text.isdigit() or not 0 <= int(text) <= 65535:
        raise ValueError(f"invalid port {text!r}")
    return int(text)


def parse_database_url(url: str) -> dict[str, Any]:
    """Turn a ``user:password@net(address)/dbname?params`` string into connection arguments."""
    slash = url.rfind("/")
    if slash == -1:
        raise ValueError("invalid DSN: missing the slash separating the database name")
    location, target = url[:slash], url[slash + 1 :]
    database, _, query = target.partition("?")

    settings: dict[str, Any] = {"database": database}

    at = location.rfind("@")
    if at != -1:
        userinfo, location = location[:at], location[at + 1 :]
        user, _, password = userinfo.partition(_USERINFO_SEPARATOR)
        settings["user"] = user
        settings["password"] = password

    paren = location.find("(")
    if paren != -1:
        if not location.endswith(")"):
            raise ValueError("invalid DSN: network address not terminated (missing closing brace)")
        network, address = location[:paren], location[paren + 1 : -1]
    else:
        network, address = location, ""

    if network in ("", "tcp"):
        host, port = _split_host_port(address or _DEFAULT_TCP_ADDRESS)
        settings["host"] = host
        settings["port"] = _parse_port_number(port) if port else _DEFAULT_MYSQL_PORT
    elif network == "unix":
        settings["unix_socket"] = address or _DEFAULT_UNIX_SOCKET
    else:
        raise ValueError(f"invalid DSN: unknown network {network!r}")

    params = parse_qs(query, keep_blank_values=True)
    if params.get("charset"):
        settings["charset"] = params["charset"][0].split(",")[0]
    return settings


def parse_port(value: str) -> tuple[str, int]:
    """Split a ``host:port`` listen address; an empty host means every interface."""
    host, port = _split_host_port(value)
    if port is None:
        raise ValueError(f"address {value}: missing port in address")
    return host or "0.0.0.0", _parse_port_number(port)


def _fatal(message: str) -> int:
    stamp = time.strftime("%Y/%m/%d %H:%M:%S")
    print(f"{stamp} {message}", file=sys.stderr)
    return 1


def main(argv: Sequence[str] | None = None) -> int:
    """Serve the API using DATABASE_URL and APP_PORT from the environment."""
    parser = argparse.ArgumentParser(prog="coursedesk", description="Serve the course enrollment API.")
    parser.add_argument(
        "--startup-delay",
        type=float,
        default=DEFAULT_STARTUP_DELAY,
        help="seconds to wait before connecting to the database (default: %(default)s)",
    )
    args = parser.parse_args(argv)

    database_url = os.environ.get("DATABASE_URL", "")
    if not database_url:
        return _fatal("DATABASE_URL is not set")
    app_port = os.environ.get("APP_PORT", "")
    if not app_port:
        return _fatal("APP_PORT is not set")

    time.sleep(max(args.startup_delay, 0.0))

    try:
        connect_args = parse_database_url(database_url)
    except ValueError as exc:
        return _fatal(f"failed to connect to database: {exc}")

    try:
        connection = pymysql.connect(autocommit=True, **connect_args)
    except pymysql.MySQLError as exc:
        return _fatal(f"Failed to ping database: {exc}")

    with closing(connection):
        try:
            connection.ping(reconnect=False)
        except pymysql.MySQLError as exc:
            return _fatal(f"Failed to ping database: {exc}")

        use_case = EnrollmentUseCase(
            StudentService(SQLStudentRepository(connection)),
            CourseService(SQLCourseRepository(connection)),
            CourseEnrollmentService(SQLCourseEnrollmentRepository(connection)),
        )
        application = setup_routes(Handler(use_case))

        print(f"Starting server on port {app_port}")
        try:
            host, port = parse_port(app_port)
            run_simple(host, port, application)
        except (ValueError, OSError) as exc:
            return _fatal(f"Error starting server: {exc}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())