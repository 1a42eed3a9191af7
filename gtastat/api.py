# gtastat - A GTA multiplayer (SA-MP/RAGE:MP) server status checker
# Copyright (C) 2016-2022 Lloyd Dilley, Felix Ern (MindSolve)
# http://www.dilley.me/
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License along
# with this program; if not, write to the Free Software Foundation, Inc.,
# 51 Franklin Street, Fifth Floor, Boston, MA 02110-1301 USA.
"""
JSON API in front of `GtaStat`.

    GET /api/server/samp?ip=<host>&port=<port>
    GET /api/server/rage?ip=<host>&port=<port>

The answer is the `ServerStatus.to_dict()` record, offline servers included.
Only bad input gets an HTTP error: a missing `ip`, an invalid `port`, or a
host that cannot be resolved (400).
"""
from typing import Any, Mapping, Optional

from flask import Flask, current_app, jsonify, request

from . import GtaStat
from .status import ConnStatus, QueryProtocols

DEFAULT_CONFIG = {
  "GTASTAT_TIMEOUT": GtaStat.DEFAULT_TIMEOUT,
  "GTASTAT_HTTP_TIMEOUT": GtaStat.DEFAULT_HTTP_TIMEOUT,
  "GTASTAT_DNS_TIMEOUT": GtaStat.DEFAULT_DNS_TIMEOUT,
  "GTASTAT_RESOLVER": None,
}

def _error(message: str, status: int = 400):
  response = jsonify({"error": message})
  response.status_code = status
  return response

def _stat() -> GtaStat:
  config = current_app.config
  return GtaStat(
    timeout=config["GTASTAT_TIMEOUT"],
    http_timeout=config["GTASTAT_HTTP_TIMEOUT"],
    dns_timeout=config["GTASTAT_DNS_TIMEOUT"],
    resolver=config["GTASTAT_RESOLVER"],
  )

def server_status(query_protocol: QueryProtocols):
  address = request.args.get("ip", "").strip()
  if not address:
    return _error("ip is required")

  # An empty port selects the protocol default
  port = 0
  raw_port = request.args.get("port", "").strip()
  if raw_port:
    try:
      port = int(raw_port)
    except ValueError:
      return _error("invalid port")
    if not 0 < port <= 0xFFFF:
      return _error("invalid port")

  status = _stat().query(address, port, query_protocol)
  if status.connection_status is ConnStatus.UNRESOLVED:
    return _error("could not resolve host")

  return jsonify(status.to_dict())

def create_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
  """
  Builds the Flask application.

  :param config: overrides for the `GTASTAT_*` settings (timeouts in seconds, optional resolver)
  """
  app = Flask(__name__)
  app.config.update(DEFAULT_CONFIG)
  if config:
    app.config.update(config)

  @app.get("/api/server/samp")
  def samp_status():
    return server_status(QueryProtocols.SAMP)

  @app.get("/api/server/rage")
  @app.get("/api/server/ragemp")
  def ragemp_status():
    return server_status(QueryProtocols.RAGEMP)

  @app.after_request
  def no_store(response):
    response.headers["Cache-Control"] = "no-store"
    return response

  return app
