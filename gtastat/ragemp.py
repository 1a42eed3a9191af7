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
RAGE Multiplayer status documents.

A RAGE:MP server publishes its status over plain HTTP on the game port plus one:

- `/info.json`    - object with `name`, `maxplayers`, `gamemode` and optionally
                    `language`, `version`, `password`
- `/players.json` - array with one element per connected player

Both documents are required, a failure on either one fails the whole query.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple

import requests

from .status import NOT_AVAILABLE, ConnStatus

logger = logging.getLogger(__name__)

DEFAULT_PORT = 22005
DEFAULT_TIMEOUT = 5      # seconds, per HTTP request
HTTP_PORT_OFFSET = 1
INFO_PATH = "/info.json"
PLAYERS_PATH = "/players.json"
JSON_CONTENT_TYPE = "application/json"
NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache", "Accept": JSON_CONTENT_TYPE}

@dataclass(frozen=True)
class RageInfo:
  """Fields extracted from `/info.json` and `/players.json`."""
  hostname: str
  players: int
  max_players: int
  gamemode: str
  language: str = NOT_AVAILABLE
  version: str = NOT_AVAILABLE
  password: bool = False
  ping: int = 0           # not measured for RAGE:MP

def http_port(port: int) -> int:
  """ The status documents are served on the game port plus one. """
  return port + HTTP_PORT_OFFSET

def fetch_document(session: requests.Session, url: str, timeout: float = DEFAULT_TIMEOUT) -> Tuple[ConnStatus, Any]:
  """
  GETs one JSON document with caching disabled.

  :return: `(ConnStatus.SUCCESS, document)` or `(<failure status>, None)`
  """
  logger.debug(f"GET {url}")
  try:
    response = session.get(url, headers=NO_CACHE_HEADERS, timeout=timeout)
  except requests.Timeout as e:
    logger.info(f"GET {url} timed out: {e}")
    return ConnStatus.TIMEOUT, None
  except requests.RequestException as e:
    logger.info(f"GET {url} failed: {e}")
    return ConnStatus.CONNFAIL, None

  with response:
    return validate_document(url, response)

def validate_document(url: str, response: requests.Response) -> Tuple[ConnStatus, Any]:
  """ Checks status code and content type, then decodes the JSON body. """
  if not response.ok:
    logger.info(f"GET {url} answered HTTP {response.status_code}")
    return ConnStatus.UNKNOWN, None

  content_type = response.headers.get("Content-Type", "")
  if JSON_CONTENT_TYPE not in content_type:
    logger.info(f"GET {url} answered with content type {content_type!r}, expected JSON")
    return ConnStatus.UNKNOWN, None

  try:
    return ConnStatus.SUCCESS, response.json()
  except (ValueError, RecursionError):
    logger.info(f"GET {url} answered with undecodable JSON")
    return ConnStatus.UNKNOWN, None

def parse_info(info: Any, players: Any) -> Tuple[ConnStatus, Optional[RageInfo]]:
  """
  Extracts the status fields from both documents.

  The info document must be an object carrying `name`, `maxplayers` and `gamemode`.
  A players document that is no array counts as zero players.
  """
  if not isinstance(info, dict):
    return ConnStatus.UNKNOWN, None

  missing = [key for key in ("name", "maxplayers", "gamemode") if info.get(key) is None]
  if missing:
    logger.info(f"info document lacks {', '.join(missing)}")
    return ConnStatus.UNKNOWN, None

  try:
    max_players = int(info["maxplayers"])
  except (TypeError, ValueError, OverflowError):
    return ConnStatus.UNKNOWN, None

  return ConnStatus.SUCCESS, RageInfo(
    hostname=str(info["name"]),
    players=len(players) if isinstance(players, list) else 0,
    max_players=max_players,
    gamemode=str(info["gamemode"]),
    language=info.get("language") or NOT_AVAILABLE,
    version=info.get("version") or NOT_AVAILABLE,
    password=bool(info.get("password", False)),
  )

def query(address: str, port: int = DEFAULT_PORT, timeout: float = DEFAULT_TIMEOUT) -> Tuple[ConnStatus, Optional[RageInfo]]:
  """
  Method for querying a RAGE:MP server through its HTTP status documents.

  :param address: numeric IPv4 address of the server
  :param port: game port, the documents are fetched from `port + 1`
  :param timeout: connect/read timeout per request in seconds
  :return: `(ConnStatus.SUCCESS, RageInfo)` or `(<failure status>, None)`
  """
  base_url = f"http://{address}:{http_port(port)}"

  with requests.Session() as session:
    result, info = fetch_document(session, base_url + INFO_PATH, timeout)
    if result is not ConnStatus.SUCCESS:
      return result, None

    result, players = fetch_document(session, base_url + PLAYERS_PATH, timeout)
    if result is not ConnStatus.SUCCESS:
      return result, None

  return parse_info(info, players)
