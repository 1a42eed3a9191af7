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
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

OFFLINE_HOSTNAME = "Server Offline"
NOT_AVAILABLE = "N/A"

class ConnStatus(Enum):
  """
Contains possible connection states.

- `SUCCESS`: The query succeeded (Request & response parsing OK)
- `CONNFAIL`: The socket/connection to the server could not be established or the probe could not be sent.
- `TIMEOUT`: No answer arrived within the time budget. (Server offline? Firewall rules OK?)
- `UNKNOWN`: An answer arrived, but it did not match the expected framing or shape.
- `UNRESOLVED`: The hostname has no IPv4 address, no probe was sent.
  """

  def __str__(self) -> str:
    return str(self.name)

  SUCCESS = 0
  """The query succeeded (Request & response parsing OK)"""

  CONNFAIL = -1
  """The socket/connection to the server could not be established or the probe could not be sent."""

  TIMEOUT = -2
  """No answer arrived within the time budget. (Server offline? Firewall rules OK?)"""

  UNKNOWN = -3
  """An answer arrived, but it did not match the expected framing or shape."""

  UNRESOLVED = -4
  """The hostname has no IPv4 address, no probe was sent."""

class QueryProtocols(Enum):
  """
Contains the supported query protocols.

- `SAMP`: The San Andreas Multiplayer query protocol.

  Single UDP datagram request/response with a fixed binary framing.
  See `gtastat.samp` for the protocol implementation.

- `RAGEMP`: The RAGE Multiplayer status documents.

  Two JSON documents served over HTTP on the game port plus one.
  See `gtastat.ragemp` for the protocol implementation.
  """

  def __str__(self) -> str:
    return str(self.name)

  SAMP = "samp"
  """San Andreas Multiplayer, UDP binary query (default port 7777)"""

  RAGEMP = "ragemp"
  """RAGE Multiplayer, HTTP/JSON status documents (default port 22005)"""

  @classmethod
  def parse(cls, value: Union["QueryProtocols", str]) -> "QueryProtocols":
    """
    Accepts a member or a protocol name ("samp", "ragemp" or "rage", case insensitive).

    :raises ValueError: for unknown protocol names
    """
    if isinstance(value, cls):
      return value
    name = str(value).strip().lower()
    if name == "rage":
      name = cls.RAGEMP.value
    try:
      return cls(name)
    except ValueError:
      raise ValueError("unknown query protocol: %r" % (value,)) from None

@dataclass(frozen=True)
class ServerStatus:
  """
  Normalized status of one queried server.

  When `online` is False every informational field holds its sentinel value,
  see `ServerStatus.offline()`.
  """
  hostname: str
  """server name as announced by the server"""
  address: str
  """address exactly as given by the caller (never the resolved IP)"""
  port: int
  """port as requested by the caller"""
  players: int
  """current number of players online"""
  max_players: int
  """maximum player capacity"""
  gamemode: str
  """game mode announced by the server"""
  language: str
  """language announced by the server"""
  version: str
  """server version"""
  password: bool
  """is the server password protected?"""
  ping: int
  """ping time to server in milliseconds (0 when not measured)"""
  online: bool
  """online or offline?"""
  connection_status: ConnStatus = ConnStatus.SUCCESS
  """how the query ended, see `ConnStatus`"""

  @classmethod
  def offline(cls, address: str, port: int, connection_status: ConnStatus = ConnStatus.UNKNOWN) -> "ServerStatus":
    """ Builds the offline sentinel record for `address`/`port`. """
    return cls(
      hostname=OFFLINE_HOSTNAME,
      address=address,
      port=port,
      players=0,
      max_players=0,
      gamemode=NOT_AVAILABLE,
      language=NOT_AVAILABLE,
      version=NOT_AVAILABLE,
      password=False,
      ping=0,
      online=False,
      connection_status=connection_status,
    )

  def to_dict(self) -> Dict[str, Any]:
    """ The JSON record handed to API consumers. """
    return {
      "hostname": self.hostname,
      "address": self.address,
      "port": self.port,
      "players": self.players,
      "maxPlayers": self.max_players,
      "gamemode": self.gamemode,
      "language": self.language,
      "version": self.version,
      "password": self.password,
      "ping": self.ping,
      "online": self.online,
    }

def normalize(address: str, port: int, connection_status: ConnStatus, info: Optional[Any] = None) -> ServerStatus:
  """
  Status normalizer: maps the outcome of a protocol client onto a `ServerStatus`.

  `info` is the parsed result of either client (`samp.SampInfo` or `ragemp.RageInfo`),
  both expose the same attribute names. Anything but a `SUCCESS` with a result
  collapses into the offline sentinel.

  :param address: the host string exactly as given by the caller
  :param port: the port as requested by the caller
  :param connection_status: outcome reported by the client
  :param info: parsed client result, None on failure
  """
  if connection_status is not ConnStatus.SUCCESS or info is None:
    if connection_status is ConnStatus.SUCCESS:
      connection_status = ConnStatus.UNKNOWN
    return ServerStatus.offline(address, port, connection_status)

  return ServerStatus(
    hostname=info.hostname,
    address=address,
    port=port,
    players=info.players,
    max_players=info.max_players,
    gamemode=info.gamemode,
    language=info.language,
    version=info.version,
    password=bool(info.password),
    ping=info.ping,
    online=True,
    connection_status=ConnStatus.SUCCESS,
  )
