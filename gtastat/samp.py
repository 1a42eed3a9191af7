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
San Andreas Multiplayer (SA-MP) query protocol.

Request (11 bytes):

- 4 bytes  - ASCII "SAMP"
- 4 bytes  - server IPv4 address, one byte per octet, as written
- 2 bytes  - server port, little-endian unsigned short
- 1 byte   - opcode, 'i' for the server information query

The server answers with a single datagram that repeats the 11 request bytes,
followed by the information payload:

- 1 byte   - password flag
- 2 bytes  - current players (unsigned short, LE)
- 2 bytes  - maximum players (unsigned short, LE)
- 4 bytes  - hostname length (unsigned int, LE), followed by the hostname
- 4 bytes  - gamemode length (unsigned int, LE), followed by the gamemode
- 4 bytes  - language length (unsigned int, LE), followed by the language

See https://sampwiki.blast.hk/wiki/Query_Mechanism
"""
import io
import logging
import socket
import struct
from dataclasses import dataclass, replace
from time import perf_counter
from typing import Optional, Tuple

from .errors import MalformedResponseError, QueryError, QueryTimeoutError, TransportError
from .status import ConnStatus

logger = logging.getLogger(__name__)

SAMP_MAGIC = b"SAMP"
OPCODE_INFO = b"i"
HEADER_SIZE = 11
SAMP_VERSION = "0.3.7"  # the info answer has no version field
DEFAULT_PORT = 7777
DEFAULT_TIMEOUT = 5     # seconds to wait for the answer datagram
MAX_DATAGRAM = 4096

@dataclass(frozen=True)
class SampInfo:
  """Parsed answer of an 'i' query."""
  password: bool
  players: int
  max_players: int
  hostname: str
  gamemode: str
  language: str
  version: str = SAMP_VERSION
  ping: int = 0

def build_probe(address: str, port: int, opcode: bytes = OPCODE_INFO) -> bytes:
  """
  Builds the 11 byte request packet.

  :param address: numeric IPv4 address of the server
  :param port: query port of the server
  :param opcode: query opcode, only 'i' is used by gtastat
  :raises TransportError: if the address is no valid IPv4 address or the port is out of range
  """
  try:
    octets = socket.inet_aton(address)
    return struct.pack("<4s4sHc", SAMP_MAGIC, octets, port, opcode)
  except (OSError, struct.error) as e:
    raise TransportError(f"cannot build probe for {address}:{port}: {e}") from e

def _read(stream: io.BytesIO, size: int) -> bytes:
  """ Reads exactly `size` bytes, a short read means the datagram was truncated. """
  data = stream.read(size)
  if len(data) != size:
    raise MalformedResponseError(f"truncated datagram, expected {size} bytes, got {len(data)}")
  return data

def _read_string(stream: io.BytesIO) -> str:
  """ Reads a string prefixed by its length as unsigned int (LE). """
  (length,) = struct.unpack("<I", _read(stream, 4))
  return _read(stream, length).decode("ascii", errors="replace")

def parse_response(datagram: bytes) -> SampInfo:
  """
  Parses the answer datagram of an 'i' query.

  :param datagram: the full datagram, including the repeated request header
  :raises MalformedResponseError: bad magic or a field running past the end of the datagram
  """
  if datagram[:4] != SAMP_MAGIC:
    raise MalformedResponseError("answer does not start with SAMP magic")

  stream = io.BytesIO(datagram)

  # Skip the repeated request header
  _read(stream, HEADER_SIZE)

  # Password flag, anything but 0 means passworded
  password = _read(stream, 1)[0] != 0

  # Current and maximum player count
  players, max_players = struct.unpack("<HH", _read(stream, 4))

  hostname = _read_string(stream)
  gamemode = _read_string(stream)
  language = _read_string(stream)

  return SampInfo(
    password=password,
    players=players,
    max_players=max_players,
    hostname=hostname,
    gamemode=gamemode,
    language=language,
  )

def exchange(address: str, port: int, probe: bytes, timeout: float = DEFAULT_TIMEOUT) -> Tuple[bytes, int]:
  """
  Sends `probe` and waits for a single answer datagram.

  The socket is owned by this call and closed on every exit path.
  There is no retransmission.

  :return: the datagram and the latency in milliseconds
  :raises TransportError: socket could not be opened, send failed, or the peer refused
  :raises QueryTimeoutError: nothing arrived within `timeout` seconds
  """
  try:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
  except OSError as e:
    raise TransportError(f"cannot open UDP socket: {e}") from e

  try:
    try:
      sock.settimeout(timeout)
      # Connecting a UDP socket only filters datagrams from other peers
      sock.connect((address, port))
      start_time = perf_counter()
      sock.send(probe)
    except OSError as e:
      raise TransportError(f"cannot send probe to {address}:{port}: {e}") from e

    logger.debug(f"Sent {len(probe)} byte probe to {address}:{port}")

    try:
      datagram = sock.recv(MAX_DATAGRAM)
    except socket.timeout as e:
      raise QueryTimeoutError(f"no answer from {address}:{port} within {timeout}s") from e
    except OSError as e:
      # ICMP port unreachable surfaces here as ConnectionRefusedError
      raise TransportError(f"receive from {address}:{port} failed: {e}") from e

    latency = round((perf_counter() - start_time) * 1000)
    logger.debug(f"Received {len(datagram)} bytes from {address}:{port} after {latency}ms")
    return datagram, latency
  finally:
    sock.close()

def query(address: str, port: int = DEFAULT_PORT, timeout: float = DEFAULT_TIMEOUT) -> Tuple[ConnStatus, Optional[SampInfo]]:
  """
  Method for querying a SA-MP server with the 'i' (information) query.

  :param address: numeric IPv4 address of the server
  :param port: query port (the game port)
  :param timeout: seconds to wait for the answer
  :return: `(ConnStatus.SUCCESS, SampInfo)` or `(<failure status>, None)`
  """
  try:
    probe = build_probe(address, port)
    datagram, latency = exchange(address, port, probe, timeout)
    info = parse_response(datagram)
  except QueryError as e:
    logger.info(f"SA-MP query of {address}:{port} failed ({e.status}): {e}")
    return e.status, None

  return ConnStatus.SUCCESS, replace(info, ping=latency)
