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
import logging
from typing import Optional, Union

from . import ragemp, samp
from .errors import MalformedResponseError, QueryError, QueryTimeoutError, ResolutionError, TransportError
from .resolver import DEFAULT_LIFETIME, resolve_address
from .status import ConnStatus, QueryProtocols, ServerStatus, normalize

__version__ = "1.0.0"

__all__ = [
  "ConnStatus", "QueryProtocols", "ServerStatus", "GtaStat", "query",
  "QueryError", "ResolutionError", "TransportError", "QueryTimeoutError", "MalformedResponseError",
]

logger = logging.getLogger(__name__)

class GtaStat:
  VERSION = __version__                        # gtastat version
  DEFAULT_SAMP_PORT = samp.DEFAULT_PORT        # default UDP port for SA-MP queries
  DEFAULT_RAGEMP_PORT = ragemp.DEFAULT_PORT    # default RAGE:MP game port, documents are served on port + 1
  DEFAULT_TIMEOUT = samp.DEFAULT_TIMEOUT       # seconds to wait for a SA-MP answer
  DEFAULT_HTTP_TIMEOUT = ragemp.DEFAULT_TIMEOUT  # seconds per RAGE:MP HTTP request
  DEFAULT_DNS_TIMEOUT = DEFAULT_LIFETIME       # seconds for the A record lookup

  def __init__(self, timeout: float = DEFAULT_TIMEOUT, http_timeout: float = DEFAULT_HTTP_TIMEOUT,
               dns_timeout: float = DEFAULT_DNS_TIMEOUT, resolver=None) -> None:
    for name, value in (("timeout", timeout), ("http_timeout", http_timeout), ("dns_timeout", dns_timeout)):
      if value <= 0:
        raise ValueError(f"{name} must be positive, got {value!r}")

    self.timeout: float = timeout
    """SA-MP answer timeout in seconds"""
    self.http_timeout: float = http_timeout
    """RAGE:MP timeout per HTTP request in seconds"""
    self.dns_timeout: float = dns_timeout
    """DNS lookup lifetime in seconds"""
    self.resolver = resolver
    """optional `dns.resolver.Resolver` (or compatible) used for hostnames"""

  def default_port(self, query_protocol: QueryProtocols) -> int:
    if query_protocol is QueryProtocols.RAGEMP:
      return self.DEFAULT_RAGEMP_PORT
    return self.DEFAULT_SAMP_PORT

  def query(self, address: str, port: Optional[int] = 0,
            query_protocol: Union[QueryProtocols, str] = QueryProtocols.SAMP) -> ServerStatus:
    """
    Queries one server and returns its normalized status.

    Never raises for network or protocol problems: an unresolvable host, a send
    failure, a timeout or a malformed answer all yield the offline record, with
    `connection_status` telling which one it was. The returned `address` and
    `port` are always the ones passed in.

    :param address: IPv4 literal or hostname of the server
    :param port: game port, 0 or None selects the protocol default
    :param query_protocol: `QueryProtocols` member or its name
    :raises ValueError: unknown protocol or port out of range
    """
    query_protocol = QueryProtocols.parse(query_protocol)
    if not port:
      port = self.default_port(query_protocol)
    if not 0 < port <= 0xFFFF:
      raise ValueError(f"port out of range: {port!r}")

    try:
      resolved = resolve_address(address, self.resolver, self.dns_timeout)
    except ResolutionError as e:
      logger.info(f"Query of {address} aborted ({e.status}): {e}")
      return ServerStatus.offline(address, port, e.status)

    if query_protocol is QueryProtocols.SAMP:
      result, info = self.samp_query(resolved, port)
    else:
      result, info = self.ragemp_query(resolved, port)

    return normalize(address, port, result, info)

  def samp_query(self, resolved: str, port: int):
    """ SA-MP information query against an already resolved address, see `gtastat.samp`. """
    return samp.query(resolved, port, self.timeout)

  def ragemp_query(self, resolved: str, port: int):
    """ RAGE:MP status documents of an already resolved address, see `gtastat.ragemp`. """
    return ragemp.query(resolved, port, self.http_timeout)

def query(address: str, port: Optional[int] = 0,
          query_protocol: Union[QueryProtocols, str] = QueryProtocols.SAMP) -> ServerStatus:
  """ Shortcut for `GtaStat().query(...)` with default timeouts. """
  return GtaStat().query(address, port, query_protocol)
