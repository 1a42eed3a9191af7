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
import re
from typing import Optional

import dns.exception
import dns.resolver

from .errors import ResolutionError

logger = logging.getLogger(__name__)

# Four groups of 1-3 digits. Octet range is not checked here, an address like
# 300.1.1.1 is passed through and fails when the probe is built.
IPV4_PATTERN = re.compile(r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}", re.ASCII)

DEFAULT_LIFETIME = 5

def is_ipv4_literal(host: str) -> bool:
  return IPV4_PATTERN.fullmatch(host) is not None

def resolve_address(host: str, resolver: Optional[dns.resolver.Resolver] = None, lifetime: float = DEFAULT_LIFETIME) -> str:
  """
  Turns a user supplied host into a numeric IPv4 address.

  Dotted-quad literals are returned unchanged without any lookup. Anything else
  gets exactly one A record lookup, the first address of the answer wins.

  :param host: IPv4 literal or DNS name
  :param resolver: resolver to use, a fresh `dns.resolver.Resolver` when omitted
  :param lifetime: total time budget of the lookup in seconds
  :raises ResolutionError: no A record, NXDOMAIN, lookup timeout or any other DNS failure
  """
  if is_ipv4_literal(host):
    return host

  if not host or not host.strip():
    raise ResolutionError("empty hostname")

  try:
    if resolver is None:
      resolver = dns.resolver.Resolver()
      resolver.lifetime = lifetime
    logger.debug(f"Resolving A record of {host}")
    answer = resolver.resolve(host, "A")
  except (dns.exception.DNSException, UnicodeError) as e:
    raise ResolutionError(f"could not resolve {host}: {e}") from e

  for rdata in answer:
    logger.debug(f"{host} resolved to {rdata.address}")
    return str(rdata.address)

  raise ResolutionError(f"no A record for {host}")
