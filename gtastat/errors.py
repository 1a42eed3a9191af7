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
from .status import ConnStatus

class QueryError(Exception):
  """ Base class of all query failures. `status` is the `ConnStatus` the failure collapses to. """
  status = ConnStatus.UNKNOWN

class ResolutionError(QueryError):
  """The host has no resolvable IPv4 address."""
  status = ConnStatus.UNRESOLVED

class TransportError(QueryError):
  """The socket could not be opened or the probe could not be sent."""
  status = ConnStatus.CONNFAIL

class QueryTimeoutError(QueryError, TimeoutError):
  """No response arrived within the time budget."""
  status = ConnStatus.TIMEOUT

class MalformedResponseError(QueryError):
  """A response arrived but violates the expected framing."""
  status = ConnStatus.UNKNOWN
