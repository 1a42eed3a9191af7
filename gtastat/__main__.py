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
import argparse
import json
import logging
import math
import sys
from typing import List, Optional

from . import GtaStat, __version__
from .status import ConnStatus, QueryProtocols, ServerStatus

EXIT_ONLINE = 0
EXIT_OFFLINE = 1
EXIT_UNRESOLVED = 3  # argparse already exits with 2 on usage errors

def report(status: ServerStatus) -> str:
  lines = ['Server status of %s on port %d:' % (status.address, status.port)]
  if status.online:
    lines.append('Server "%s" is online running version %s with %d out of %d players.'
                 % (status.hostname, status.version, status.players, status.max_players))
    lines.append('Gamemode: %s' % status.gamemode)
    lines.append('Language: %s' % status.language)
    lines.append('Password protected: %s' % ('yes' if status.password else 'no'))
    lines.append('Latency: %sms' % status.ping)
  elif status.connection_status is ConnStatus.UNRESOLVED:
    lines.append('Could not resolve host!')
  else:
    lines.append('Server is offline! (%s)' % status.connection_status)
  return '\n'.join(lines)

def positive_float(value: str) -> float:
  number = float(value)
  if not (number > 0 and math.isfinite(number)):
    raise argparse.ArgumentTypeError('must be positive, got %r' % value)
  return number

def port_number(value: str) -> int:
  number = int(value)
  if not 0 <= number <= 0xFFFF:
    raise argparse.ArgumentTypeError('port out of range: %r' % value)
  return number

def build_parser() -> argparse.ArgumentParser:
  parser = argparse.ArgumentParser(prog='gtastat', description='SA-MP and RAGE:MP server status checker')
  parser.add_argument('--version', action='version', version='%(prog)s ' + __version__)
  parser.add_argument('-v', '--verbose', action='store_true', help='log query details')
  commands = parser.add_subparsers(dest='command', required=True)

  query = commands.add_parser('query', help='query a single server')
  query.add_argument('host', help='IPv4 address or hostname of the server')
  query.add_argument('-p', '--port', type=port_number, default=0, help='game port (default: 7777 for SA-MP, 22005 for RAGE:MP)')
  query.add_argument('-P', '--protocol', default='samp', choices=['samp', 'ragemp', 'rage'], help='query protocol')
  query.add_argument('-t', '--timeout', type=positive_float, default=GtaStat.DEFAULT_TIMEOUT, help='timeout in seconds')
  query.add_argument('--json', action='store_true', help='print the JSON status record')

  serve = commands.add_parser('serve', help='run the JSON API')
  serve.add_argument('--host', default='127.0.0.1', help='interface to listen on')
  serve.add_argument('--port', type=int, default=5000, help='port to listen on')
  return parser

def run_query(args: argparse.Namespace) -> int:
  stat = GtaStat(timeout=args.timeout, http_timeout=args.timeout)
  status = stat.query(args.host, args.port, QueryProtocols.parse(args.protocol))

  if args.json:
    print(json.dumps(status.to_dict()))
  else:
    print(report(status))

  if status.online:
    return EXIT_ONLINE
  if status.connection_status is ConnStatus.UNRESOLVED:
    return EXIT_UNRESOLVED
  return EXIT_OFFLINE

def run_server(args: argparse.Namespace) -> int:
  from .api import create_app

  create_app().run(host=args.host, port=args.port)
  return 0

def main(argv: Optional[List[str]] = None) -> int:
  args = build_parser().parse_args(argv)
  logging.basicConfig(
    level=logging.DEBUG if args.verbose else logging.WARNING,
    format='%(asctime)s %(name)s %(levelname)s: %(message)s',
  )

  if args.command == 'query':
    return run_query(args)
  return run_server(args)

if __name__ == '__main__':
  sys.exit(main())
