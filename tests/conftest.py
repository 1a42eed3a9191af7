import json
import socket
import struct
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from types import SimpleNamespace

import pytest

from gtastat import samp

class FakeResolver:
  """ Stands in for `dns.resolver.Resolver`, records every lookup. """

  def __init__(self, addresses=(), error=None):
    self.addresses = list(addresses)
    self.error = error
    self.calls = []

  def resolve(self, host, rdtype):
    self.calls.append((host, rdtype))
    if self.error is not None:
      raise self.error
    return [SimpleNamespace(address=address) for address in self.addresses]

def samp_answer(probe, password=0, players=0, max_players=0, hostname=b"", gamemode=b"", language=b""):
  """ Builds an 'i' answer the way a SA-MP server does: repeated header, then the payload. """
  body = struct.pack("<BHH", password, players, max_players)
  for field in (hostname, gamemode, language):
    body += struct.pack("<I", len(field)) + field
  return probe[:samp.HEADER_SIZE] + body

class FakeSampServer:
  """
  UDP peer on localhost. `reply` maps a received probe to the answer datagram,
  None (or no reply function at all) keeps the server silent.
  """

  def __init__(self, reply=None):
    self.reply = reply
    self.probes = []
    self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    self.sock.bind(("127.0.0.1", 0))
    self.sock.settimeout(0.05)
    self.port = self.sock.getsockname()[1]
    self._running = True
    self._thread = threading.Thread(target=self._serve, daemon=True)
    self._thread.start()

  def _serve(self):
    while self._running:
      try:
        data, peer = self.sock.recvfrom(2048)
      except socket.timeout:
        continue
      except OSError:
        break
      self.probes.append(data)
      answer = self.reply(data) if self.reply else None
      if answer is not None:
        self.sock.sendto(answer, peer)

  def close(self):
    self._running = False
    self._thread.join()
    self.sock.close()

class RageHandler(BaseHTTPRequestHandler):
  def do_GET(self):
    path = self.path.split("?")[0]
    self.server.requests.append((path, dict(self.headers)))
    route = self.server.routes.get(path)
    if route is None:
      route = (404, "text/plain", "not found")

    status, content_type, body = route
    if not isinstance(body, (str, bytes)):
      body = json.dumps(body)
    if isinstance(body, str):
      body = body.encode("utf8")

    self.send_response(status)
    self.send_header("Content-Type", content_type)
    self.send_header("Content-Length", str(len(body)))
    self.end_headers()
    self.wfile.write(body)

  def log_message(self, format, *args):
    pass

@pytest.fixture
def samp_server():
  servers = []

  def start(reply=None):
    server = FakeSampServer(reply)
    servers.append(server)
    return server

  yield start
  for server in servers:
    server.close()

@pytest.fixture
def rage_server():
  """ Starts a fake RAGE:MP status server and returns it; `server.game_port` is the port to query. """
  servers = []

  def start(routes):
    server = ThreadingHTTPServer(("127.0.0.1", 0), RageHandler)
    server.routes = routes
    server.requests = []
    server.game_port = server.server_address[1] - 1
    threading.Thread(target=server.serve_forever, daemon=True).start()
    servers.append(server)
    return server

  yield start
  for server in servers:
    server.shutdown()
    server.server_close()

@pytest.fixture
def free_port():
  """ A localhost port nobody listens on (TCP and UDP). """
  sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
  sock.bind(("127.0.0.1", 0))
  port = sock.getsockname()[1]
  sock.close()
  return port

@pytest.fixture
def rage_documents():
  info = {
    "name": "Los Santos Roleplay",
    "gamemode": "freeroam",
    "maxplayers": 1000,
    "language": "en",
    "version": "1.1",
    "password": False,
  }
  players = [{"name": "alice"}, {"name": "bob"}, {"name": "carol"}]
  return {
    "/info.json": (200, "application/json; charset=utf-8", info),
    "/players.json": (200, "application/json", players),
  }
