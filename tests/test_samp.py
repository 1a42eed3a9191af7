import socket
import struct
from time import perf_counter

import pytest

from gtastat import samp
from gtastat.errors import MalformedResponseError, QueryTimeoutError, TransportError
from gtastat.status import ConnStatus

from .conftest import samp_answer

class TestProbe:
  def test_info_probe_bytes(self):
    assert samp.build_probe("192.168.1.1", 7777) == bytes.fromhex("53414D50C0A80101611E69")

  def test_probe_layout(self):
    probe = samp.build_probe("10.20.30.40", 0x1234)
    assert len(probe) == 11
    assert probe[:4] == b"SAMP"
    assert list(probe[4:8]) == [10, 20, 30, 40]
    assert probe[8:10] == b"\x34\x12"
    assert probe[10:] == b"i"

  @pytest.mark.parametrize("address, port", [("300.1.1.1", 7777), ("1.2.3.4", 70000), ("1.2.3.4", -1)])
  def test_invalid_target(self, address, port):
    with pytest.raises(TransportError):
      samp.build_probe(address, port)

class TestParseResponse:
  probe = samp.build_probe("192.168.1.1", 7777)

  def test_info_answer(self):
    datagram = samp_answer(self.probe, password=0, players=5, max_players=100,
                           hostname=b"Test Server", gamemode=b"DM", language=b"EN")

    info = samp.parse_response(datagram)

    assert info == samp.SampInfo(password=False, players=5, max_players=100,
                                 hostname="Test Server", gamemode="DM", language="EN")
    assert info.version == "0.3.7"
    assert info.ping == 0

  @pytest.mark.parametrize("flag", [1, 2, 255])
  def test_nonzero_password_flag(self, flag):
    info = samp.parse_response(samp_answer(self.probe, password=flag))
    assert info.password is True

  def test_empty_strings(self):
    info = samp.parse_response(samp_answer(self.probe, players=0, max_players=50))
    assert (info.hostname, info.gamemode, info.language) == ("", "", "")
    assert info.max_players == 50

  def test_non_ascii_text_is_replaced(self):
    info = samp.parse_response(samp_answer(self.probe, hostname=b"Caf\xe9"))
    assert info.hostname == "Caf\ufffd"

  def test_bad_magic(self):
    datagram = samp_answer(self.probe, hostname=b"Test Server")
    with pytest.raises(MalformedResponseError):
      samp.parse_response(b"PMAS" + datagram[4:])

  def test_shorter_than_header(self):
    with pytest.raises(MalformedResponseError):
      samp.parse_response(self.probe[:8])

  def test_truncated_string(self):
    datagram = samp_answer(self.probe, hostname=b"Test Server", gamemode=b"DM", language=b"EN")
    # Cut inside the hostname
    cut = samp.HEADER_SIZE + 5 + 4 + 5
    with pytest.raises(MalformedResponseError):
      samp.parse_response(datagram[:cut])

  def test_declared_length_past_end(self):
    body = struct.pack("<BHH", 0, 1, 10) + struct.pack("<I", 0xFFFFFFFF) + b"abc"
    with pytest.raises(MalformedResponseError):
      samp.parse_response(self.probe + body)

  def test_missing_language(self):
    datagram = samp_answer(self.probe, hostname=b"Test Server", gamemode=b"DM", language=b"EN")
    with pytest.raises(MalformedResponseError):
      samp.parse_response(datagram[:-6])

class TestQuery:
  def test_answered(self, samp_server):
    server = samp_server(lambda probe: samp_answer(probe, players=3, max_players=50,
                                                   hostname=b"Local", gamemode=b"TDM", language=b"RU"))

    result, info = samp.query("127.0.0.1", server.port, timeout=2)

    assert result is ConnStatus.SUCCESS
    assert (info.hostname, info.gamemode, info.language) == ("Local", "TDM", "RU")
    assert (info.players, info.max_players) == (3, 50)
    assert info.ping >= 0
    assert server.probes == [samp.build_probe("127.0.0.1", server.port)]

  def test_malformed_answer(self, samp_server):
    server = samp_server(lambda probe: b"HELLO")

    assert samp.query("127.0.0.1", server.port, timeout=2) == (ConnStatus.UNKNOWN, None)

  def test_silent_peer_times_out(self, samp_server):
    server = samp_server()

    start = perf_counter()
    result, info = samp.query("127.0.0.1", server.port, timeout=0.3)
    elapsed = perf_counter() - start

    assert (result, info) == (ConnStatus.TIMEOUT, None)
    assert 0.3 <= elapsed < 1.3
    assert len(server.probes) == 1

  def test_exchange_raises_timeout(self, samp_server):
    server = samp_server()
    with pytest.raises(QueryTimeoutError):
      samp.exchange("127.0.0.1", server.port, samp.build_probe("127.0.0.1", server.port), timeout=0.2)

  def test_closed_port(self, free_port):
    result, info = samp.query("127.0.0.1", free_port, timeout=0.5)

    assert info is None
    assert result in (ConnStatus.CONNFAIL, ConnStatus.TIMEOUT)

  def test_invalid_address(self):
    assert samp.query("999.1.1.1", 7777, timeout=0.5) == (ConnStatus.CONNFAIL, None)

  def test_answered_with_many_descriptors_open(self, samp_server):
    resource = pytest.importorskip("resource")
    soft, hard = resource.getrlimit(resource.RLIMIT_NOFILE)
    if hard != resource.RLIM_INFINITY and hard < 1200:
      pytest.skip("descriptor limit too low")
    if soft != resource.RLIM_INFINITY and soft < 1200:
      target = 2048 if hard == resource.RLIM_INFINITY else min(2048, hard)
      resource.setrlimit(resource.RLIMIT_NOFILE, (target, hard))

    server = samp_server(lambda probe: samp_answer(probe, hostname=b"Busy"))
    # Push the next descriptor number past FD_SETSIZE
    held = [socket.socket(socket.AF_INET, socket.SOCK_DGRAM) for _ in range(1100)]
    try:
      result, info = samp.query("127.0.0.1", server.port, timeout=2)
    finally:
      for sock in held:
        sock.close()
      resource.setrlimit(resource.RLIMIT_NOFILE, (soft, hard))

    assert result is ConnStatus.SUCCESS
    assert info.hostname == "Busy"
