import socket
import threading

import pytest

from shipbattle.server import RelayServer, is_valid_key, main, parse_port, relay


def _recv_exact(sock, size):
    data = b""
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            break
        data += chunk
    return data


def _pair():
    a, b = socket.socketpair()
    a.settimeout(5)
    return a, b


def _join(server, key):
    """Connect a fake client that sends ``key`` and let the server handle it."""
    client, served = _pair()
    client.sendall(key)
    server.handle_waiting(served)
    return client


@pytest.mark.parametrize(
    "key, expected",
    [
        ("abcde", True),
        ("zzzzz", True),
        ("abcd", False),
        ("abcdef", False),
        ("abcdE", False),
        ("abc1e", False),
        ("", False),
    ],
)
def test_is_valid_key(key, expected):
    assert is_valid_key(key) is expected


@pytest.mark.parametrize("text, port", [("8080", 8080), ("65535", 65535), (" 42", 42), ("0", 0)])
def test_parse_port(text, port):
    assert parse_port(text) == port


@pytest.mark.parametrize("text", ["abc", "65536", "", "-1"])
def test_parse_port_rejects(text):
    with pytest.raises(ValueError):
        parse_port(text)


def test_relay_greets_and_forwards_from_first_until_close():
    c1, s1 = _pair()
    c2, s2 = _pair()
    with c1, c2:
        c1.sendall(b"FIRE 3,4\n")
        c1.shutdown(socket.SHUT_WR)
        relay(s1, s2)
        assert s1.fileno() == -1
        assert s2.fileno() == -1
        greeting_first = _recv_exact(c1, 14)
        greeting_second = _recv_exact(c2, 14)
        forwarded = _recv_exact(c2, 9)
        assert greeting_first == b"CONNECTED AS 1"
        assert greeting_second == b"CONNECTED AS 2"
        assert forwarded == b"FIRE 3,4\n"
        assert c2.recv(16) == b""


def test_relay_forwards_from_second_until_close():
    c1, s1 = _pair()
    c2, s2 = _pair()
    with c1, c2:
        c2.sendall(b"READY 1,5\n")
        c2.shutdown(socket.SHUT_WR)
        relay(s1, s2)
        assert s1.fileno() == -1
        assert s2.fileno() == -1
        greeting_second = _recv_exact(c2, 14)
        greeting_first = _recv_exact(c1, 14)
        forwarded = _recv_exact(c1, 10)
        assert greeting_second == b"CONNECTED AS 2"
        assert greeting_first == b"CONNECTED AS 1"
        assert forwarded == b"READY 1,5\n"
        assert c1.recv(16) == b""


def test_handle_waiting_pairs_same_key():
    with RelayServer(0, "127.0.0.1") as server:
        first = _join(server, b"abcde")
        second = _join(server, b"abcde")
        assert _recv_exact(first, 14) == b"CONNECTED AS 1"
        assert _recv_exact(second, 14) == b"CONNECTED AS 2"
        first.sendall(b"MISS 1,1\n")
        assert _recv_exact(second, 9) == b"MISS 1,1\n"
        first.close()
        assert second.recv(16) == b""
        second.close()


def test_handle_waiting_keeps_different_keys_apart():
    with RelayServer(0, "127.0.0.1") as server:
        first = _join(server, b"abcde")
        second = _join(server, b"zzzzz")
        first.settimeout(0.2)
        with pytest.raises(TimeoutError):
            first.recv(16)
        first.close()
        second.close()


def test_handle_waiting_rejects_invalid_key():
    with RelayServer(0, "127.0.0.1") as server:
        client = _join(server, b"bad")
        assert _recv_exact(client, 25) == b"error: invalid connection"
        assert client.recv(16) == b""
        client.close()


def test_serve_forever_pairs_clients_and_stops_on_close():
    with RelayServer(0, "127.0.0.1") as server:
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        with socket.create_connection(("127.0.0.1", server.port), timeout=5) as first, \
                socket.create_connection(("127.0.0.1", server.port), timeout=5) as second:
            first.sendall(b"qwert")
            second.sendall(b"qwert")
            greetings = {_recv_exact(first, 14), _recv_exact(second, 14)}
            assert greetings == {b"CONNECTED AS 1", b"CONNECTED AS 2"}
            first.sendall(b"HIT 1,1\n")
            assert _recv_exact(second, 8) == b"HIT 1,1\n"
    thread.join(5)
    assert not thread.is_alive()


def test_main_without_port_prints_usage(capsys):
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out


def test_main_rejects_non_number(capsys):
    assert main(["abc"]) == 1
    assert "not a number" in capsys.readouterr().err


def test_main_rejects_large_port(capsys):
    assert main(["70000"]) == 1
    assert "too big" in capsys.readouterr().err