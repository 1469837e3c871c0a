import ipaddress
import socket
import time

import pytest

from thera.packet import Packet
from thera.pong_client import (
    PADDLE_SPEED,
    GameInfo,
    GameState,
    PongClient,
    ServerConnection,
    validate_join,
)
from thera.pong_server import PacketType, PongServer


class FakeConnection:
    def __init__(self):
        self.sent = []
        self.flushed = 0
        self.closed = False

    def send(self, packet):
        self.sent.append(packet)

    def flush(self):
        self.flushed += 1

    def close(self):
        self.closed = True


def make_packet(packet_type, *writes):
    packet = Packet(packet_type)
    for kind, value in writes:
        if kind == "s":
            packet.write_string(value)
        else:
            packet.write_value(kind, value)
    return packet


def lobby_client(opponent=""):
    client = PongClient()
    client.player_name = "alice"
    client.setup_lobby(opponent)
    return client


def wait_for(condition, timeout=5.0, tick=None):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if tick is not None:
            tick()
        if condition():
            return True
        time.sleep(0.01)
    return condition()


def test_validate_join_accepts_good_input():
    assert validate_join("alice", "127.0.0.1", 1337) == ipaddress.IPv4Address("127.0.0.1")


def test_validate_join_accepts_fifteen_character_name():
    assert validate_join("a" * 15, "10.0.0.1", 0) == ipaddress.IPv4Address("10.0.0.1")


@pytest.mark.parametrize(
    "name, ip, port, fragment",
    [
        ("alice", "127.0.0.1", 70000, "Port"),
        ("alice", "127.0.0.1", -1, "Port"),
        ("alice", "not-an-ip", 1337, "IP address"),
        ("", "127.0.0.1", 1337, "Name"),
        ("a" * 16, "127.0.0.1", 1337, "Name"),
    ],
)
def test_validate_join_rejects(name, ip, port, fragment):
    with pytest.raises(ValueError, match=fragment):
        validate_join(name, ip, port)


def test_validate_join_reports_every_problem():
    with pytest.raises(ValueError) as info:
        validate_join("", "bad", 99999)
    message = str(info.value)
    assert "Port" in message and "IP address" in message and "Name" in message


def test_new_client_starts_in_menu():
    client = PongClient()
    assert client.state is GameState.MENU
    assert client.game is None


def test_setup_lobby_without_opponent_takes_left():
    client = lobby_client()
    assert client.state is GameState.LOBBY
    assert client.game == GameInfo(0, "alice", "")


def test_setup_lobby_with_opponent_takes_right():
    client = lobby_client("bob")
    assert client.game.self_side == 1
    assert client.game.opponent_name == "bob"
    assert client.game.self_name == "alice"


def test_setup_lobby_replaces_stale_game():
    client = lobby_client("bob")
    client.game.left_score = 3
    client.setup_lobby()
    assert client.game.left_score == 0
    assert client.game.self_side == 0


def test_handle_connect_empty_server():
    client = PongClient()
    client.player_name = "alice"
    client.handle_connect(None, make_packet(PacketType.CONNECT, ("B", 0)))
    assert client.state is GameState.LOBBY
    assert client.game.self_side == 0


def test_handle_connect_with_other_player():
    client = PongClient()
    client.handle_connect(None, make_packet(PacketType.CONNECT, ("B", 1), ("s", "bob")))
    assert client.state is GameState.LOBBY
    assert client.game.opponent_name == "bob"
    assert client.game.self_side == 1


@pytest.mark.parametrize("count", [2, 7])
def test_handle_connect_full_or_malformed_returns_to_join(count):
    client = PongClient()
    client.handle_connect(None, make_packet(PacketType.CONNECT, ("B", count)))
    assert client.state is GameState.JOIN
    assert client.game is None


def test_player_join_and_leave():
    client = lobby_client()
    client.handle_player_join(None, make_packet(PacketType.PLAYER_JOIN, ("s", "bob")))
    assert client.game.opponent_name == "bob"
    client.handle_ready(None, make_packet(PacketType.READY, ("?", True)))
    assert client.game.opponent_ready is True
    client.state = GameState.GAME
    client.handle_player_leave(None, Packet(PacketType.PLAYER_LEAVE))
    assert client.game.opponent_name == ""
    assert client.game.opponent_ready is False
    assert client.state is GameState.LOBBY


def test_handle_start_resets_scores_and_ready():
    client = lobby_client("bob")
    client.game.left_score = 2
    client.game.right_score = 4
    client.game.self_ready = True
    client.game.opponent_ready = True
    client.handle_start(None, Packet(PacketType.START))
    assert client.state is GameState.GAME
    assert (client.game.left_score, client.game.right_score) == (0, 0)
    assert not client.game.self_ready and not client.game.opponent_ready


def test_handle_positions():
    client = lobby_client()
    client.handle_player_position(None, make_packet(PacketType.PLAYER_POSITION, ("f", 2.5)))
    client.handle_ball_position(
        None, make_packet(PacketType.BALL_POSITION, ("f", -3.5), ("f", 1.25))
    )
    assert client.game.opponent_position == 2.5
    assert client.game.ball_position == (-3.5, 1.25)


def test_handle_score_counts_each_side():
    client = lobby_client()
    client.handle_score(None, make_packet(PacketType.SCORE, ("B", 0)))
    client.handle_score(None, make_packet(PacketType.SCORE, ("B", 1)))
    client.handle_score(None, make_packet(PacketType.SCORE, ("B", 1)))
    assert (client.game.left_score, client.game.right_score) == (1, 2)


def test_handlers_without_game_raise():
    client = PongClient()
    with pytest.raises(RuntimeError):
        client.handle_score(None, make_packet(PacketType.SCORE, ("B", 0)))


def test_registry_dispatches_to_client():
    client = lobby_client()
    assert client.registry.dispatch(None, make_packet(PacketType.SCORE, ("B", 0)))
    assert client.game.left_score == 1


def test_move_player_sends_position():
    client = lobby_client()
    fake = FakeConnection()
    client.server = ServerConnection(tcp=fake)
    position = client.move_player(1.0, 0.5)
    assert position == pytest.approx(0.5 * PADDLE_SPEED)
    assert len(fake.sent) == 1
    sent = fake.sent[0]
    assert sent.id == PacketType.PLAYER_POSITION
    assert sent.reader().read("f") == pytest.approx(position)


def test_move_player_without_input_sends_nothing():
    client = lobby_client()
    fake = FakeConnection()
    client.server = ServerConnection(tcp=fake)
    assert client.move_player(0.0, 1.0) == 0.0
    assert fake.sent == []


def test_move_player_without_game_does_nothing():
    client = PongClient()
    assert client.move_player(1.0, 1.0) == 0.0


def test_server_connection_flush_and_close():
    tcp, udp = FakeConnection(), FakeConnection()
    connection = ServerConnection(tcp, udp)
    connection.flush()
    assert (tcp.flushed, udp.flushed) == (1, 1)
    connection.close()
    assert tcp.closed and udp.closed
    assert connection.tcp is None and connection.udp is None


def test_connect_failure_returns_to_join():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
        probe.bind(("127.0.0.1", 0))
        port = probe.getsockname()[1]
    client = PongClient()
    assert client.connect("127.0.0.1", port, "alice") is False
    assert client.state is GameState.JOIN
    assert client.server.tcp is None


def test_two_clients_join_a_server():
    server = PongServer(0)
    first, second = PongClient(), PongClient()
    try:
        tick = lambda: server.tick(0.0)  # noqa: E731
        assert first.connect("127.0.0.1", server.port, "alice") is True
        assert wait_for(lambda: first.state is GameState.LOBBY, tick=tick)
        assert first.game.self_side == 0

        assert second.connect("127.0.0.1", server.port, "bob") is True
        assert wait_for(lambda: second.state is GameState.LOBBY, tick=tick)
        assert second.game.self_side == 1
        assert second.game.opponent_name == "alice"
        assert wait_for(lambda: first.game.opponent_name == "bob", tick=tick)
    finally:
        first.server.close()
        second.server.close()
        server.close()