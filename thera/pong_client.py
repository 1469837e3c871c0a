"""Client-side state and packet handling for two-player pong."""

from __future__ import annotations

import enum
import ipaddress
import threading
from dataclasses import dataclass
from typing import Any, Optional

from thera import clog
from thera.connection import TcpConnection, UdpConnection
from thera.packet import Packet, PacketRegistry
from thera.pong_server import LEFT, RIGHT, PacketType

PADDLE_SPEED = 20.0
MAX_NAME_LENGTH = 15
DEFAULT_PORT = 1337


class GameState(enum.Enum):
    """Which screen the client is showing."""

    MENU = enum.auto()
    LOADING = enum.auto()
    HOST = enum.auto()
    JOIN = enum.auto()
    LOBBY = enum.auto()
    GAME = enum.auto()


@dataclass
class GameInfo:
    """What the client knows about the game in progress."""

    self_side: int
    self_name: str
    opponent_name: str = ""
    left_score: int = 0
    right_score: int = 0
    self_ready: bool = False
    opponent_ready: bool = False
    opponent_position: float = 0.0
    ball_position: tuple[float, float] = (0.0, 0.0)


@dataclass
class ServerConnection:
    """The TCP and UDP connections to the server."""

    tcp: Any = None
    udp: Any = None

    def close(self) -> None:
        """Close both connections and forget them."""
        if self.tcp is not None:
            self.tcp.close()
        if self.udp is not None:
            self.udp.close()
        self.tcp = None
        self.udp = None

    def flush(self) -> None:
        """Send everything queued on both connections."""
        if self.tcp is not None:
            self.tcp.flush()
        if self.udp is not None:
            self.udp.flush()


def validate_join(name: str, ip: str, port: int) -> ipaddress.IPv4Address:
    """Check the join form; return the parsed address or raise ValueError listing every problem."""
    problems = []
    if port < 0 or port > 65535:
        problems.append("Port was outside of valid range.")
    address: Optional[ipaddress.IPv4Address] = None
    try:
        address = ipaddress.IPv4Address(ip)
    except ValueError:
        problems.append("IP address was invalid.")
    if not name or len(name) > MAX_NAME_LENGTH:
        problems.append(
            f"Name must be at least 1 character and at most {MAX_NAME_LENGTH}."
        )
    if problems:
        for problem in problems:
            clog.error(problem, False)
        raise ValueError(" ".join(problems))
    assert address is not None
    return address


class PongClient:
    """Tracks the client's screen, game information and server connection."""

    def __init__(self) -> None:
        self.state = GameState.MENU
        self.game: Optional[GameInfo] = None
        self.server = ServerConnection()
        self.player_name = ""
        self.player_position = 0.0
        self._lock = threading.RLock()
        self.registry = PacketRegistry()
        for packet_type, handler in (
            (PacketType.CONNECT, self.handle_connect),
            (PacketType.PLAYER_JOIN, self.handle_player_join),
            (PacketType.PLAYER_LEAVE, self.handle_player_leave),
            (PacketType.READY, self.handle_ready),
            (PacketType.START, self.handle_start),
            (PacketType.PLAYER_POSITION, self.handle_player_position),
            (PacketType.BALL_POSITION, self.handle_ball_position),
            (PacketType.SCORE, self.handle_score),
        ):
            self.registry.register(packet_type, handler)

    def _require_game(self) -> GameInfo:
        if self.game is None:
            raise RuntimeError("no game in progress")
        return self.game

    def connect(self, ip: Any, port: int, player_name: str) -> bool:
        """Connect to a server and ask to join; return whether the connection opened."""
        with self._lock:
            self.player_name = player_name
            self.state = GameState.LOADING
        try:
            tcp = TcpConnection.connect(str(ip), port, self.registry)
        except OSError as exc:
            clog.error(f"Error during connection: {exc}", False)
            with self._lock:
                self.state = GameState.JOIN
            return False
        clog.info(f"TCP connected from {tcp.local_endpoint()}")
        udp = UdpConnection(self.registry, remote=(str(ip), port))
        with self._lock:
            self.server = ServerConnection(tcp, udp)
        request = Packet(PacketType.CONNECT)
        request.write_string(player_name)
        tcp.send(request)
        tcp.flush()
        return True

    def setup_lobby(self, opponent: str = "") -> GameInfo:
        """Start fresh game information; the first player to join takes the left side."""
        with self._lock:
            if self.game is not None:
                clog.warning("Last game data was erroneously not cleaned up.")
            side = LEFT if not opponent else RIGHT
            self.game = GameInfo(side, self.player_name, opponent)
            self.player_position = 0.0
            self.state = GameState.LOBBY
            return self.game

    def handle_connect(self, source: Any, packet: Packet) -> None:
        reader = packet.reader()
        player_count = reader.read("B")
        if player_count == 0:
            clog.info("Successfully connected to empty server.")
            self.setup_lobby()
        elif player_count == 1:
            other = reader.read_string()
            clog.info(f"Successfully connected to server. Other player: {other}")
            self.setup_lobby(other)
        elif player_count == 2:
            clog.error("Error while connecting: Server already at capacity.", False)
            with self._lock:
                self.state = GameState.JOIN
        else:
            clog.error("Received malformed connect response packet from server.", False)
            with self._lock:
                self.state = GameState.JOIN

    def handle_player_join(self, source: Any, packet: Packet) -> None:
        opponent = packet.reader().read_string()
        clog.info(f"Player joined as {opponent}")
        with self._lock:
            self._require_game().opponent_name = opponent

    def handle_player_leave(self, source: Any, packet: Packet) -> None:
        with self._lock:
            game = self._require_game()
            clog.info(f"Player {game.opponent_name} disconnected.")
            game.opponent_name = ""
            game.opponent_ready = False
            self.state = GameState.LOBBY

    def handle_ready(self, source: Any, packet: Packet) -> None:
        ready = packet.reader().read("?")
        with self._lock:
            self._require_game().opponent_ready = bool(ready)

    def handle_start(self, source: Any, packet: Packet) -> None:
        with self._lock:
            game = self._require_game()
            game.opponent_ready = False
            game.self_ready = False
            game.left_score = 0
            game.right_score = 0
            self.state = GameState.GAME

    def handle_player_position(self, source: Any, packet: Packet) -> None:
        y = packet.reader().read("f")
        with self._lock:
            self._require_game().opponent_position = y

    def handle_ball_position(self, source: Any, packet: Packet) -> None:
        x, y = packet.reader().read("ff")
        with self._lock:
            self._require_game().ball_position = (x, y)

    def handle_score(self, source: Any, packet: Packet) -> None:
        side = packet.reader().read("B")
        with self._lock:
            game = self._require_game()
            if side == LEFT:
                game.left_score += 1
            else:
                game.right_score += 1

    def move_player(self, input_value: float, delta_time: float) -> float:
        """Move the player's paddle, send its height if it moved, and return the height."""
        with self._lock:
            if self.game is None:
                return self.player_position
            self.player_position += input_value * delta_time * PADDLE_SPEED
            position = self.player_position
        if input_value != 0:
            if self.server.tcp is None:
                raise RuntimeError("not connected to a server")
            update = Packet(PacketType.PLAYER_POSITION)
            update.write_value("f", position)
            self.server.tcp.send(update)
        return position

    def __enter__(self) -> PongClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.server.close()