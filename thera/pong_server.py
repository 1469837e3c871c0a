"""Authoritative two-player pong server."""

from __future__ import annotations

import argparse
import enum
import math
import sys
import threading
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Optional

from thera import clog
from thera.concurrent_queue import ConcurrentQueue
from thera.connection import TcpListener
from thera.packet import Packet, PacketRegistry
from thera.physics import Body, Vector, aabb_overlap, normalize, reflect

DEFAULT_PORT = 1337
BALL_START_SPEED = 15.0
BALL_SPEED = 40.0
PHYSICS_STEP = 0.0166666
SCORE_LINE = 29.0
PADDLE_X = 29.0
BORDER_Y = 22.5
FRAME_INTERVAL = 1.0 / 60.0

LEFT = 0
RIGHT = 1


class PacketType(enum.IntEnum):
    """Packet IDs used by the pong client and server."""

    CONNECT = 0
    PLAYER_JOIN = 1
    PLAYER_LEAVE = 2
    READY = 3
    START = 4
    PLAYER_POSITION = 5
    BALL_POSITION = 6
    SCORE = 7


@dataclass
class Client:
    """A connected player."""

    tcp: Any = None
    udp: Any = None
    name: str = ""
    side: int = LEFT


class PongGame:
    """The playfield: two paddles, two borders and a ball."""

    def __init__(self) -> None:
        self.left_paddle = Body(Vector(-PADDLE_X, 0, 0), Vector(1, 4, 1))
        self.right_paddle = Body(Vector(PADDLE_X, 0, 0), Vector(1, 4, 1))
        self.ball = Body(Vector(0, 0, 0), Vector(1, 1, 1))
        self.top_border = Body(Vector(0, BORDER_Y, 0), Vector(60, 1, 1))
        self.bottom_border = Body(Vector(0, -BORDER_Y, 0), Vector(60, 1, 1))
        self.colliders = (
            self.left_paddle,
            self.right_paddle,
            self.top_border,
            self.bottom_border,
        )
        self.ball_velocity: Optional[Vector] = None
        self._accumulated = 0.0

    @property
    def ball_moving(self) -> bool:
        return self.ball_velocity is not None

    def start_ball(self) -> None:
        """Set the ball moving towards the right."""
        self.ball_velocity = Vector(BALL_START_SPEED, 0, 0)

    def set_paddle(self, side: int, y: float) -> None:
        """Move the left (side 0) or right paddle to height y."""
        paddle = self.left_paddle if side == LEFT else self.right_paddle
        paddle.position = replace(paddle.position, y=float(y))

    def collide_ball(self) -> None:
        """Bounce the ball off any collider it overlaps."""
        if self.ball_velocity is None:
            return
        for collider in self.colliders:
            hit = aabb_overlap(collider, self.ball)
            if hit is None:
                continue
            normal = hit.normal
            if abs(normal.x) < abs(normal.y):
                self.ball_velocity = reflect(self.ball_velocity, normal)
                continue
            to_ball = normalize(self.ball.position - collider.position)
            adjusted = normalize(to_ball - Vector(normal.x, 0, 0))
            self.ball_velocity = adjusted * BALL_SPEED

    def check_score(self) -> Optional[int]:
        """If the ball passed a goal line, reset it and return the scoring side."""
        if self.ball_velocity is None or abs(self.ball.position.x) <= SCORE_LINE:
            return None
        sign = math.copysign(1.0, self.ball.position.x)
        scoring_side = RIGHT if sign < 0 else LEFT
        self.ball.position = Vector(0, 0, 0)
        self.ball_velocity = Vector(sign * BALL_START_SPEED, 0, 0)
        return scoring_side

    def advance(self, delta_time: float) -> int:
        """Run fixed physics steps for the elapsed time; return how many ran."""
        if self.ball_velocity is None:
            return 0
        self._accumulated += delta_time
        steps = 0
        while self._accumulated > PHYSICS_STEP:
            self.ball.position = self.ball.position + self.ball_velocity * PHYSICS_STEP
            self.collide_ball()
            self._accumulated -= PHYSICS_STEP
            steps += 1
        return steps


class PongServer:
    """Accepts two players and relays the game state between them."""

    def __init__(self, port: int = DEFAULT_PORT) -> None:
        self.game = PongGame()
        self.clients: dict[tuple, Client] = {}
        self.requests: dict[tuple, Any] = {}
        self.registry = PacketRegistry()
        self.registry.register(PacketType.CONNECT, self.handle_connect)
        self.registry.register(PacketType.PLAYER_POSITION, self.handle_player_position)
        self._lock = threading.RLock()
        self._deferred: ConcurrentQueue[Callable[[], Any]] = ConcurrentQueue()
        self._closed = threading.Event()
        self._listener = TcpListener(port, self.on_accept, self.registry)

    @property
    def port(self) -> int:
        return self._listener.port()

    def handle_connect(self, source: Any, packet: Packet) -> None:
        """Answer a connection request, admitting the player if there is room."""
        name = packet.reader().read_string()
        clog.info(f"Client requested connection with name: {name}")
        endpoint = source.endpoint()
        with self._lock:
            response = Packet(PacketType.CONNECT)
            response.write_value("B", len(self.clients))
            side = LEFT
            if len(self.clients) == 1:
                existing = next(iter(self.clients.values()))
                side = RIGHT if existing.side == LEFT else LEFT
                response.write_string(existing.name)
                joined = Packet(PacketType.PLAYER_JOIN)
                joined.write_string(name)
                existing.tcp.send(joined)
                self._deferred.push(self.game.start_ball)
            if len(self.clients) < 2:
                tcp = self.requests.pop(endpoint)
                self.clients[endpoint] = Client(tcp=tcp, name=name, side=side)
        source.send(response)

    def handle_player_position(self, source: Any, packet: Packet) -> None:
        """Apply a player's paddle height and relay it to the other players."""
        y = packet.reader().read("f")
        with self._lock:
            sender = self.clients[source.endpoint()]
            self.game.set_paddle(sender.side, y)
            relay = Packet(PacketType.PLAYER_POSITION)
            relay.write_value("f", y)
            for client in self.clients.values():
                if client is not sender:
                    client.tcp.send(relay)

    def on_accept(self, connection: Any) -> None:
        clog.info(f"Accepted TCP from: {connection.endpoint()}")
        connection.disconnected.register(self.on_disconnect)
        with self._lock:
            self.requests[connection.endpoint()] = connection
        connection.activate()

    def on_disconnect(self, connection: Any) -> None:
        endpoint = connection.endpoint()
        with self._lock:
            self.clients.pop(endpoint, None)
            self.requests.pop(endpoint, None)

    def broadcast(self, packet: Packet) -> None:
        """Queue a packet on every connected client's TCP connection."""
        with self._lock:
            for client in self.clients.values():
                client.tcp.send(packet)

    def _run_deferred(self) -> None:
        while not self._deferred.empty():
            try:
                operation = self._deferred.pop()
            except IndexError:
                break
            operation()

    def tick(self, delta_time: float) -> None:
        """Advance the game by one frame and send the resulting state."""
        with self._lock:
            self._run_deferred()
            self.game.advance(delta_time)
            if self.game.ball_moving:
                position = Packet(PacketType.BALL_POSITION)
                position.write_value("f", self.game.ball.position.x)
                position.write_value("f", self.game.ball.position.y)
                self.broadcast(position)
                scoring_side = self.game.check_score()
                if scoring_side is not None:
                    score = Packet(PacketType.SCORE)
                    score.write_value("B", scoring_side)
                    self.broadcast(score)
            for client in self.clients.values():
                if client.tcp is not None:
                    client.tcp.flush()
                if client.udp is not None:
                    client.udp.flush()

    def serve_forever(self) -> None:
        """Tick at a fixed frame rate until closed."""
        last = time.monotonic()
        while not self._closed.wait(FRAME_INTERVAL):
            now = time.monotonic()
            self.tick(now - last)
            last = now

    def close(self) -> None:
        """Stop listening and close every client connection."""
        self._closed.set()
        self._listener.close()
        with self._lock:
            for client in list(self.clients.values()):
                if client.tcp is not None:
                    client.tcp.close()
                if client.udp is not None:
                    client.udp.close()

    def __enter__(self) -> PongServer:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="pong-server", description="Run a pong server.")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="TCP port to listen on")
    args = parser.parse_args(argv)
    server: Optional[PongServer] = None
    try:
        server = PongServer(args.port)
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    except Exception as exc:  # noqa: BLE001 - report and shut down cleanly
        print(exc, file=sys.stderr)
    finally:
        if server is not None:
            server.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())