"""TCP and UDP connections that exchange aggregated packets on background threads."""

from __future__ import annotations

import socket
import struct
import threading
from typing import Any, Callable, Optional

from thera import clog
from thera.events import Event
from thera.packet import MAX_FIELD, AggregatePacket, Packet, PacketRegistry

Endpoint = tuple

DEFAULT_MTU = 1400
_POLL_INTERVAL = 0.2
_DATAGRAM_SIZE = 65535
_AGGREGATE_HEADER = struct.Struct("<HH")


def run_task(task: Callable[[], Any], cancel: Optional[Callable[[], Any]] = None) -> threading.Thread:
    """Run a task on a daemon thread; call cancel if the task raises."""

    def _run() -> None:
        try:
            task()
        except Exception as exc:  # noqa: BLE001 - a background task must not die silently
            clog.error(f"Task failed: {exc}", False)
            if cancel is not None:
                cancel()

    thread = threading.Thread(target=_run, daemon=True)
    thread.start()
    return thread


class _SendQueue:
    """Collects packets into aggregates no larger than a byte limit."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self._lock = threading.Lock()
        self._ready: list[AggregatePacket] = []
        self._pending: Optional[AggregatePacket] = None

    def _fits(self, aggregate: AggregatePacket, packet: Packet) -> bool:
        room = min(MAX_FIELD, self.limit - AggregatePacket.HEADER_SIZE)
        return len(aggregate) < MAX_FIELD and aggregate.size + packet.full_size() <= room

    def add(self, packet: Packet) -> None:
        with self._lock:
            if self._pending is not None and not self._fits(self._pending, packet):
                self._ready.append(self._pending)
                self._pending = None
            pending = self._pending if self._pending is not None else AggregatePacket()
            pending.add_packet(packet)
            self._pending = pending

    def has_data(self) -> bool:
        with self._lock:
            return bool(self._ready) or self._pending is not None

    def drain(self) -> list[AggregatePacket]:
        with self._lock:
            items = self._ready
            if self._pending is not None:
                items.append(self._pending)
            self._ready = []
            self._pending = None
            return items


def _dispatch(registry: PacketRegistry, connection: Any, packet: Packet) -> None:
    try:
        registry.dispatch(connection, packet)
    except Exception as exc:  # noqa: BLE001 - one bad handler must not kill the receive loop
        clog.error(f"Handler for packet {packet.id} failed: {exc}", False)


class TcpConnection:
    """An established two-way TCP connection."""

    def __init__(
        self,
        sock: socket.socket,
        registry: Optional[PacketRegistry] = None,
        start_active: bool = True,
    ) -> None:
        self.disconnected = Event()
        self._socket = sock
        self._registry = registry if registry is not None else PacketRegistry()
        self._endpoint = tuple(sock.getpeername()[:2])
        self._queue = _SendQueue(AggregatePacket.HEADER_SIZE + MAX_FIELD)
        self._send_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._active = False
        self._closed = False
        try:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        except OSError:
            pass
        if start_active:
            self.activate()

    @classmethod
    def connect(
        cls,
        address: str,
        port: int,
        registry: Optional[PacketRegistry] = None,
        local: Optional[Endpoint] = None,
    ) -> TcpConnection:
        """Open a connection to address:port; raise OSError on failure."""
        sock = socket.create_connection((str(address), port), source_address=local)
        sock.settimeout(None)
        return cls(sock, registry, True)

    def endpoint(self) -> Endpoint:
        """The remote (host, port)."""
        return self._endpoint

    def local_endpoint(self) -> Endpoint:
        """The local (host, port)."""
        return tuple(self._socket.getsockname()[:2])

    def activate(self) -> None:
        """Start receiving data, if not already doing so."""
        with self._state_lock:
            if self._active or self._closed:
                return
            self._active = True
        run_task(self._listen, self.close)

    def send(self, packet: Packet) -> None:
        """Queue a packet; it is sent on the next flush."""
        self._queue.add(packet)

    def flush(self) -> None:
        """Send every queued packet."""
        aggregates = self._queue.drain()
        if self._closed or not aggregates:
            return
        try:
            with self._send_lock:
                for aggregate in aggregates:
                    self._socket.sendall(aggregate.to_bytes())
        except OSError:
            self._handle_disconnect()

    def close(self) -> None:
        """Close the connection and its socket."""
        self._close()

    def _close(self) -> bool:
        with self._state_lock:
            if self._closed:
                return False
            self._closed = True
        try:
            self._socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._socket.close()
        return True

    def _handle_disconnect(self) -> None:
        if self._close():
            self.disconnected.invoke(self)

    def _recv_exact(self, count: int) -> Optional[bytes]:
        buffer = bytearray()
        while len(buffer) < count:
            chunk = self._socket.recv(count - len(buffer))
            if not chunk:
                return None
            buffer.extend(chunk)
        return bytes(buffer)

    def _listen(self) -> None:
        try:
            while not self._closed:
                header = self._recv_exact(AggregatePacket.HEADER_SIZE)
                if header is None:
                    break
                _, size = _AGGREGATE_HEADER.unpack(header)
                body = self._recv_exact(size)
                if body is None:
                    break
                try:
                    aggregate = AggregatePacket.from_bytes(header + body)
                except ValueError as exc:
                    clog.error(f"Malformed data from {self._endpoint}: {exc}", False)
                    break
                for packet in aggregate:
                    _dispatch(self._registry, self, packet)
        except OSError:
            pass
        self._handle_disconnect()

    def __enter__(self) -> TcpConnection:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class TcpListener:
    """Accepts incoming TCP connections on a port."""

    def __init__(
        self,
        port: int,
        on_accept: Callable[[TcpConnection], Any],
        registry: Optional[PacketRegistry] = None,
    ) -> None:
        self._on_accept = on_accept
        self._registry = registry if registry is not None else PacketRegistry()
        self._state_lock = threading.Lock()
        self._closed = False
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(("0.0.0.0", port))
            sock.listen()
            sock.settimeout(_POLL_INTERVAL)
        except OSError:
            sock.close()
            raise
        self._socket = sock
        self._port = sock.getsockname()[1]
        run_task(self._accept_loop, self.close)

    def port(self) -> int:
        """The port the listener is bound to."""
        return self._port

    def close(self) -> None:
        """Stop accepting and close the listening socket."""
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
        self._socket.close()

    def _accept_loop(self) -> None:
        while not self._closed:
            try:
                conn, _ = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as exc:
                if not self._closed:
                    clog.error(str(exc), False)
                break
            conn.settimeout(None)
            try:
                connection = TcpConnection(conn, self._registry, start_active=False)
                self._on_accept(connection)
            except Exception as exc:  # noqa: BLE001 - keep accepting other clients
                clog.error(f"Accepting connection failed: {exc}", False)
        clog.info("Aborting TCP Listen")

    def __enter__(self) -> TcpListener:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class UdpConnection:
    """A UDP socket exchanging aggregated packets with one remote endpoint."""

    def __init__(
        self,
        registry: Optional[PacketRegistry] = None,
        local: Optional[Endpoint] = None,
        remote: Optional[Endpoint] = None,
    ) -> None:
        self.disconnected = Event()
        self._registry = registry if registry is not None else PacketRegistry()
        self._queue = _SendQueue(DEFAULT_MTU)
        self._state_lock = threading.Lock()
        self._active = False
        self._closed = False
        self._fixed_remote = tuple(remote) if remote is not None else None
        self._remote: Optional[Endpoint] = self._fixed_remote
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind(tuple(local) if local is not None else ("0.0.0.0", 0))
            sock.settimeout(_POLL_INTERVAL)
        except OSError:
            sock.close()
            raise
        self._socket = sock
        self.activate()

    @property
    def mtu(self) -> int:
        """Largest datagram this connection sends, in bytes."""
        return self._queue.limit

    @mtu.setter
    def mtu(self, value: int) -> None:
        if value <= AggregatePacket.HEADER_SIZE:
            raise ValueError("MTU is too small to hold an aggregate header")
        self._queue.limit = value

    def endpoint(self) -> Optional[Endpoint]:
        """The remote endpoint, or the last sender if none was given."""
        return self._remote

    def local_endpoint(self) -> Endpoint:
        return tuple(self._socket.getsockname()[:2])

    def activate(self) -> None:
        """Start receiving datagrams, if not already doing so."""
        with self._state_lock:
            if self._active or self._closed:
                return
            self._active = True
        run_task(self._listen, self.close)

    def send(self, packet: Packet) -> None:
        """Queue a packet; it is sent on the next flush."""
        self._queue.add(packet)

    def flush(self) -> None:
        """Send every queued packet, one datagram per aggregate."""
        if self._closed:
            self._queue.drain()
            return
        if self._remote is None and self._queue.has_data():
            raise RuntimeError("no remote endpoint to send to")
        try:
            for aggregate in self._queue.drain():
                self._socket.sendto(aggregate.to_bytes(), self._remote)
        except OSError:
            self._handle_disconnect()

    def close(self) -> None:
        """Close the connection and its socket."""
        self._close()

    def _close(self) -> bool:
        with self._state_lock:
            if self._closed:
                return False
            self._closed = True
        self._socket.close()
        return True

    def _handle_disconnect(self) -> None:
        if self._close():
            self.disconnected.invoke(self)

    def _listen(self) -> None:
        while not self._closed:
            try:
                data, sender = self._socket.recvfrom(_DATAGRAM_SIZE)
            except socket.timeout:
                continue
            except OSError:
                break
            if self._fixed_remote is None:
                self._remote = tuple(sender[:2])
            try:
                aggregate = AggregatePacket.from_bytes(data)
            except ValueError as exc:
                clog.warning(f"Dropped malformed datagram from {sender}: {exc}")
                continue
            for packet in aggregate:
                _dispatch(self._registry, self, packet)
        self._handle_disconnect()

    def __enter__(self) -> UdpConnection:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()