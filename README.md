# thera

A small game toolkit written in pure Python. It includes a networked
two-player Pong server and the client-side game state.

It uses only the standard library at runtime.

## Modules

- `thera.events.Event` is a list of callbacks. `register(callback)` returns
  a handle. `deregister(handle)` removes that callback and returns whether it
  was there. `invoke(*args)` calls every callback in registration order.
  `len()` gives the number of registered callbacks.
- `thera.bimap.UnorderedBimap` is a two-way lookup table built from
  `(left, right)` pairs. It has `by_left`, `by_right` and `at`. `at` tries
  the left side first, then the right, and raises `KeyError` when neither
  side has the key.
- `thera.concurrent_queue.ConcurrentQueue` is a FIFO queue guarded by a lock.
  It has `push`, `pop`, `empty` and `len()`. `pop` raises `IndexError` when
  the queue is empty.
- `thera.clog` handles console logging:
  - `info` writes to stdout. `warning` and `error` write to stderr.
  - `configure(LogFlags...)` chooses the time and source-location prefix and
    returns the previous flags.
  - `error(message, True)` raises `LoggedError`. So does a failing
    `ccx_assert(assertion, message)`.
- `thera.mathutil.elementwise_max` returns the larger of two numbers, or the
  per-component maximum of two equal-length vectors.
- `thera.memory` reads and writes binary data:
  - `MemoryReader` reads little-endian `struct` values (`read(fmt)`) and
    strings prefixed with their length (`read_string()`) from a byte buffer.
  - `serialise_string` and `deserialise_string` encode and decode a string as
    a uint32 length followed by its UTF-8 bytes.
- `thera.packet` holds the message types:
  - `Packet` is a 16-bit ID and a 16-bit size followed by data.
  - `AggregatePacket` is a 16-bit count and a total size followed by packets.
  - `PacketRegistry` maps packet IDs to `handler(connection, packet)`.
  - `BasePacketType` lists the reserved IDs. `FIRST_USER_ID` is the first ID
    free for application use.
- `thera.connection` holds the network connections:
  - `TcpConnection.connect(address, port, registry, local)` opens a
    connection.
  - `TcpListener(port, on_accept, registry)` accepts connections.
    `port()` returns the bound port.
  - `UdpConnection(registry, local, remote)` exchanges datagrams. Its `mtu`
    property limits the datagram size.
  - `send(packet)` queues a packet and `flush()` writes the queue out as
    aggregates.
  - Each connection reads on a background thread and dispatches received
    packets through the registry. When the connection drops, its
    `disconnected` event fires.
  - `run_task(task, cancel)` runs a task on a daemon thread and calls
    `cancel` if the task raises.
- `thera.inputdefs` and `thera.bindings` handle input:
  - `inputdefs` provides the `Output`, `Precision`, `Component`, `Key` and
    `Mouse` enums and `data_size`.
  - `bindings` provides `MasterBinding`, `BindingInstance`, `Constituent`,
    `CompositeBinding` and `Action`.
  - Use `get_data(kind)` to read a value. `kind` is one of `"float"`,
    `"double"`, `"vec2"`, `"dvec2"`, `"vec3"` or `"dvec3"`. Vectors come back
    as tuples.
  - An `Action` reports the component-wise maximum of all its bindings.
- `thera.physics` provides `Vector`, `Body`, `Hit`, `normalize`, `reflect`
  and `aabb_overlap`, which tests two boxes in the XY plane.
- `thera.pong_server` provides `PongGame`, the playfield and ball physics,
  and `PongServer`, the TCP server.
- `thera.pong_client` provides `PongClient`, `GameInfo`, `GameState`,
  `ServerConnection` and `validate_join`.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Running the Pong server

```
thera-pong-server
thera-pong-server --port 4000
```

By default the server listens for TCP connections on port 1337.

- **Joining.** Each client sends a connect packet carrying its name. The
  server answers with the number of players already present, plus the other
  player's name if there is one. A third player receives a count of 2 and is
  not admitted.
- **Sides.** The first player takes the left paddle and the second takes the
  right.
- **Play.** When the second player joins, the ball starts moving. On every
  frame (60 per second) the server:
  - steps the ball physics;
  - broadcasts the ball position;
  - broadcasts a score packet whenever the ball passes a goal line;
  - relays each player's paddle height to the other player.
- **Stopping.** Press Ctrl+C to close the listener and all client
  connections.

## Examples

Events:

```python
from thera.events import Event

resized = Event()
handle = resized.register(lambda w, h: print(w, h))
resized.invoke(800, 600)
resized.deregister(handle)
```

Packets:

```python
from thera.packet import Packet

packet = Packet(5)
packet.write_string("player")
packet.write_value("f", 1.5)

copy = Packet.from_bytes(packet.to_bytes())
reader = copy.reader()
name = reader.read_string()      # "player"
position = reader.read("f")      # 1.5
```

Handling incoming packets:

```python
from thera.connection import TcpListener
from thera.packet import PacketRegistry

registry = PacketRegistry()
registry.register(5, lambda connection, packet: print(packet.size()))

def on_accept(connection):
    connection.activate()

listener = TcpListener(0, on_accept, registry)
print(listener.port())
```

A composite input made from two scalar inputs:

```python
from thera.bindings import Action, CompositeBinding, Constituent, MasterBinding
from thera.inputdefs import Component, Output, Precision

pressed = {"up": 0.0, "down": 0.0}
up = MasterBinding(Output.SCALAR, Precision.SINGLE, lambda o, p: pressed["up"])
down = MasterBinding(Output.SCALAR, Precision.SINGLE, lambda o, p: pressed["down"])

move = Action(Output.SCALAR, Precision.SINGLE)
CompositeBinding(move, Output.SCALAR, Precision.SINGLE, [
    Constituent(down.create_instance(), [Component.NEG_X]),
    Constituent(up.create_instance(), [Component.POS_X]),
])

pressed["up"] = 1.0
print(move.get_data("float"))  # 1.0
```

## What this package does not do

- **No playable client.** The package has no window, rendering, menu
  screens or keyboard handling, and there is no command to start a client.
  `PongClient` only does the following:
  - connects with `connect(ip, port, player_name)`;
  - tracks the game state as the server's packets arrive;
  - moves the player's paddle with `move_player(input_value, delta_time)`,
    which queues the new height to send to the server.

  Calling `client.server.flush()` each frame, drawing the game and reading
  input are up to the caller.
- **No lobby messages.** The server never sends the ready, start or
  player-leave packets. The client has handlers for them, but against this
  server its state stays at `GameState.LOBBY`.
- **No UDP use in the Pong game.** The client opens a UDP connection, but the
  game exchanges all its data over TCP.