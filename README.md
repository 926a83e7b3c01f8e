# miniredis

A small Redis-protocol (RESP) server that runs inside your Python process,
meant for tests. You register the commands you need, point a client at it and
check what happened. It has no dependencies outside the standard library.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## What it does not do

The server knows no commands of its own and keeps no data: there is no
`GET`, `SET` or any other built-in command, and no key store. Every command a
client may send has to be registered with a handler you write. There is no
command-line program either; the server is started from Python code.

## The server

`miniredis.server.Server` listens on a TCP address given as `"host:port"`
(the default is `"127.0.0.1:0"`, a free port on the loopback interface) and
serves each client in its own thread. Command names are matched
case-insensitively. A handler is called with the `Peer`, the upper-cased
command name and the list of arguments, and writes its reply through the peer.

```python
from miniredis.server import Server

def ping(peer, cmd, args):
    peer.write_inline("PONG")

def echo(peer, cmd, args):
    if len(args) != 1:
        peer.write_error("ERR Wrong number of args")
        return
    peer.write_bulk(args[0])

with Server("127.0.0.1:0") as server:
    server.register("PING", ping)
    server.register("ECHO", echo)
    host, port = server.addr()
    # ... connect any Redis client to host:port ...
    print(server.total_commands(), server.clients_len(), server.total_connections())
```

- `register(cmd, handler)` raises `CommandAlreadyRegistered` when the name is
  taken already; it is safe to call while the server is running.
- An unknown command gets the error reply
  ``ERR unknown command `NAME`, with args beginning with: `arg1`, `arg2`, ``
  listing at most 20 arguments. Only known commands count towards
  `total_commands()`.
- `addr()` gives `(host, port)`, or `None` once the server is closed.
- `clients_len()` is the number of clients connected now;
  `total_connections()` counts every client since the server started.
- `close()` stops listening, disconnects every client and waits for their
  threads. Using the server as a context manager calls it on exit.
- `serve_conn(conn)` serves an already connected socket, such as one end of
  `socket.socketpair()`.

### Peers and replies

A `Peer` offers `write_inline`, `write_ok`, `write_error`, `write_bulk`,
`write_null`, `write_len` (to start an array) and `write_int`. Whitespace in
inline strings and errors is turned into spaces. Replies are flushed after
each command.

- `peer.close()` ends the connection once the current command is done.
- `peer.on_disconnect(callback)` registers a callback, run with no arguments
  when the client goes away; several may be registered.
- `peer.block(fn)` runs `fn` with a `Writer` while holding the peer's lock, so
  several writes go out together.
- `peer.ctx` is free for handlers to keep per-client state in.

## The protocol reader

`miniredis.proto` reads client requests from a binary stream:

```python
import io
from miniredis.proto import read_array, read_string

read_array(io.BytesIO(b"*2\r\n$4\r\nLLEN\r\n$6\r\nmylist\r\n"))
# ['LLEN', 'mylist']
read_string(io.BytesIO(b":42\r\n"))
# '42'
```

`read_string` accepts simple strings, errors, integers and bulk strings, all
returned as text; a nil bulk string reads as `""`, and a nil array as `[]`.
Malformed input raises `ProtocolError`; a stream that ends early raises
`EOFError`.

## Sorted sets

`miniredis.sorted_set.SortedSet` maps members to scores and orders them by
score, then by member, whenever an ordering is asked for:

```python
from miniredis.sorted_set import Direction, SortedSet

ss = SortedSet()
ss.set(1, "one")
ss.set(2, "two")
len(ss)                                    # 2
"one" in ss                                # True
ss.get("two")                              # 2
ss.by_score(Direction.DESC)                # [SSElem(score=2, member='two'), SSElem(score=1, member='one')]
ss.rank_by_score("one", Direction.ASC)     # 0
ss.rank_by_score("nosuch", Direction.ASC)  # None
```

`get` returns `None` for an absent member, and `elems()` lists every member
with its score in no particular order.