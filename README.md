# gazellemq

A Python client for a GazelleMQ hub. A `Client` holds three TCP
connections to the hub: one that publishes messages, one that receives the
messages it has subscribed to, and one that sends subscription commands.
Each connection introduces itself to the hub (an intent letter and a name),
waits for the hub's one-byte acknowledgement, and then runs in a background
thread. A connection that drops is retried every two seconds.

The package has no third-party dependencies.

## Installing

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Quick start

```python
import threading

from gazellemq.client import get_client

ready = threading.Event()

client = get_client()
client.set_on_ready(ready.set)
client.connect_to_hub()          # localhost, ports 5875 / 5876 / 5877

client.subscribe(
    "orders.created",
    lambda message: print("received", message),
    lambda: print("subscription added"),
)

ready.wait()
client.publish("orders.created", '{"id": 1}')
```

`get_client()` returns one shared `Client` for the process. You can also
make your own with `Client(queue_depth=32, nb_threads=2)`; `queue_depth`
bounds the publish and receive queues and `nb_threads` is the number of
threads that run subscription callbacks.

`connect_to_hub(host="localhost", sub_port=5875, pub_port=5876,
comm_port=5877)` starts connecting only the first time it is called; later
calls do nothing. Each connection gets a random name (`s#`, `p#` or `c#`
followed by eight letters and digits). As each connection is acknowledged
a line such as `Publisher connected to GazelleMQ` is printed, and the
callback given to `set_on_ready` runs once, when all three have been.

`subscribe(message_type_id, callback, on_added=None)` registers `callback`
for messages whose type is exactly `message_type_id`. The callback receives
the message content as a string and runs on one of the handler threads; an
exception it raises is logged and does not stop the client. `on_added`
runs once the hub has acknowledged the subscription command. Subscriptions
made before the command connection is ready are sent as soon as it is.

`publish(message_type, content)` queues a message (`content` may be `str`
or `bytes`) for every subscriber of `message_type`. Messages published
before the hub is ready stay queued and are sent once it is. `publish`
waits while the queue is full.

`close()` stops the background threads and closes the connections. A
`Client` can also be used as a context manager.

## Parts you can use on their own

- `gazellemq.publisher.PubClient(queue_depth=500000, msg_batch_size=1)`,
  `gazellemq.subscriber.SubClient(messages_queue_size=500000,
  nb_handler_threads=8)` and `gazellemq.commander.CommandClient(queue_depth=8,
  msg_batch_size=1)` are the three connections behind `Client`. Each is
  started with `connect_to_hub(name, host, port)`, given a ready callback
  with `set_on_ready(fn)` and stopped with `close()`. They share
  `gazellemq.base.BaseClient`, which exposes `step` (a `ClientStep`),
  `is_connected`, `is_running` and `last_error`. A failed or lost
  connection is recorded in `last_error` and retried; if the host name
  cannot be resolved the background thread stops.
- `gazellemq.protocol` holds the wire format: `encode_message` frames a
  message as `type|length|content`, the length counting bytes;
  `MessageParser.feed` turns received bytes back into `Message` objects
  (`message_type`, `content`) however they are split across reads, and
  raises `ProtocolError` on a malformed length; `Intent`,
  `handshake_bytes`, `subscribe_command` and `encode_command_batch` build
  the handshake and command bytes.
- `gazellemq.mpmc.MPMCQueue(capacity)` is a bounded FIFO queue safe for many
  producers and many consumers, with blocking `push`/`pop` and
  non-blocking `try_push`/`try_pop`. `try_pop` returns `None` when the
  queue is empty, so `None` itself cannot be queued.
- `gazellemq.random_id.random_string(length=12)` returns a random string of
  ASCII letters and digits.

## Benchmark commands

Two small commands measure how long a batch of messages takes to go from a
publisher to a subscriber through a running hub. Start the subscriber
first, then the publisher, each in its own terminal:

```
gazellemq-bench-subscriber
gazellemq-bench-publisher
```

The publisher prints the time, in milliseconds, when the hub is ready and
it starts publishing; the subscriber prints the time each time it has
received the full count. Both take `--host`, `--sub-port`, `--pub-port`,
`--comm-port`, `--count` (default 2) and `--type`. The publisher also takes
`--content`, and `--ready-timeout` seconds after which it gives up waiting
for the hub and exits with status 1. Both keep running until interrupted
with Ctrl-C, or for `--duration` seconds if given.

## What this package does not do

It is only a client. It does not include the hub itself: nothing here
accepts connections, stores messages or routes them between subscribers,
so a running hub is needed for anything beyond the protocol, queue and
identifier helpers.