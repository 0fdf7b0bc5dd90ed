# bulletin-tcp

A small bulletin service over TCP. A client connects, logs in with a
username, posts short articles and logs out. The server checks usernames
against an accounts file and keeps track of which username is logged in on
which connection.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Running the server

```
bulletin-tcp-server 5500
```

Options:

| Option                     | Meaning                                                        |
|----------------------------|----------------------------------------------------------------|
| `port`                     | port number to listen on (required)                            |
| `--mode thread`            | one thread per connection; an account may be logged in on only one connection at a time (default) |
| `--mode select`            | every connection served from one thread through a selector; the same account may log in on several connections |
| `--accounts PATH`          | accounts file, default `./TCP_Server/database/account.txt`    |
| `--host ADDRESS`           | address to bind, default all interfaces                        |

The server logs each connection, request and reply to standard error.
Stop it with Ctrl-C.

## Running the client

```
bulletin-tcp-client 127.0.0.1 5500
```

The client prints the server's greeting and then shows a menu:

```
1. Log in
2. Post message
3. Logout
4. Exit
```

After each request it prints a readable line for the status code the
server answered with. It stops on choice 4, at the end of input, or when
the server closes the connection.

## Accounts file

Whitespace-separated pairs of a username and a status: `1` for an active
account, `0` for a banned one.

```
admin 1
tungbt 1
ductq 0
```

The first entry for a name whose status is `0` or `1` decides; a name that
is not listed is reported as not existing.

## Wire format

Every message, in either direction, is a 4-character, space-padded decimal
length followed by that many bytes of text. `"BYE"` travels as
`"   3BYE"`. Requests longer than 100 bytes are rejected and the connection
is dropped.

Requests:

| Request           | Meaning                  |
|-------------------|--------------------------|
| `USER <username>` | log in                   |
| `POST <article>`  | post an article          |
| `BYE`             | log out                  |

Replies are status codes, available as `StatusCode` in
`bulletin_tcp.protocol`:

| Code | Meaning                                              |
|------|------------------------------------------------------|
| 100  | connected to the service                             |
| 110  | logged in                                            |
| 120  | article posted                                       |
| 130  | logged out                                           |
| 211  | account is locked                                    |
| 212  | account does not exist                               |
| 213  | account is already logged in on another connection   |
| 214  | this connection is already logged in                 |
| 221  | not logged in                                        |
| 300  | unknown request                                      |

## Using it as a library

```python
from bulletin_tcp.client import Client

with Client.connect("127.0.0.1", 5500) as client:
    print(client.greeting)
    print(client.login("admin"))
    print(client.post_article("Hello"))
    print(client.logout())
```

Each request method returns the reply as a `StatusCode` (or a plain int for
an unknown code).

On the server side:

- `bulletin_tcp.handlers.RequestHandler(accounts_path, sessions=None, single_login=True)`
  turns a request line into a `StatusCode` through `handle()`, with
  `login()`, `logout()`, `post_article()` and `disconnect()` underneath;
  `verify_account(path, account)` looks a name up in an accounts file.
- `bulletin_tcp.sessions.SessionStore` is a thread-safe registry of
  `Session` records with `add`, `find_by_username`, `find_by_socket`,
  `remove`, `clear` and `format_table`.
- `bulletin_tcp.server.ThreadedServer` and `SelectServer` take a port, a
  handler and an optional host, and offer `serve_forever()` and
  `shutdown()`.

The framing helpers `encode_frame`, `decode_length`, `send_message`,
`recv_message` and `status_text` live in `bulletin_tcp.protocol`; a
malformed frame raises `ProtocolError` and a closed peer raises
`ConnectionClosed`.

## What it does not do

Posted articles are not stored or passed on to other clients: the server
only logs them and replies with code 120. Accounts are read from the file
on every login; there is no way to register or change an account through
the service.