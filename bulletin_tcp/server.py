"""TCP servers for the bulletin service: thread-per-client and select-based."""

from __future__ import annotations

import argparse
import logging
import selectors
import socket
import sys
import threading

from .handlers import DEFAULT_ACCOUNTS_PATH, RequestHandler
from .protocol import (
    ConnectionClosed,
    ProtocolError,
    StatusCode,
    recv_message,
    send_message,
)

__all__ = ["ThreadedServer", "SelectServer", "main"]

logger = logging.getLogger(__name__)

_BACKLOG = 5
_POLL_INTERVAL = 0.1


class _BaseServer:
    def __init__(self, port: int, handler: RequestHandler, host: str = "") -> None:
        self.handler = handler
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.bind((host, port))
            listener.listen(_BACKLOG)
        except OSError:
            listener.close()
            raise
        self._listener = listener
        self.address: tuple[str, int] = listener.getsockname()[:2]
        self._stopped = threading.Event()

    def _greet(self, conn: socket.socket, client_id: int) -> None:
        logger.info("Client %d request connect", client_id)
        self._reply(conn, client_id, StatusCode.CONNECTED_SUCCESSFULLY)

    def _reply(self, conn: socket.socket, client_id: int, code: StatusCode) -> None:
        try:
            send_message(conn, code)
        except OSError as exc:
            logger.error("Send message failed: %s", exc)
        else:
            logger.info("Send to client %d: %d", client_id, code)

    def _serve_one(self, conn: socket.socket, client_id: int) -> bool:
        """Handle one request; return False once the connection is finished."""
        try:
            message = recv_message(conn)
        except ConnectionClosed:
            logger.info("Client %d disconnect", client_id)
            return False
        except ProtocolError as exc:
            logger.error("Disconnecting client %d: %s", client_id, exc)
            return False
        except OSError as exc:
            logger.error("Error receiving data from client %d: %s", client_id, exc)
            return False
        logger.info("Recv from client %d: %s", client_id, message)
        self._reply(conn, client_id, self.handler.handle(client_id, message))
        return True


class ThreadedServer(_BaseServer):
    """Serves each client on its own thread."""

    def __init__(self, port: int, handler: RequestHandler, host: str = "") -> None:
        super().__init__(port, handler, host)
        self._clients: set[socket.socket] = set()
        self._clients_lock = threading.Lock()

    def serve_forever(self) -> None:
        """Accept clients until shutdown() is called."""
        self._listener.settimeout(_POLL_INTERVAL)
        try:
            while not self._stopped.is_set():
                try:
                    conn, _ = self._listener.accept()
                except socket.timeout:
                    continue
                except OSError as exc:
                    if self._stopped.is_set():
                        break
                    logger.error("Error accepting connection: %s", exc)
                    continue
                conn.settimeout(None)
                worker = threading.Thread(
                    target=self._handle_client, args=(conn,), daemon=True
                )
                worker.start()
        finally:
            self._listener.close()

    def _handle_client(self, conn: socket.socket) -> None:
        client_id = conn.fileno()
        with self._clients_lock:
            self._clients.add(conn)
        try:
            self._greet(conn, client_id)
            while self._serve_one(conn, client_id):
                pass
        finally:
            self.handler.disconnect(client_id)
            with self._clients_lock:
                self._clients.discard(conn)
            conn.close()

    def shutdown(self) -> None:
        """Stop accepting clients and drop the connected ones."""
        self._stopped.set()
        with self._clients_lock:
            clients = list(self._clients)
        for conn in clients:
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass


class SelectServer(_BaseServer):
    """Serves all clients from one thread, multiplexed with a selector."""

    def __init__(self, port: int, handler: RequestHandler, host: str = "") -> None:
        super().__init__(port, handler, host)

    def serve_forever(self) -> None:
        """Accept and serve clients until shutdown() is called."""
        selector = selectors.DefaultSelector()
        selector.register(self._listener, selectors.EVENT_READ, None)
        try:
            while not self._stopped.is_set():
                for key, _ in selector.select(timeout=_POLL_INTERVAL):
                    if key.data is None:
                        self._accept(selector)
                    else:
                        self._service(selector, key.fileobj, key.data)
        finally:
            for key in list(selector.get_map().values()):
                if key.data is not None:
                    self.handler.disconnect(key.data)
                    key.fileobj.close()
            selector.close()
            self._listener.close()

    def _accept(self, selector: selectors.BaseSelector) -> None:
        try:
            conn, _ = self._listener.accept()
        except OSError as exc:
            logger.error("Error accepting connection: %s", exc)
            return
        conn.setblocking(True)
        client_id = conn.fileno()
        self._greet(conn, client_id)
        selector.register(conn, selectors.EVENT_READ, client_id)

    def _service(
        self, selector: selectors.BaseSelector, conn: socket.socket, client_id: int
    ) -> None:
        if self._serve_one(conn, client_id):
            return
        self.handler.disconnect(client_id)
        selector.unregister(conn)
        conn.close()

    def shutdown(self) -> None:
        """Stop the serving loop; it closes every connection on its way out."""
        self._stopped.set()


def main(argv: list[str] | None = None) -> int:
    """Run the bulletin server from the command line."""
    parser = argparse.ArgumentParser(
        prog="bulletin-server", description="Serve the bulletin protocol over TCP."
    )
    parser.add_argument("port", type=int, help="port number to listen on")
    parser.add_argument(
        "--mode",
        choices=("thread", "select"),
        default="thread",
        help="thread per client (single login per account) or select loop",
    )
    parser.add_argument(
        "--accounts", default=DEFAULT_ACCOUNTS_PATH, help="accounts file"
    )
    parser.add_argument("--host", default="", help="address to bind")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    handler = RequestHandler(args.accounts, single_login=args.mode == "thread")
    server_cls = ThreadedServer if args.mode == "thread" else SelectServer
    try:
        server = server_cls(args.port, handler, args.host)
    except OSError as exc:
        print(f"Error binding: {exc}", file=sys.stderr)
        return 1

    logger.info("Server is listening on port %d", server.address[1])
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        server.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())