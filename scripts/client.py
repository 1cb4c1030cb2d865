#!/usr/bin/env python3
"""
Interactive Test Client for RESP-KV

A simple command-line client for manually testing the RESP-KV server.
Each line typed is split on whitespace and sent as a RESP array.

Usage:
    python scripts/client.py                  # Connect to localhost:6379
    python scripts/client.py --host 1.2.3.4   # Connect to specific host
    python scripts/client.py --port 6380      # Connect to specific port

Commands:
    PING                      - Connectivity check
    ECHO <message>            - Echo a message back
    SET <key> <value> [PX ms] - Store a key-value pair
    GET <key>                 - Retrieve a value
    help                      - Show this help
    exit                      - Exit client
"""

import argparse
import os
import socket
import sys

# Enable command history with arrow keys (works on Unix systems)
try:
    import readline  # noqa: F401
except ImportError:
    pass  # readline not available on Windows by default

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from respkv.client import ReplyError, RespClient  # noqa: E402


def format_reply(reply) -> str:
    """Render a reply the way redis-cli does."""
    if reply is None:
        return "(nil)"
    return f'"{reply}"'


def print_help():
    """Print help message."""
    print("""
RESP-KV Commands:
-----------------
  PING                        Check the connection (replies PONG)
  ECHO <message>              Echo a message back
  SET <key> <value> [PX ms]   Store a key-value pair (optional expiry in ms)
  GET <key>                   Retrieve the value for a key

Client Commands:
----------------
  help                        Show this help message
  exit                        Exit the client
  reconnect                   Reconnect to the server
  status                      Show connection status

Examples:
---------
  SET mykey myvalue           Store "myvalue" under "mykey"
  SET tempkey tempval PX 500  Store with a 500 millisecond expiry
  GET mykey                   Get value for "mykey"
""")


def main():
    parser = argparse.ArgumentParser(
        description="Interactive test client for RESP-KV"
    )
    parser.add_argument(
        "--host",
        type=str,
        default="localhost",
        help="Server host (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=6379,
        help="Server port (default: 6379)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=2.0,
        help="Socket timeout in seconds (default: 2.0)"
    )

    args = parser.parse_args()

    print("RESP-KV Client")
    print("==============")
    print(f"Connecting to {args.host}:{args.port}...")

    client = RespClient(args.host, args.port, args.timeout)

    try:
        client.connect()
    except OSError as e:
        print(f"Connection error: {e}")
        print("Failed to connect. Is the server running?")
        print(f"  Try: python -m respkv.server --port {args.port}")
        sys.exit(1)

    print("Connected! Type 'help' for commands.\n")

    try:
        while True:
            try:
                command = input(">>> ").strip()

                if not command:
                    continue

                lower_cmd = command.lower()

                if lower_cmd == "help":
                    print_help()
                    continue

                if lower_cmd in ("exit", "quit"):
                    print("Goodbye!")
                    break

                if lower_cmd == "reconnect":
                    client.close()
                    try:
                        client.connect()
                        print("Reconnected!")
                    except OSError:
                        print("Reconnection failed.")
                    continue

                if lower_cmd == "status":
                    status = "Connected" if client.socket else "Disconnected"
                    print(f"Status: {status}")
                    print(f"Server: {args.host}:{args.port}")
                    continue

                try:
                    print(format_reply(client.execute(*command.split())))
                except ReplyError as e:
                    print(f"(error) {e}")
                except socket.timeout:
                    # Invalid commands get no reply unless the server runs --strict
                    print("(no reply)")
                except ConnectionError as e:
                    print(f"ERROR: {e}")
                    client.close()

            except EOFError:
                print("\nGoodbye!")
                break

    except KeyboardInterrupt:
        print("\n\nInterrupted. Goodbye!")
    finally:
        client.close()


if __name__ == "__main__":
    main()
