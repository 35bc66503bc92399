import logging
import sys

from rich.logging import RichHandler
from rich.pretty import pprint

from bindery import *

__prog__ = "serve"


class Server:
    host: str = Argument("host", "H", default="localhost", help="address to listen on")
    port: int = Argument("port", "p", default="8080", help="port to listen on")
    debug: bool = Argument("debug", "d", default="no", help="enable debug logging")


if __name__ == '__main__':
    logging.basicConfig(level=logging.DEBUG, format="%(message)s", handlers=[RichHandler(show_path=False)])
    context = Context(Registry(Server), shell=True, fancy=True, prog=__prog__)
    server = context.register(Server())
    if not context.initialize(sys.argv[1:], ("--", "-"), "help"):
        pprint(vars(server))
