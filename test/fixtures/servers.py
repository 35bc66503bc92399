from bindery import Argument


class Listener:
    address: str = Argument("address", "a", default="0.0.0.0", help="bind address")


class HttpListener(Listener):
    timeout: float = Argument("timeout", default="2.5")


class Ignored:
    address = "not an argument"
