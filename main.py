from rich.pretty import pprint

from halyard import *


@command
class Serve:
    """Start the server."""
    port: int = Option("-p", env="PORT", default=8080, descr="port to bind")
    debug = Flag("-d", descr="log requests")
    paths = Cardinal("PATH")

    def run(self, context):
        pprint(vars(self))


if __name__ == '__main__':
    pprint(Serve)
    invoke(Serve)
