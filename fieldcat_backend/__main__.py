"""
Run the catalog HTTP service: `python -m fieldcat_backend`.
"""
from aiohttp import web

from .config import _env_int, _env_raw
from .routes import create_app


def main() -> None:
    host = _env_raw("FIELDCAT_HOST", default="127.0.0.1")
    port = _env_int(8188, "FIELDCAT_PORT", min_value=1, max_value=65535)
    web.run_app(create_app(), host=host, port=port)


if __name__ == "__main__":
    main()
