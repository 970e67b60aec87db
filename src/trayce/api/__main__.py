import logging
import os

from trayce.api.http_server import create_server


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("TRAYCE_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    port = int(os.environ.get("TRAYCE_PORT", "8000"))
    server = create_server(host="127.0.0.1", port=port)
    print(f"trayce API listening on http://127.0.0.1:{port}")
    server.serve_forever()


if __name__ == "__main__":
    main()
