from restaurant_ops.config import get_settings
from restaurant_ops.server import initialize


def main() -> None:
    app = initialize()
    settings = get_settings()

    if settings.mcp_transport == "streamable-http":
        app.run(
            transport="streamable-http",
            host=settings.mcp_host,
            port=settings.mcp_port,
        )
    else:
        app.run()


if __name__ == "__main__":  # pragma: no cover
    main()
