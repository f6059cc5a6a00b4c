import asyncio

import uvicorn

from api.app import create_app
from configs.env_config import Env
from configs.settings import BridgeSettings
from utils.logger_factory import EnhancedLoggerFactory, log_exception


async def main():
    boot_logger = EnhancedLoggerFactory.create_application_logger(
        name="bootstrap", enable_stdout=True, log_dir=None
    )
    await boot_logger.start()

    try:
        Env.validate()
        settings = BridgeSettings.from_env()
        app = create_app(settings)

        ssl_options = {}
        if settings.ssl_enabled:
            ssl_options = {"ssl_keyfile": settings.ssl_key_path, "ssl_certfile": settings.ssl_cert_path}
        config = uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            log_level="warning",
            access_log=False,
            **ssl_options,
        )
        scheme = "https" if settings.ssl_enabled else "http"
        boot_logger.info(f"Metrics bridge listening on {scheme}://{settings.host}:{settings.port}")
        boot_logger.info(f"WebSocket endpoint {settings.ws_path}")
        await uvicorn.Server(config).serve()
    except Exception as e:
        log_exception(boot_logger, e, context="bootstrap")
        raise
    finally:
        try:
            await boot_logger.shutdown()
        except Exception as e:
            log_exception(boot_logger, e, context="main_final_shutdown")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
