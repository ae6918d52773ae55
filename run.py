import uvicorn

from vtype.core.config import settings


def run_app(reload_mode: bool = False):
    """
    Run the FastAPI application with configurable reload mode.

    Args:
        reload_mode: Whether to run with auto-reload enabled
    """
    config = {
        "app": settings.APP_IMPORT,
        "host": settings.HOST,
        "port": settings.PORT,
        "log_level": settings.LOG_LEVEL.lower(),
        "workers": 1
    }

    if reload_mode:
        config["reload"] = True

    uvicorn.run(**config)

if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--no-reload",
        action="store_true",
        help="Disable auto-reload"
    )
    args = parser.parse_args()

    run_app(reload_mode=not args.no_reload)
