import uvicorn

from contractor_api.core.config import get_settings


def main():
    settings = get_settings()
    uvicorn.run("contractor_api.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
