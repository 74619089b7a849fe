"""Run the API with ``python -m readmegen``."""

import uvicorn

from readmegen.main import create_app
from readmegen.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
