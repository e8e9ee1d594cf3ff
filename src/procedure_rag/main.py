"""Entrypoint: run the procedure RAG server."""

import uvicorn

from procedure_rag.api.app import create_app
from procedure_rag.config.settings import Settings


def main() -> None:
    settings = Settings()
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
