import logging

import uvicorn

from kiteadmin.app import create_app
from kiteadmin.config import get_settings

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Cria a instância principal do FastAPI
app = create_app(settings)

if __name__ == "__main__":
    # Atrás do proxy (Render) o esquema https vem em X-Forwarded-Proto
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
