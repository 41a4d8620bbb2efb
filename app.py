"""
Entrypoint for the webhook gateway.
Run locally: python app.py or uvicorn jellyzap.api.app:create_app --factory --port 3000
"""
import uvicorn

from jellyzap.config.loader import load_config
from jellyzap.utils.logging_config import configure_logging

if __name__ == "__main__":
    config = load_config()
    configure_logging(config.logging)
    uvicorn.run(
        "jellyzap.api.app:create_app",
        factory=True,
        host=config.gateway.host,
        port=config.gateway.port,
    )
