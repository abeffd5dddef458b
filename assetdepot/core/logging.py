import logging
from .config import settings

def setup_logging():
    level = logging.DEBUG if settings.ENV == "local" else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s",
    )
    # boto and httpx are chatty at DEBUG
    for noisy in ("botocore", "boto3", "s3transfer", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
