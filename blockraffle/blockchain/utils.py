import os
import logging
from typing import Optional

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Ensure environment variables from .env are loaded when this module is imported.
load_dotenv()

MACAROON_HEADER = "Grpc-Metadata-macaroon"


def load_macaroon(path: str) -> str:
    """Read a binary macaroon file and return it hex encoded.

    Raises
    ------
    RuntimeError
        If the file cannot be read. The macaroon itself is never logged.
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise RuntimeError(f"Could not read macaroon file {path}: {e}") from e
    if not data:
        raise RuntimeError(f"Macaroon file {path} is empty")
    logger.debug("Macaroon loaded (content redacted)")
    return data.hex()


def open_session(
    macaroon_path: Optional[str] = None,
    tls_cert_path: Optional[str] = None,
) -> requests.Session:
    """Open a requests session authenticated against the LND REST API.

    Parameters
    ----------
    macaroon_path : Optional[str]
        Macaroon file; falls back to ``LND_MACAROON_PATH``. Without one the
        session is unauthenticated, which only works for nodes started with
        ``--no-macaroons``.
    tls_cert_path : Optional[str]
        Certificate used to verify the node; falls back to
        ``LND_TLS_CERT_PATH`` and then to the system CA bundle.
    """
    macaroon_path = macaroon_path or os.environ.get("LND_MACAROON_PATH")
    tls_cert_path = tls_cert_path or os.environ.get("LND_TLS_CERT_PATH")

    session = requests.Session()
    if macaroon_path:
        session.headers[MACAROON_HEADER] = load_macaroon(macaroon_path)
    else:
        logger.warning("No macaroon configured, LND requests are unauthenticated")
    if tls_cert_path:
        session.verify = tls_cert_path
    return session
