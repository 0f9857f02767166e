"""
Self-signed certificate provisioning for the HTTPS listener.

The key pair lives in memory; uvicorn only accepts file paths, so
write_credentials() drops both PEMs into a private temporary directory
that is removed again when the process exits.
"""

from __future__ import annotations

import atexit
import ipaddress
import logging
import os
import shutil
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Tuple

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

logger = logging.getLogger(__name__)

KEY_SIZE = 2048
VALID_DAYS = 365
DNS_NAMES = ("localhost", "*.localhost")
IP_ADDRESSES = ("127.0.0.1", "0.0.0.0")


def generate_self_signed(common_name: str = "localhost") -> Tuple[bytes, bytes]:
    """Returns (key_pem, cert_pem)."""
    logger.info("Generating self-signed SSL certificate in-memory...")

    key = rsa.generate_private_key(public_exponent=65537, key_size=KEY_SIZE)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(timezone.utc)

    alt_names = [x509.DNSName(n) for n in DNS_NAMES]
    alt_names += [x509.IPAddress(ipaddress.ip_address(ip)) for ip in IP_ADDRESSES]

    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + timedelta(days=VALID_DAYS))
        .add_extension(x509.SubjectAlternativeName(alt_names), critical=False)
        .sign(key, hashes.SHA256())
    )

    key_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )
    cert_pem = cert.public_bytes(serialization.Encoding.PEM)

    logger.info("SSL certificate generated in-memory.")
    return key_pem, cert_pem


def write_credentials(key_pem: bytes, cert_pem: bytes) -> Tuple[str, str]:
    """Returns (keyfile, certfile) paths inside a fresh 0700 temp directory."""
    tmp = Path(tempfile.mkdtemp(prefix="chatrelay-tls-"))
    atexit.register(shutil.rmtree, str(tmp), ignore_errors=True)
    key_path = tmp / "key.pem"
    cert_path = tmp / "cert.pem"

    key_path.write_bytes(key_pem)
    os.chmod(key_path, 0o600)
    cert_path.write_bytes(cert_pem)

    return str(key_path), str(cert_path)
