"""External HTTP(S) checks against the public domain."""

import socket
import ssl
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import requests

from staticdeploy.constants import HTTP_PROBE_TIMEOUT, REDIRECT_STATUS_CODES


@dataclass
class RedirectCheck:
    """Answer of the plain-HTTP endpoint."""

    status_code: Optional[int]
    location: Optional[str] = None
    error: Optional[str] = None

    @property
    def redirects_to_https(self) -> bool:
        return (
            self.status_code in REDIRECT_STATUS_CODES
            and bool(self.location)
            and self.location.startswith("https://")
        )


@dataclass
class CertificateInfo:
    """Certificate served on port 443."""

    hostname: str
    valid: bool
    issuer: Optional[str] = None
    subject: Optional[str] = None
    expires: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def days_remaining(self) -> Optional[int]:
        if self.expires is None:
            return None
        return (self.expires - datetime.now(timezone.utc)).days


def _name_from_rdns(rdns) -> Optional[str]:
    """Pick the common/organization name out of a getpeercert() RDN sequence."""
    fields = {key: value for rdn in rdns or () for key, value in rdn}
    return fields.get("commonName") or fields.get("organizationName")


class HttpsChecker:
    """Checks the HTTP→HTTPS redirect and the certificate of a domain."""

    def __init__(self, timeout: int = HTTP_PROBE_TIMEOUT):
        self.timeout = timeout

    def check_redirect(self, domain: str) -> RedirectCheck:
        """GET http://<domain>/ without following redirects."""
        try:
            response = requests.get(
                f"http://{domain}/", allow_redirects=False, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            return RedirectCheck(status_code=None, error=str(e))
        return RedirectCheck(
            status_code=response.status_code,
            location=response.headers.get("Location"),
        )

    def fetch(self, domain: str) -> requests.Response:
        """GET https://<domain>/ with certificate verification."""
        return requests.get(f"https://{domain}/", timeout=self.timeout)

    def check_certificate(self, hostname: str, port: int = 443) -> CertificateInfo:
        """
        Open a verified TLS connection and read the peer certificate.

        Verification failures (self-signed, Traefik default cert, hostname
        mismatch, expired) are reported as invalid with the SSL error text.
        """
        context = ssl.create_default_context()
        try:
            with socket.create_connection((hostname, port), timeout=self.timeout) as sock:
                with context.wrap_socket(sock, server_hostname=hostname) as ssock:
                    cert = ssock.getpeercert()
        except ssl.SSLCertVerificationError as e:
            return CertificateInfo(hostname=hostname, valid=False, error=e.verify_message or str(e))
        except (ssl.SSLError, OSError) as e:
            return CertificateInfo(hostname=hostname, valid=False, error=str(e))

        expires = None
        if cert.get("notAfter"):
            expires = datetime.fromtimestamp(
                ssl.cert_time_to_seconds(cert["notAfter"]), tz=timezone.utc
            )

        return CertificateInfo(
            hostname=hostname,
            valid=True,
            issuer=_name_from_rdns(cert.get("issuer")),
            subject=_name_from_rdns(cert.get("subject")),
            expires=expires,
        )
