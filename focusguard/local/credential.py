import os
import hmac
import hashlib
import logging
from pathlib import Path

from focusguard import settings
from focusguard.local.errors import AlreadyInitialized, ConfirmationMismatch, CredentialMismatch, NoCredential, SetupConflict

log = logging.getLogger(__name__)


class CredentialGate:
    """
    Stores a single unsalted SHA-256 digest of the admin password and checks
    candidate passwords against it.
    """

    def __init__(self, path: Path, mode: int = settings.CREDENTIAL_MODE):
        self.path = Path(path)
        self.mode = mode

    @staticmethod
    def digest(secret: str) -> str:
        return hashlib.sha256(secret.encode("utf-8")).hexdigest()

    def exists(self) -> bool:
        return self.path.exists()

    def initialize(self, secret: str, confirmation: str) -> None:
        """
        Stores the digest of a new password. Only valid on first run.

        :raises AlreadyInitialized: a credential file already exists.
        :raises ConfirmationMismatch: the two entries differ.
        :raises SetupConflict: the password is empty.
        """
        if self.exists():
            raise AlreadyInitialized()
        if secret != confirmation:
            raise ConfirmationMismatch()
        if not secret:
            raise SetupConflict("The password must not be empty.")

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(self.digest(secret) + "\n")
        os.chmod(self.path, self.mode)
        log.info(f"Credential stored at '{self.path}'.")

    def verify(self, secret: str) -> None:
        """
        Checks a candidate password. Returns None on success.

        :raises NoCredential: no credential file exists.
        :raises CredentialMismatch: the digest does not match.
        """
        try:
            stored = self.path.read_text().strip()
        except FileNotFoundError:
            raise NoCredential() from None
        if not hmac.compare_digest(stored.encode("ascii", "replace"), self.digest(secret).encode("ascii")):
            log.warning("Password verification failed.")
            raise CredentialMismatch()
        log.debug("Password verified.")
