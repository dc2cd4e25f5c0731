import hashlib
import stat

import pytest

from focusguard.local.credential import CredentialGate
from focusguard.local.errors import AlreadyInitialized, ConfirmationMismatch, CredentialMismatch, NoCredential, SetupConflict


def test_initialize_stores_digest_with_restrictive_mode(tmp_path):
    gate = CredentialGate(tmp_path / "home" / ".credential")
    gate.initialize("abc", "abc")

    assert gate.path.read_text().strip() == hashlib.sha256(b"abc").hexdigest()
    assert stat.S_IMODE(gate.path.stat().st_mode) == 0o400
    assert "abc" not in gate.path.read_text()


def test_initialize_refuses_existing_credential(tmp_path):
    gate = CredentialGate(tmp_path / ".credential")
    gate.initialize("abc", "abc")
    with pytest.raises(AlreadyInitialized):
        gate.initialize("other", "other")
    gate.verify("abc")


def test_initialize_requires_matching_confirmation(tmp_path):
    gate = CredentialGate(tmp_path / ".credential")
    with pytest.raises(ConfirmationMismatch):
        gate.initialize("abc", "abd")
    assert not gate.exists()


def test_initialize_rejects_empty_password(tmp_path):
    gate = CredentialGate(tmp_path / ".credential")
    with pytest.raises(SetupConflict):
        gate.initialize("", "")
    assert not gate.exists()


def test_verify_accepts_correct_password(tmp_path):
    gate = CredentialGate(tmp_path / ".credential")
    gate.initialize("abc", "abc")
    assert gate.verify("abc") is None


@pytest.mark.parametrize("candidate", ["", "abd", "ab", "abc ", "ABC"])
def test_verify_rejects_wrong_password(tmp_path, candidate):
    gate = CredentialGate(tmp_path / ".credential")
    gate.initialize("abc", "abc")
    with pytest.raises(CredentialMismatch):
        gate.verify(candidate)


def test_verify_without_credential(tmp_path):
    gate = CredentialGate(tmp_path / ".credential")
    with pytest.raises(NoCredential):
        gate.verify("abc")
