"""
Secret Store Gate

First stage of every run: the vault file and its password file must exist
and the vault must decrypt. Decrypted values stay in memory.
"""

from pathlib import Path
from typing import Any, Dict

import yaml
from ansible.constants import DEFAULT_VAULT_ID_MATCH
from ansible.errors import AnsibleError
from ansible.parsing.vault import VaultLib, VaultSecret, is_encrypted

from staticdeploy.constants import HINT_SETUP_ENV, HINT_VAULT_SETUP
from staticdeploy.exceptions import ConfigMissing, DecryptionError
from staticdeploy.models.config import ProjectPaths
from staticdeploy.models.secrets import SecretBundle


def read_password(password_path: Path) -> bytes:
    """Vault password as bytes (trailing newline stripped like ansible-vault does)."""
    return password_path.read_bytes().strip()


def vault_for(password: bytes) -> VaultLib:
    """Build a VaultLib holding a single default-id secret."""
    return VaultLib([(DEFAULT_VAULT_ID_MATCH, VaultSecret(password))])


def decrypt_vault(vault_path: Path, password: bytes) -> Dict[str, Any]:
    """
    Decrypt a vault file and parse its YAML mapping.

    Raises:
        DecryptionError: Not encrypted, wrong password, corrupted, or not a mapping
    """
    ciphertext = vault_path.read_bytes()
    if not is_encrypted(ciphertext):
        raise DecryptionError(
            f"Vault file is not encrypted: {vault_path}",
            context=f"Encrypt it with: ansible-vault encrypt {vault_path}",
        )

    try:
        plaintext = vault_for(password).decrypt(ciphertext)
    except (AnsibleError, ValueError) as e:
        # Only the exception type is surfaced; vault messages can echo input
        raise DecryptionError(
            f"Vault file could not be decrypted: {vault_path}",
            context=f"Password is incorrect or ciphertext is corrupted ({type(e).__name__})",
        ) from None

    try:
        data = yaml.safe_load(plaintext)
    except yaml.YAMLError:
        raise DecryptionError(
            f"Decrypted vault is not valid YAML: {vault_path}"
        ) from None

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise DecryptionError(
            f"Decrypted vault must be a key/value mapping: {vault_path}",
            context=f"Got {type(data).__name__}",
        )
    return data


class SecretGate:
    """
    Trust boundary for secret material.

    Checks, in order: env file, vault file, password file, decryption.
    Nothing here touches the network or the target host.
    """

    def __init__(self, paths: ProjectPaths):
        self.paths = paths

    def check_files(self) -> None:
        """
        Verify every required file exists.

        Raises:
            ConfigMissing: For the first missing file
        """
        if not self.paths.env_file.is_file():
            raise ConfigMissing(self.paths.env_file, hint=HINT_SETUP_ENV)
        if not self.paths.vault_file.is_file():
            raise ConfigMissing(self.paths.vault_file, hint=HINT_SETUP_ENV)
        if not self.paths.vault_pass_file.is_file():
            raise ConfigMissing(self.paths.vault_pass_file, hint=HINT_VAULT_SETUP)

    def open(self) -> SecretBundle:
        """
        Verify files and decrypt the vault.

        Returns:
            SecretBundle with decrypted values (memory only)

        Raises:
            ConfigMissing: A required file does not exist
            DecryptionError: The vault does not decrypt to a mapping
        """
        self.check_files()
        password = read_password(self.paths.vault_pass_file)
        if not password:
            raise DecryptionError(
                f"Vault password file is empty: {self.paths.vault_pass_file}",
                context=HINT_VAULT_SETUP,
            )
        values = decrypt_vault(self.paths.vault_file, password)
        return SecretBundle(
            vault_path=self.paths.vault_file,
            password_path=self.paths.vault_pass_file,
            values=values,
        )

    def is_encrypted(self) -> bool:
        """True if the vault file exists and carries the vault header."""
        vault = self.paths.vault_file
        return vault.is_file() and is_encrypted(vault.read_bytes())
