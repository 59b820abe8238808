"""AES helpers and key cache for sites that ship chapter bodies encrypted."""

from __future__ import annotations

import base64
import binascii

from Crypto.Cipher import AES
from Crypto.Util.Padding import pad, unpad

from readstory.utils.async_primitives import LoopBoundRWLock
from readstory.utils.logger import logger


class KeyCache:
    """Single-cell store for the most recently discovered decryption key.

    Reads take the shared side of the lock so many chapter fetches can consult
    the key at once; :meth:`replace` takes the exclusive side. Concurrent
    refreshes simply race and the last writer wins. The value never expires.
    """

    def __init__(self, initial: str | None = None) -> None:
        self._value = initial
        self._lock = LoopBoundRWLock()

    async def read(self) -> str | None:
        async with self._lock.read():
            return self._value

    async def replace(self, value: str) -> None:
        async with self._lock.write():
            self._value = value


def _key_bytes(key: str) -> bytes:
    return key.encode("utf-8")


def decrypt_content(cipher_text: str, key: str) -> str:
    """Decrypt base64 AES-128-CBC content where the key doubles as the IV.

    Returns an empty string on any failure (empty input, bad base64, wrong key
    length, bad padding). An empty result is indistinguishable from an empty
    chapter, so callers should log it.
    """

    if not cipher_text:
        return ""

    try:
        cipher_bytes = base64.b64decode(cipher_text, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("[crypto] Encrypted content is not valid base64")
        return ""

    if not cipher_bytes:
        return ""

    key_bytes = _key_bytes(key)
    try:
        cipher = AES.new(key_bytes, AES.MODE_CBC, iv=key_bytes)
        decrypted = unpad(cipher.decrypt(cipher_bytes), AES.block_size, style="pkcs7")
    except ValueError as exc:
        logger.warning(f"[crypto] AES decryption failed: {exc}")
        return ""
    return decrypted.decode("utf-8", errors="replace")


def encrypt_content(plain_text: str, key: str) -> str:
    """Inverse of :func:`decrypt_content`; produces base64 ciphertext."""

    key_bytes = _key_bytes(key)
    cipher = AES.new(key_bytes, AES.MODE_CBC, iv=key_bytes)
    encrypted = cipher.encrypt(pad(plain_text.encode("utf-8"), AES.block_size, style="pkcs7"))
    return base64.b64encode(encrypted).decode("ascii")


def key_from_char_codes(codes: list[int]) -> str:
    """Rebuild the key from the char-code array embedded (reversed) in the bundle."""

    return "".join(chr(code) for code in reversed(codes))
