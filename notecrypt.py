"""
NoteCrypt Decryption Engine
===========================

Reads files written by the NotepadCrypt note encryptor:

- SHA-256 (implemented here) turns the passphrase into an AES-256 key
- AES (implemented here, decryption direction only) in CBC mode
- Optional master key: a second passphrase unwraps the real file key
- PKCS#7-style padding check on the final block

No third-party code is used on the decryption path. The ciphers are plain
Python so the format stays readable even where no crypto library exists.

File layout
-----------
::

    [HEADER]
      0-3    Magic       0x04030201 (big-endian)
      4-7    Format tag  0x01000000 = no master key
                         0x02000000 = has master key
      8-23   IV          CBC IV for the body

    [MASTER KEY SECTION — format tag 0x02000000 only]
      24-39  Master IV   CBC IV for the wrapped key
      40-71  File key    AES-256-CBC(SHA-256(master passphrase)) of the key
                         that decrypts the body

    [BODY — offset 24, or 72 with a master key]
      AES-256-CBC ciphertext, length a multiple of 16, PKCS#7 padded

    A zero-length file is valid and decrypts to zero bytes.

The same master-key file can also be opened with the ordinary passphrase:
the master section is then ignored and the body is decrypted with
SHA-256(passphrase) directly.
"""

from __future__ import annotations

import logging
import os
import struct
import tempfile
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Optional, Tuple, Union

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MAGIC: int = 0x04030201

BLOCK_SIZE: int = 16         # AES block length
IV_SIZE: int = 16
FILE_KEY_SIZE: int = 32      # wrapped AES-256 file key
DIGEST_SIZE: int = 32        # SHA-256 output

IV_OFFSET: int = 8
MASTER_IV_OFFSET: int = 24
FILE_KEY_OFFSET: int = 40
PLAIN_BODY_OFFSET: int = 24  # body offset without a master key
MASTER_BODY_OFFSET: int = 72  # body offset with a master key

_MASK32: int = 0xFFFFFFFF


class FormatTag(IntEnum):
    NO_MASTER_KEY = 0x01000000
    HAS_MASTER_KEY = 0x02000000


class KeyPath(IntEnum):
    """How the body key was obtained."""

    DIRECT = 1  # SHA-256 of the passphrase
    MASTER = 2  # file key unwrapped with the master passphrase


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class NoteCryptError(Exception):
    """Base exception for all NoteCrypt errors."""


class FormatError(NoteCryptError):
    """Input data does not have the expected layout."""


class DecryptionError(NoteCryptError):
    """Wrong passphrase or corrupted ciphertext."""


class UnsupportedFileFormatError(FormatError):
    """Magic number mismatch."""


class UnsupportedEncryptionFormatError(FormatError):
    """Unrecognised format tag."""


class NoMasterKeyPresentError(FormatError):
    """Master-key mode requested on a file that has no master key."""


class InvalidLengthError(FormatError):
    """Ciphertext or IV is not a multiple of the block size, or the header is truncated."""


class InvalidKeyLengthError(NoteCryptError):
    """Key material is not 16, 24 or 32 bytes."""


class BadPaddingOrKeyError(DecryptionError):
    """Padding check failed: the passphrase is wrong or the data is corrupt."""


# ---------------------------------------------------------------------------
# SHA-256
# ---------------------------------------------------------------------------

_SHA256_K: Tuple[int, ...] = (
    0x428A2F98, 0x71374491, 0xB5C0FBCF, 0xE9B5DBA5, 0x3956C25B, 0x59F111F1, 0x923F82A4, 0xAB1C5ED5,
    0xD807AA98, 0x12835B01, 0x243185BE, 0x550C7DC3, 0x72BE5D74, 0x80DEB1FE, 0x9BDC06A7, 0xC19BF174,
    0xE49B69C1, 0xEFBE4786, 0x0FC19DC6, 0x240CA1CC, 0x2DE92C6F, 0x4A7484AA, 0x5CB0A9DC, 0x76F988DA,
    0x983E5152, 0xA831C66D, 0xB00327C8, 0xBF597FC7, 0xC6E00BF3, 0xD5A79147, 0x06CA6351, 0x14292967,
    0x27B70A85, 0x2E1B2138, 0x4D2C6DFC, 0x53380D13, 0x650A7354, 0x766A0ABB, 0x81C2C92E, 0x92722C85,
    0xA2BFE8A1, 0xA81A664B, 0xC24B8B70, 0xC76C51A3, 0xD192E819, 0xD6990624, 0xF40E3585, 0x106AA070,
    0x19A4C116, 0x1E376C08, 0x2748774C, 0x34B0BCB5, 0x391C0CB3, 0x4ED8AA4A, 0x5B9CCA4F, 0x682E6FF3,
    0x748F82EE, 0x78A5636F, 0x84C87814, 0x8CC70208, 0x90BEFFFA, 0xA4506CEB, 0xBEF9A3F7, 0xC67178F2,
)

_SHA256_H0: Tuple[int, ...] = (
    0x6A09E667, 0xBB67AE85, 0x3C6EF372, 0xA54FF53A,
    0x510E527F, 0x9B05688C, 0x1F83D9AB, 0x5BE0CD19,
)


def _rotr32(x: int, n: int) -> int:
    return ((x >> n) | (x << (32 - n))) & _MASK32


def sha256(message: bytes) -> bytes:
    """
    Return the 32-byte SHA-256 digest of *message* (FIPS 180-4).

    Raises
    ------
    InvalidLengthError
        If the message bit length does not fit the 64-bit length field.
    """
    length = len(message)
    bit_length = length * 8
    if bit_length >> 64:
        raise InvalidLengthError("Message too large for SHA-256.")

    # 0x80 terminator + 8-byte length, rounded up to the 64-byte block size
    padded_len = (length + 1 + 8 + 63) // 64 * 64
    padded = bytearray(message)
    padded.append(0x80)
    padded.extend(bytes(padded_len - length - 9))
    padded.extend(struct.pack(">Q", bit_length))

    state = list(_SHA256_H0)
    for off in range(0, padded_len, 64):
        schedule = list(struct.unpack_from(">16I", padded, off))
        for i in range(16, 64):
            x = schedule[i - 15]
            y = schedule[i - 2]
            s0 = _rotr32(x, 7) ^ _rotr32(x, 18) ^ (x >> 3)
            s1 = _rotr32(y, 17) ^ _rotr32(y, 19) ^ (y >> 10)
            schedule.append((schedule[i - 16] + s0 + schedule[i - 7] + s1) & _MASK32)

        a, b, c, d, e, f, g, h = state
        for i in range(64):
            big_s1 = _rotr32(e, 6) ^ _rotr32(e, 11) ^ _rotr32(e, 25)
            choice = (e & f) ^ ((e ^ _MASK32) & g)
            t1 = (h + big_s1 + choice + _SHA256_K[i] + schedule[i]) & _MASK32
            big_s0 = _rotr32(a, 2) ^ _rotr32(a, 13) ^ _rotr32(a, 22)
            majority = (a & b) ^ (a & c) ^ (b & c)
            t2 = (big_s0 + majority) & _MASK32
            h = g
            g = f
            f = e
            e = (d + t1) & _MASK32
            d = c
            c = b
            b = a
            a = (t1 + t2) & _MASK32

        state = [
            (s + v) & _MASK32
            for s, v in zip(state, (a, b, c, d, e, f, g, h))
        ]

    return struct.pack(">8I", *state)


# ---------------------------------------------------------------------------
# GF(2^8) arithmetic and S-boxes
# ---------------------------------------------------------------------------


def gf_multiply(x: int, y: int) -> int:
    """Multiply two bytes in GF(2^8) modulo the AES polynomial 0x11B."""
    z = 0
    for i in range(8):
        if (y >> i) & 1:
            z ^= x
        x <<= 1
        if x & 0x100:
            x ^= 0x11B
    return z


def _gf_inverse(x: int) -> int:
    # x^254 is the multiplicative inverse; 0 maps to 0
    result = 1
    base = x
    exponent = 254
    while exponent:
        if exponent & 1:
            result = gf_multiply(result, base)
        base = gf_multiply(base, base)
        exponent >>= 1
    return result


def _rotl8(x: int, n: int) -> int:
    return ((x << n) | (x >> (8 - n))) & 0xFF


def _build_sboxes() -> Tuple[bytes, bytes]:
    """Build the AES S-box and its inverse from the affine transform."""
    sbox = bytearray(256)
    inverse = bytearray(256)
    for i in range(256):
        t = _gf_inverse(i)
        s = t ^ _rotl8(t, 1) ^ _rotl8(t, 2) ^ _rotl8(t, 3) ^ _rotl8(t, 4) ^ 0x63
        sbox[i] = s
        inverse[s] = i
    return bytes(sbox), bytes(inverse)


SBOX, SBOX_INVERSE = _build_sboxes()

# Inverse MixColumns coefficients as lookup tables
_MUL_0E = bytes(gf_multiply(i, 0x0E) for i in range(256))
_MUL_0B = bytes(gf_multiply(i, 0x0B) for i in range(256))
_MUL_0D = bytes(gf_multiply(i, 0x0D) for i in range(256))
_MUL_09 = bytes(gf_multiply(i, 0x09) for i in range(256))

# State byte (row i, column j) lives at i + 4*j; its inverse-shifted source
# is column (j - i) mod 4 of the same row.
_INV_SHIFT: Tuple[int, ...] = tuple(
    (n % 4) + ((n // 4 - n % 4) % 4) * 4 for n in range(BLOCK_SIZE)
)


# ---------------------------------------------------------------------------
# AES block cipher (decryption only)
# ---------------------------------------------------------------------------


def _sub_word(word: int) -> int:
    return (
        SBOX[(word >> 24) & 0xFF] << 24
        | SBOX[(word >> 16) & 0xFF] << 16
        | SBOX[(word >> 8) & 0xFF] << 8
        | SBOX[word & 0xFF]
    )


def _add_round_key(state: bytes, round_key: bytes) -> bytes:
    return bytes(s ^ k for s, k in zip(state, round_key))


def _inv_shift_sub(state: bytes) -> bytes:
    return bytes(SBOX_INVERSE[state[src]] for src in _INV_SHIFT)


def _inv_mix_columns(state: bytes) -> bytes:
    out = bytearray(BLOCK_SIZE)
    for col in range(0, BLOCK_SIZE, 4):
        s0, s1, s2, s3 = state[col : col + 4]
        out[col] = _MUL_0E[s0] ^ _MUL_0B[s1] ^ _MUL_0D[s2] ^ _MUL_09[s3]
        out[col + 1] = _MUL_0E[s1] ^ _MUL_0B[s2] ^ _MUL_0D[s3] ^ _MUL_09[s0]
        out[col + 2] = _MUL_0E[s2] ^ _MUL_0B[s3] ^ _MUL_0D[s0] ^ _MUL_09[s1]
        out[col + 3] = _MUL_0E[s3] ^ _MUL_0B[s0] ^ _MUL_0D[s1] ^ _MUL_09[s2]
    return bytes(out)


class AES:
    """
    AES block cipher with a 128, 192 or 256-bit key.

    Only the decryption direction is implemented. The key schedule is
    expanded once in the constructor and owned by the instance.

    Usage::

        cipher = AES(key)
        plaintext_block = cipher.decrypt_block(ciphertext_block)
    """

    __slots__ = ("rounds", "_round_keys")

    def __init__(self, key: bytes) -> None:
        if len(key) not in (16, 24, 32):
            raise InvalidKeyLengthError(
                f"AES key must be 16, 24 or 32 bytes (got {len(key)})."
            )
        nk = len(key) // 4
        rounds = max(nk, 4) + 6
        words = list(struct.unpack(f">{nk}I", key))
        rcon = 1
        for i in range(nk, 4 * (rounds + 1)):
            temp = words[i - 1]
            if i % nk == 0:
                rotated = ((temp << 8) | (temp >> 24)) & _MASK32
                temp = _sub_word(rotated) ^ (rcon << 24)
                rcon = gf_multiply(rcon, 0x02)
            elif nk > 6 and i % nk == 4:
                temp = _sub_word(temp)
            words.append(words[i - nk] ^ temp)

        self.rounds: int = rounds
        self._round_keys: Tuple[bytes, ...] = tuple(
            struct.pack(">4I", *words[r * 4 : r * 4 + 4]) for r in range(rounds + 1)
        )

    def decrypt_block(self, block: bytes) -> bytes:
        """Decrypt a single 16-byte block."""
        if len(block) != BLOCK_SIZE:
            raise InvalidLengthError(
                f"Block must be {BLOCK_SIZE} bytes (got {len(block)})."
            )
        keys = self._round_keys
        state = _inv_shift_sub(_add_round_key(block, keys[-1]))
        for rnd in range(self.rounds - 1, 0, -1):
            state = _add_round_key(state, keys[rnd])
            state = _inv_mix_columns(state)
            state = _inv_shift_sub(state)
        return _add_round_key(state, keys[0])

    def decrypt_block_into(self, buffer: bytearray, offset: int) -> None:
        """Decrypt the block at *offset* of *buffer* in place."""
        end = offset + BLOCK_SIZE
        buffer[offset:end] = self.decrypt_block(bytes(buffer[offset:end]))


# ---------------------------------------------------------------------------
# CBC mode and padding
# ---------------------------------------------------------------------------


def decrypt_cbc(buffer: bytearray, key: bytes, iv: bytes) -> None:
    """
    Decrypt *buffer* in place with AES-CBC.

    Each block is XORed with the previous block's *ciphertext* (the IV for
    the first block), so the ciphertext is copied before it is overwritten.

    Raises
    ------
    InvalidLengthError
        If the buffer is not a multiple of 16 bytes or the IV is not 16 bytes.
    InvalidKeyLengthError
        If *key* is not a valid AES key.
    """
    if not isinstance(buffer, bytearray):
        raise TypeError("CBC buffer must be a bytearray.")
    if len(buffer) % BLOCK_SIZE != 0 or len(iv) != IV_SIZE:
        raise InvalidLengthError("Message is not a multiple of the block length.")

    cipher = AES(key)
    prev_block = bytes(iv)
    for off in range(0, len(buffer), BLOCK_SIZE):
        cur_block = bytes(buffer[off : off + BLOCK_SIZE])
        cipher.decrypt_block_into(buffer, off)
        for i in range(BLOCK_SIZE):
            buffer[off + i] ^= prev_block[i]
        prev_block = cur_block


def strip_padding(buffer: bytes) -> bytes:
    """
    Validate and remove PKCS#7-style padding.

    Rejections are always correct, but garbage has roughly a 1/255 chance
    of looking validly padded, so acceptance does not prove integrity.
    """
    if not buffer:
        raise BadPaddingOrKeyError("Incorrect key or corrupt data.")
    padding = buffer[-1]
    if padding < 1 or padding > BLOCK_SIZE:
        raise BadPaddingOrKeyError("Incorrect key or corrupt data.")
    if len(buffer) < padding or any(b != padding for b in buffer[-padding:]):
        raise BadPaddingOrKeyError("Incorrect key or corrupt data.")
    return bytes(buffer[:-padding])


# ---------------------------------------------------------------------------
# Header and key resolution
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FileHeader:
    """Parsed NoteCrypt header."""

    magic: int
    format_tag: FormatTag
    init_vec: bytes
    master_iv: Optional[bytes]
    wrapped_file_key: Optional[bytes]
    body_offset: int
    body_length: int

    @property
    def has_master_key(self) -> bool:
        return self.format_tag is FormatTag.HAS_MASTER_KEY


@dataclass(frozen=True)
class FileKey:
    """The body key together with the path it was derived by."""

    path: KeyPath
    key: bytes

    def __repr__(self) -> str:
        return f"FileKey(path={self.path.name}, key=<{len(self.key)} bytes>)"


def _parse_header(data: bytes) -> FileHeader:
    """
    Validate and parse the header of a non-empty file.

    Raises
    ------
    UnsupportedFileFormatError
        Bad magic number.
    UnsupportedEncryptionFormatError
        Unknown format tag.
    InvalidLengthError
        The data ends before the header does.
    """
    if len(data) < 4:
        raise UnsupportedFileFormatError("Unsupported file format.")
    magic = struct.unpack_from(">I", data, 0)[0]
    if magic != MAGIC:
        raise UnsupportedFileFormatError(
            f"Unsupported file format (magic 0x{magic:08X})."
        )

    if len(data) < 8:
        raise UnsupportedEncryptionFormatError(
            "Unsupported encryption format (missing format tag)."
        )
    raw_tag = struct.unpack_from(">I", data, 4)[0]
    try:
        tag = FormatTag(raw_tag)
    except ValueError:
        raise UnsupportedEncryptionFormatError(
            f"Unsupported encryption format (tag 0x{raw_tag:08X})."
        ) from None

    has_master = tag is FormatTag.HAS_MASTER_KEY
    body_offset = MASTER_BODY_OFFSET if has_master else PLAIN_BODY_OFFSET
    if len(data) < body_offset:
        raise InvalidLengthError(
            f"File too short for its header ({len(data)} < {body_offset} bytes)."
        )

    return FileHeader(
        magic=magic,
        format_tag=tag,
        init_vec=bytes(data[IV_OFFSET : IV_OFFSET + IV_SIZE]),
        master_iv=bytes(data[MASTER_IV_OFFSET : MASTER_IV_OFFSET + IV_SIZE]) if has_master else None,
        wrapped_file_key=bytes(data[FILE_KEY_OFFSET : FILE_KEY_OFFSET + FILE_KEY_SIZE]) if has_master else None,
        body_offset=body_offset,
        body_length=len(data) - body_offset,
    )


def _to_passphrase_bytes(passphrase: Union[str, bytes]) -> bytes:
    # NotepadCrypt hashes the US-ASCII bytes; unmappable characters become "?"
    if isinstance(passphrase, str):
        return passphrase.encode("ascii", errors="replace")
    if isinstance(passphrase, (bytes, bytearray)):
        return bytes(passphrase)
    raise TypeError("Passphrase must be str or bytes.")


# ---------------------------------------------------------------------------
# NoteCryptDecoder
# ---------------------------------------------------------------------------


class NoteCryptDecoder:
    """
    High-level decoder for NoteCrypt files.

    All public methods are **static**; the class serves as a logical
    namespace, mirrored by the module-level functions below.
    """

    @staticmethod
    def parse_header(data: bytes) -> FileHeader:
        """
        Inspect the header of a NoteCrypt file without decrypting it.

        Raises the same format errors as :meth:`decrypt_data`.
        """
        return _parse_header(data)

    @staticmethod
    def resolve_key(
        header: FileHeader,
        passphrase: Union[str, bytes],
        use_master_key: bool = False,
    ) -> FileKey:
        """
        Derive the key that decrypts the body.

        Without *use_master_key* this is SHA-256 of the passphrase, even
        when the file carries a master key. With it, the passphrase is the
        master passphrase and its hash unwraps the stored file key.

        Raises
        ------
        NoMasterKeyPresentError
            If *use_master_key* is set but the file has no master key.
        """
        cipher_key = sha256(_to_passphrase_bytes(passphrase))
        if not use_master_key:
            return FileKey(KeyPath.DIRECT, cipher_key)
        if not header.has_master_key:
            raise NoMasterKeyPresentError(
                "Master key mode requested on file data with no master key."
            )
        file_key = bytearray(header.wrapped_file_key)
        decrypt_cbc(file_key, cipher_key, header.master_iv)
        return FileKey(KeyPath.MASTER, bytes(file_key))

    @staticmethod
    def decrypt_data(
        data: bytes,
        passphrase: Union[str, bytes],
        use_master_key: bool = False,
    ) -> bytes:
        """
        Decrypt the contents of a NoteCrypt file held in memory.

        Parameters
        ----------
        data : bytes
            The whole file.
        passphrase : str or bytes
            Passphrase (or master passphrase with *use_master_key*).
            ``str`` values are encoded US-ASCII.
        use_master_key : bool
            Unlock through the master-key section.

        Returns
        -------
        bytes
            The plaintext. An empty file yields ``b""``.

        Raises
        ------
        FormatError
            Unsupported or truncated data, or no master key present.
        BadPaddingOrKeyError
            Wrong passphrase or corrupted data.
        """
        if len(data) == 0:
            # NotepadCrypt writes an empty file for an empty note
            return b""

        header = _parse_header(data)
        logger.debug(
            "NoteCrypt header: tag=%s body=%d bytes master_key=%s",
            header.format_tag.name, header.body_length, header.has_master_key,
        )

        file_key = NoteCryptDecoder.resolve_key(header, passphrase, use_master_key)
        logger.debug("Body key resolved via %s path", file_key.path.name)

        if header.body_length % BLOCK_SIZE != 0:
            raise InvalidLengthError(
                f"Invalid file length: body of {header.body_length} bytes is not "
                f"a multiple of {BLOCK_SIZE}."
            )

        body = bytearray(data[header.body_offset :])
        decrypt_cbc(body, file_key.key, header.init_vec)
        return strip_padding(body)

    @staticmethod
    def decrypt_file(
        input_path: Union[str, Path],
        output_path: Union[str, Path],
        passphrase: Union[str, bytes],
        use_master_key: bool = False,
    ) -> None:
        """
        Decrypt *input_path* into *output_path*.

        The plaintext is written to a temporary file next to the output and
        renamed into place only after decryption succeeded, so a failure
        never leaves partial output behind.
        """
        input_path = Path(input_path)
        output_path = Path(output_path)
        data = input_path.read_bytes()
        plaintext = NoteCryptDecoder.decrypt_data(data, passphrase, use_master_key)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{output_path.name}.", suffix=".part", dir=output_path.parent
        )
        try:
            with os.fdopen(fd, "wb") as fout:
                fout.write(plaintext)
            os.replace(tmp_name, output_path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise
        logger.debug("Wrote %d plaintext bytes to %s", len(plaintext), output_path)


# ---------------------------------------------------------------------------
# Module-level convenience functions
# ---------------------------------------------------------------------------

_decoder = NoteCryptDecoder

parse_header = _decoder.parse_header
resolve_key = _decoder.resolve_key
decrypt_data = _decoder.decrypt_data
decrypt_file = _decoder.decrypt_file


# ---------------------------------------------------------------------------
# Self-test / known-answer vectors (run with: python notecrypt.py)
# ---------------------------------------------------------------------------

_SHA256_VECTORS: Tuple[Tuple[bytes, str], ...] = (
    (b"", "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"),
    (b"abc", "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"),
    (
        b"abcdbcdecdefdefgefghfghighijhijkijkljklmklmnlmnomnopnopq",
        "248d6a61d20638b8e5c026930c3e6039a33ce45964ff2167f6ecedd419db06c1",
    ),
)

# FIPS-197 Appendix C: plaintext 00112233445566778899aabbccddeeff
_AES_VECTORS: Tuple[Tuple[int, str], ...] = (
    (16, "69c4e0d86a7b0430d8cdb78070b4c55a"),
    (24, "dda97ca4864cdfe06eaf70a0ec0d7191"),
    (32, "8ea2b7ca516745bfeafc49904b496089"),
)
_AES_PLAINTEXT: str = "00112233445566778899aabbccddeeff"


def self_test(verbose: bool = True) -> bool:
    """Run the known-answer vectors. Returns True if all pass."""
    failed = 0

    def _report(name: str, ok: bool) -> None:
        nonlocal failed
        if not ok:
            failed += 1
        if verbose:
            print(f"  [{'PASS' if ok else 'FAIL'}] {name}")

    for message, expected in _SHA256_VECTORS:
        _report(f"SHA-256 of {len(message)}-byte message", sha256(message).hex() == expected)

    for key_len, ciphertext in _AES_VECTORS:
        cipher = AES(bytes(range(key_len)))
        plain = cipher.decrypt_block(bytes.fromhex(ciphertext))
        _report(f"AES-{key_len * 8} FIPS-197 decryption", plain.hex() == _AES_PLAINTEXT)

    _report("Empty file decrypts to empty output", decrypt_data(b"", "x") == b"")
    return failed == 0


if __name__ == "__main__":
    import sys

    print("=" * 60)
    print("NoteCrypt Self-Test")
    print("=" * 60)
    ok = self_test()
    print("ALL TESTS PASSED!" if ok else "SOME TESTS FAILED!")
    sys.exit(0 if ok else 1)
