import hashlib
import os
import random
import struct
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Optional

from cryptography.hazmat.primitives import padding as sym_padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

import notecrypt


# ---------------------------------------------------------------------------
# Fixture builders (reference encryption via the cryptography package)
# ---------------------------------------------------------------------------


def cbc_encrypt(data: bytes, key: bytes, iv: bytes) -> bytes:
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return encryptor.update(data) + encryptor.finalize()


def ecb_decrypt(data: bytes, key: bytes) -> bytes:
    decryptor = Cipher(algorithms.AES(key), modes.ECB()).decryptor()
    return decryptor.update(data) + decryptor.finalize()


def pkcs7(data: bytes) -> bytes:
    padder = sym_padding.PKCS7(128).padder()
    return padder.update(data) + padder.finalize()


def build_note(
    plaintext: bytes,
    passphrase: bytes,
    master_passphrase: Optional[bytes] = None,
    iv: Optional[bytes] = None,
) -> bytes:
    """Lay out a NotepadCrypt file the way the original encryptor does."""
    file_key = hashlib.sha256(passphrase).digest()
    iv = iv if iv is not None else os.urandom(16)
    body = cbc_encrypt(pkcs7(plaintext), file_key, iv)
    if master_passphrase is None:
        return struct.pack(">II", notecrypt.MAGIC, notecrypt.FormatTag.NO_MASTER_KEY) + iv + body
    master_iv = os.urandom(16)
    wrapped = cbc_encrypt(file_key, hashlib.sha256(master_passphrase).digest(), master_iv)
    return (
        struct.pack(">II", notecrypt.MAGIC, notecrypt.FormatTag.HAS_MASTER_KEY)
        + iv + master_iv + wrapped + body
    )


# ---------------------------------------------------------------------------
# SHA-256
# ---------------------------------------------------------------------------


class Sha256Tests(unittest.TestCase):
    def test_nist_vectors(self):
        vectors = {
            b"": "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855",
            b"abc": "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad",
            b"abcdbcdecdefdefgefghfghighijhijkijkljklmklmnlmnomnopnopq":
                "248d6a61d20638b8e5c026930c3e6039a33ce45964ff2167f6ecedd419db06c1",
            b"abcdefghbcdefghicdefghijdefghijkefghijklfghijklmghijklmnhijklmno"
            b"ijklmnopjklmnopqklmnopqrlmnopqrsmnopqrstnopqrstu":
                "cf5b16a778af8380036ce59e7b0492370b249b11e8f07a51afac45037afee9d1",
        }
        for message, expected in vectors.items():
            with self.subTest(message=message[:16]):
                self.assertEqual(notecrypt.sha256(message).hex(), expected)

    def test_million_a(self):
        self.assertEqual(
            notecrypt.sha256(b"a" * 1_000_000).hex(),
            "cdc76e5c9914fb9281a1c7e284d73e67f1809a48a497200e046d39ccc7112cd0",
        )

    def test_matches_hashlib_around_padding_boundaries(self):
        rng = random.Random(1234)
        for length in list(range(0, 130)) + [1000, 4096]:
            message = bytes(rng.getrandbits(8) for _ in range(length))
            with self.subTest(length=length):
                self.assertEqual(notecrypt.sha256(message), hashlib.sha256(message).digest())

    def test_accepts_bytearray(self):
        self.assertEqual(notecrypt.sha256(bytearray(b"abc")), hashlib.sha256(b"abc").digest())


# ---------------------------------------------------------------------------
# AES block cipher
# ---------------------------------------------------------------------------


class AesTests(unittest.TestCase):
    PLAINTEXT = bytes.fromhex("00112233445566778899aabbccddeeff")

    def test_fips197_vectors(self):
        vectors = {
            16: "69c4e0d86a7b0430d8cdb78070b4c55a",
            24: "dda97ca4864cdfe06eaf70a0ec0d7191",
            32: "8ea2b7ca516745bfeafc49904b496089",
        }
        for key_len, ciphertext in vectors.items():
            with self.subTest(key_len=key_len):
                cipher = notecrypt.AES(bytes(range(key_len)))
                self.assertEqual(cipher.decrypt_block(bytes.fromhex(ciphertext)), self.PLAINTEXT)

    def test_round_counts(self):
        self.assertEqual(notecrypt.AES(bytes(16)).rounds, 10)
        self.assertEqual(notecrypt.AES(bytes(24)).rounds, 12)
        self.assertEqual(notecrypt.AES(bytes(32)).rounds, 14)

    def test_matches_reference_on_random_blocks(self):
        rng = random.Random(42)
        for key_len in (16, 24, 32):
            key = bytes(rng.getrandbits(8) for _ in range(key_len))
            block = bytes(rng.getrandbits(8) for _ in range(16))
            with self.subTest(key_len=key_len):
                cipher = notecrypt.AES(key)
                self.assertEqual(cipher.decrypt_block(block), ecb_decrypt(block, key))

    def test_invalid_key_lengths(self):
        for key_len in (0, 4, 15, 17, 20, 28, 33, 64):
            with self.subTest(key_len=key_len):
                with self.assertRaises(notecrypt.InvalidKeyLengthError):
                    notecrypt.AES(bytes(key_len))

    def test_wrong_block_length(self):
        cipher = notecrypt.AES(bytes(16))
        with self.assertRaises(notecrypt.InvalidLengthError):
            cipher.decrypt_block(bytes(15))

    def test_decrypt_block_into(self):
        key = bytes(range(16))
        buf = bytearray(b"xx" + bytes.fromhex("69c4e0d86a7b0430d8cdb78070b4c55a") + b"yy")
        notecrypt.AES(key).decrypt_block_into(buf, 2)
        self.assertEqual(bytes(buf), b"xx" + self.PLAINTEXT + b"yy")

    def test_sbox_tables(self):
        self.assertEqual(notecrypt.SBOX[0x00], 0x63)
        self.assertEqual(notecrypt.SBOX[0x01], 0x7C)
        self.assertEqual(notecrypt.SBOX[0x53], 0xED)
        self.assertEqual(notecrypt.SBOX[0xFF], 0x16)
        self.assertEqual(sorted(notecrypt.SBOX), list(range(256)))
        for i in range(256):
            self.assertEqual(notecrypt.SBOX_INVERSE[notecrypt.SBOX[i]], i)

    def test_gf_multiply(self):
        # FIPS-197 section 4.2 examples
        self.assertEqual(notecrypt.gf_multiply(0x57, 0x83), 0xC1)
        self.assertEqual(notecrypt.gf_multiply(0x57, 0x13), 0xFE)
        self.assertEqual(notecrypt.gf_multiply(0x57, 0x02), 0xAE)
        self.assertEqual(notecrypt.gf_multiply(0xAE, 0x02), 0x47)
        self.assertEqual(notecrypt.gf_multiply(0x00, 0x9B), 0x00)


# ---------------------------------------------------------------------------
# CBC and padding
# ---------------------------------------------------------------------------


class CbcTests(unittest.TestCase):
    def test_matches_reference_encryptor(self):
        for key_len in (16, 24, 32):
            for blocks in (1, 2, 7):
                key = os.urandom(key_len)
                iv = os.urandom(16)
                plaintext = os.urandom(16 * blocks)
                buf = bytearray(cbc_encrypt(plaintext, key, iv))
                with self.subTest(key_len=key_len, blocks=blocks):
                    notecrypt.decrypt_cbc(buf, key, iv)
                    self.assertEqual(bytes(buf), plaintext)

    def test_feedback_is_previous_ciphertext(self):
        key = bytes(range(32))
        iv = bytes(range(100, 116))
        c = bytes.fromhex("8ea2b7ca516745bfeafc49904b496089")
        buf = bytearray(c + c)
        notecrypt.decrypt_cbc(buf, key, iv)
        raw = ecb_decrypt(c, key)
        self.assertEqual(bytes(buf[:16]), bytes(a ^ b for a, b in zip(raw, iv)))
        self.assertEqual(bytes(buf[16:]), bytes(a ^ b for a, b in zip(raw, c)))

    def test_empty_buffer_is_noop(self):
        buf = bytearray()
        notecrypt.decrypt_cbc(buf, bytes(32), bytes(16))
        self.assertEqual(buf, bytearray())

    def test_invalid_lengths(self):
        with self.assertRaises(notecrypt.InvalidLengthError):
            notecrypt.decrypt_cbc(bytearray(17), bytes(32), bytes(16))
        with self.assertRaises(notecrypt.InvalidLengthError):
            notecrypt.decrypt_cbc(bytearray(16), bytes(32), bytes(8))

    def test_invalid_key(self):
        with self.assertRaises(notecrypt.InvalidKeyLengthError):
            notecrypt.decrypt_cbc(bytearray(16), bytes(31), bytes(16))

    def test_requires_mutable_buffer(self):
        with self.assertRaises(TypeError):
            notecrypt.decrypt_cbc(bytes(16), bytes(32), bytes(16))


class PaddingTests(unittest.TestCase):
    def test_valid_padding_stripped(self):
        for pad in range(1, 17):
            data = bytes(range(32 - pad)) + bytes([pad]) * pad
            with self.subTest(pad=pad):
                self.assertEqual(notecrypt.strip_padding(data), bytes(range(32 - pad)))

    def test_full_padding_block(self):
        self.assertEqual(notecrypt.strip_padding(bytes([16]) * 16), b"")

    def test_out_of_range_last_byte(self):
        for last in (0, 17, 0x80, 0xFF):
            with self.subTest(last=last):
                with self.assertRaises(notecrypt.BadPaddingOrKeyError):
                    notecrypt.strip_padding(bytes(15) + bytes([last]))

    def test_inconsistent_padding(self):
        with self.assertRaises(notecrypt.BadPaddingOrKeyError):
            notecrypt.strip_padding(bytes(12) + b"\x03\x04\x04\x04")
        with self.assertRaises(notecrypt.BadPaddingOrKeyError):
            notecrypt.strip_padding(bytes(13) + b"\x02\x03\x03")

    def test_empty_buffer(self):
        with self.assertRaises(notecrypt.BadPaddingOrKeyError):
            notecrypt.strip_padding(b"")

    def test_padding_longer_than_buffer(self):
        with self.assertRaises(notecrypt.BadPaddingOrKeyError):
            notecrypt.strip_padding(b"\x05\x05")


# ---------------------------------------------------------------------------
# Format decoder
# ---------------------------------------------------------------------------


class DecoderTests(unittest.TestCase):
    TEXT = b"Meeting notes:\n- rotate the backup keys\n- call Ada\n"

    def test_empty_input_returns_empty(self):
        for passphrase in ("", "anything", b"\x00\xff"):
            for use_master in (False, True):
                with self.subTest(passphrase=passphrase, use_master=use_master):
                    self.assertEqual(notecrypt.decrypt_data(b"", passphrase, use_master), b"")

    def test_decrypt_without_master_key(self):
        data = build_note(self.TEXT, b"hunter2")
        self.assertEqual(notecrypt.decrypt_data(data, "hunter2"), self.TEXT)
        self.assertEqual(notecrypt.decrypt_data(data, b"hunter2"), self.TEXT)

    def test_empty_note_with_header(self):
        data = build_note(b"", b"pw")
        self.assertEqual(len(data), 24 + 16)
        self.assertEqual(notecrypt.decrypt_data(data, "pw"), b"")

    def test_block_aligned_plaintext(self):
        text = b"0123456789abcdef" * 4
        self.assertEqual(notecrypt.decrypt_data(build_note(text, b"pw"), "pw"), text)

    def test_both_unlock_paths_agree(self):
        data = build_note(self.TEXT, b"everyday", master_passphrase=b"master key 456")
        direct = notecrypt.decrypt_data(data, "everyday", use_master_key=False)
        via_master = notecrypt.decrypt_data(data, "master key 456", use_master_key=True)
        self.assertEqual(direct, self.TEXT)
        self.assertEqual(via_master, self.TEXT)

    def test_master_key_requested_without_master_section(self):
        data = build_note(self.TEXT, b"pw")
        with self.assertRaises(notecrypt.NoMasterKeyPresentError):
            notecrypt.decrypt_data(data, "pw", use_master_key=True)

    def test_wrong_passphrase_rejected(self):
        data = build_note(self.TEXT, b"right")
        rejected = 0
        for i in range(8):
            try:
                notecrypt.decrypt_data(data, f"wrong-{i}")
            except notecrypt.BadPaddingOrKeyError:
                rejected += 1
        # a wrong key passes the padding check about once in 255 tries
        self.assertGreaterEqual(rejected, 7)

    def test_non_ascii_passphrase_encoded_like_original(self):
        data = build_note(self.TEXT, b"caf?")
        self.assertEqual(notecrypt.decrypt_data(data, "café"), self.TEXT)

    def test_bad_magic(self):
        data = bytearray(build_note(self.TEXT, b"pw"))
        data[0] ^= 0xFF
        with self.assertRaises(notecrypt.UnsupportedFileFormatError):
            notecrypt.decrypt_data(bytes(data), "pw")

    def test_too_short_for_magic(self):
        with self.assertRaises(notecrypt.UnsupportedFileFormatError):
            notecrypt.decrypt_data(b"\x04\x03", "pw")

    def test_bad_format_tag(self):
        data = bytearray(build_note(self.TEXT, b"pw"))
        data[4:8] = struct.pack(">I", 0x03000000)
        with self.assertRaises(notecrypt.UnsupportedEncryptionFormatError):
            notecrypt.decrypt_data(bytes(data), "pw")

    def test_missing_format_tag(self):
        with self.assertRaises(notecrypt.UnsupportedEncryptionFormatError):
            notecrypt.decrypt_data(struct.pack(">I", notecrypt.MAGIC), "pw")

    def test_truncated_header(self):
        data = build_note(self.TEXT, b"pw", master_passphrase=b"m")
        with self.assertRaises(notecrypt.InvalidLengthError):
            notecrypt.decrypt_data(data[:50], "pw")

    def test_body_not_block_aligned(self):
        data = build_note(self.TEXT, b"pw")
        with self.assertRaises(notecrypt.InvalidLengthError):
            notecrypt.decrypt_data(data[:-3], "pw")

    def test_missing_master_key_reported_before_body_length(self):
        data = build_note(b"hello world", b"pw")[:-3]
        with self.assertRaises(notecrypt.NoMasterKeyPresentError):
            notecrypt.decrypt_data(data, "pw", use_master_key=True)

    def test_errors_share_base_class(self):
        for exc in (
            notecrypt.UnsupportedFileFormatError,
            notecrypt.UnsupportedEncryptionFormatError,
            notecrypt.NoMasterKeyPresentError,
            notecrypt.InvalidLengthError,
            notecrypt.InvalidKeyLengthError,
            notecrypt.BadPaddingOrKeyError,
        ):
            self.assertTrue(issubclass(exc, notecrypt.NoteCryptError))

    def test_tampered_final_block_fails_padding(self):
        data = build_note(self.TEXT, b"pw")
        rng = random.Random(7)
        trials = 200
        accepted = 0
        for _ in range(trials):
            tampered = bytearray(data)
            pos = len(data) - 1 - rng.randrange(16)
            tampered[pos] ^= rng.randrange(1, 256)
            try:
                notecrypt.decrypt_data(bytes(tampered), "pw")
            except notecrypt.BadPaddingOrKeyError:
                continue
            accepted += 1
        # false acceptance is expected roughly once per 255 trials
        self.assertLessEqual(accepted, 8)


class HeaderTests(unittest.TestCase):
    def test_parse_plain_header(self):
        iv = bytes(range(16))
        data = build_note(b"hello", b"pw", iv=iv)
        header = notecrypt.parse_header(data)
        self.assertEqual(header.magic, notecrypt.MAGIC)
        self.assertIs(header.format_tag, notecrypt.FormatTag.NO_MASTER_KEY)
        self.assertFalse(header.has_master_key)
        self.assertEqual(header.init_vec, iv)
        self.assertIsNone(header.master_iv)
        self.assertIsNone(header.wrapped_file_key)
        self.assertEqual(header.body_offset, 24)
        self.assertEqual(header.body_length, 16)

    def test_parse_master_header(self):
        data = build_note(b"hello", b"pw", master_passphrase=b"m")
        header = notecrypt.parse_header(data)
        self.assertTrue(header.has_master_key)
        self.assertEqual(header.master_iv, data[24:40])
        self.assertEqual(header.wrapped_file_key, data[40:72])
        self.assertEqual(header.body_offset, 72)

    def test_resolve_key_paths(self):
        data = build_note(b"hello", b"pw", master_passphrase=b"m")
        header = notecrypt.parse_header(data)

        direct = notecrypt.resolve_key(header, "pw")
        self.assertIs(direct.path, notecrypt.KeyPath.DIRECT)
        self.assertEqual(direct.key, hashlib.sha256(b"pw").digest())

        master = notecrypt.resolve_key(header, "m", use_master_key=True)
        self.assertIs(master.path, notecrypt.KeyPath.MASTER)
        self.assertEqual(master.key, hashlib.sha256(b"pw").digest())

    def test_file_key_repr_hides_key(self):
        key = notecrypt.FileKey(notecrypt.KeyPath.DIRECT, b"\xaa" * 32)
        self.assertNotIn("aa", repr(key))


# ---------------------------------------------------------------------------
# File helper and self-test
# ---------------------------------------------------------------------------


class DecryptFileTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = TemporaryDirectory()
        self.tmp_path = Path(self.tmpdir.name)

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_writes_plaintext(self):
        src = self.tmp_path / "note.enc"
        dst = self.tmp_path / "note.txt"
        src.write_bytes(build_note(b"file contents", b"pw"))
        notecrypt.decrypt_file(src, dst, "pw")
        self.assertEqual(dst.read_bytes(), b"file contents")
        self.assertEqual(sorted(p.name for p in self.tmp_path.iterdir()), ["note.enc", "note.txt"])

    def test_failure_leaves_no_output(self):
        src = self.tmp_path / "note.enc"
        dst = self.tmp_path / "note.txt"
        src.write_bytes(build_note(b"file contents", b"pw"))
        with self.assertRaises(notecrypt.NoMasterKeyPresentError):
            notecrypt.decrypt_file(src, dst, "pw", use_master_key=True)
        self.assertEqual([p.name for p in self.tmp_path.iterdir()], ["note.enc"])

    def test_failure_keeps_existing_output(self):
        src = self.tmp_path / "note.enc"
        dst = self.tmp_path / "note.txt"
        src.write_bytes(b"not a note at all")
        dst.write_bytes(b"previous")
        with self.assertRaises(notecrypt.UnsupportedFileFormatError):
            notecrypt.decrypt_file(src, dst, "pw")
        self.assertEqual(dst.read_bytes(), b"previous")


class SelfTestTests(unittest.TestCase):
    def test_self_test_passes(self):
        self.assertTrue(notecrypt.self_test(verbose=False))


if __name__ == "__main__":
    unittest.main()
