import re
import unittest
from unittest import mock

from content_gateway.errors import HashDerivationError
from content_gateway.identity import domain
from content_gateway.identity.domain import (
    BASE58_ALPHABET,
    HashScheme,
    IdentifierDeriver,
    IdentifierVersion,
    encode_base32_cid,
    encode_base58_fixed,
    metadata_digest,
    validate_identifier,
)


V0_PATTERN = re.compile(r"^Qm[1-9A-HJ-NP-Za-km-z]{44}$")


def _unavailable_sha256():
    raise ValueError("unsupported hash type sha256")


class Base58EncodingTests(unittest.TestCase):
    def test_alphabet_excludes_ambiguous_symbols(self) -> None:
        self.assertEqual(len(BASE58_ALPHABET), 58)
        self.assertEqual(len(set(BASE58_ALPHABET)), 58)
        for symbol in "0OIl":
            self.assertNotIn(symbol, BASE58_ALPHABET)

    def test_zero_digest_pads_with_first_symbol(self) -> None:
        self.assertEqual(encode_base58_fixed(bytes(32)), "1" * 44)

    def test_small_values(self) -> None:
        self.assertEqual(encode_base58_fixed(bytes(31) + b"\x01"), "1" * 43 + "2")
        self.assertEqual(encode_base58_fixed(bytes(31) + b"\x3a"), "1" * 42 + "21")

    def test_max_digest_fits_width(self) -> None:
        encoded = encode_base58_fixed(b"\xff" * 32)
        self.assertEqual(len(encoded), 44)
        self.assertTrue(set(encoded) <= set(BASE58_ALPHABET))


class IdentifierDeriverTests(unittest.TestCase):
    def setUp(self) -> None:
        self.deriver = IdentifierDeriver()

    def test_deterministic(self) -> None:
        first = self.deriver.derive(b"quarterly report", "report.pdf")
        second = IdentifierDeriver().derive(b"quarterly report", "report.pdf")

        self.assertEqual(first.value, second.value)
        self.assertEqual(first.digest, second.digest)
        self.assertIs(first.scheme, HashScheme.SHA256)
        self.assertFalse(first.is_fallback)

    def test_v0_alphabet_and_length(self) -> None:
        samples = [b"", b"a", b"\x00\xff\xfe", bytes(range(256)), b"x" * 10_000]
        for index, data in enumerate(samples):
            with self.subTest(index=index):
                identifier = self.deriver.derive(data, f"file-{index}.bin")
                self.assertRegex(identifier.value, V0_PATTERN)
                self.assertEqual(len(identifier.value), 46)
                self.assertEqual(str(identifier), identifier.value)

    def test_empty_content_derives_valid_identifier(self) -> None:
        identifier = self.deriver.derive(b"", "empty.txt")

        self.assertTrue(validate_identifier(identifier.value).valid)

    def test_sensitive_to_content_and_name(self) -> None:
        values = {self.deriver.derive(f"payload-{i}".encode(), "same.txt").value for i in range(50)}
        self.assertEqual(len(values), 50)

        by_name = {self.deriver.derive(b"same", f"name-{i}.txt").value for i in range(50)}
        self.assertEqual(len(by_name), 50)

    def test_binary_content_hashed_by_raw_bytes(self) -> None:
        invalid_utf8 = b"\xff\xfe\xfd"
        other = b"\xff\xfe\xfc"

        self.assertNotEqual(
            self.deriver.derive(invalid_utf8, "blob.bin").value,
            self.deriver.derive(other, "blob.bin").value,
        )

    def test_bytearray_and_memoryview_match_bytes(self) -> None:
        expected = self.deriver.derive(b"abc", "a.txt").value

        self.assertEqual(self.deriver.derive(bytearray(b"abc"), "a.txt").value, expected)
        self.assertEqual(self.deriver.derive(memoryview(b"abc"), "a.txt").value, expected)

    def test_falls_back_when_sha256_unavailable(self) -> None:
        with mock.patch.object(domain, "_new_sha256", _unavailable_sha256):
            first = self.deriver.derive(b"contents", "notes.txt")
            second = self.deriver.derive(b"contents", "notes.txt")

        self.assertIs(first.scheme, HashScheme.METADATA)
        self.assertTrue(first.is_fallback)
        self.assertEqual(first.value, second.value)
        self.assertRegex(first.value, V0_PATTERN)
        self.assertEqual(first.digest, metadata_digest(8, "notes.txt"))

    def test_fallback_ignores_content_of_equal_size(self) -> None:
        with mock.patch.object(domain, "_new_sha256", _unavailable_sha256):
            first = self.deriver.derive(b"aaaa", "same.txt")
            second = self.deriver.derive(b"bbbb", "same.txt")

        self.assertEqual(first.value, second.value)

    def test_unencodable_name_uses_fallback(self) -> None:
        identifier = self.deriver.derive(b"data", "bad-\ud800-name.txt")

        self.assertIs(identifier.scheme, HashScheme.METADATA)
        self.assertRegex(identifier.value, V0_PATTERN)

    def test_non_bytes_content_raises(self) -> None:
        with self.assertRaises(HashDerivationError):
            self.deriver.derive("text is not bytes", "a.txt")

    def test_non_string_name_raises(self) -> None:
        with self.assertRaises(HashDerivationError):
            self.deriver.derive(b"data", None)

    def test_metadata_digest_is_32_bytes(self) -> None:
        digest = metadata_digest(0, "")
        self.assertEqual(len(digest), 32)
        self.assertEqual(digest, metadata_digest(0, ""))
        self.assertNotEqual(digest, metadata_digest(1, ""))


class IdentifierV1Tests(unittest.TestCase):
    def test_v1_shape(self) -> None:
        identifier = IdentifierDeriver(IdentifierVersion.V1).derive(b"hello", "hello.txt")

        self.assertIs(identifier.version, IdentifierVersion.V1)
        self.assertEqual(len(identifier.value), 59)
        self.assertTrue(identifier.value.startswith("ba"))
        self.assertEqual(identifier.value, identifier.value.lower())
        self.assertEqual(validate_identifier(identifier.value).version, "v1")

    def test_v1_accepts_string_version(self) -> None:
        self.assertIs(IdentifierDeriver("v1").version, IdentifierVersion.V1)

    def test_v1_multihash_code_distinguishes_fallback(self) -> None:
        digest = bytes(32)
        primary = encode_base32_cid(digest, multihash_code=0x12)
        fallback = encode_base32_cid(digest, multihash_code=0x00)

        self.assertNotEqual(primary, fallback)
        self.assertEqual(len(primary), 59)
        self.assertEqual(len(fallback), 59)

    def test_unknown_version_rejected(self) -> None:
        with self.assertRaises(ValueError):
            IdentifierDeriver("v2")


class ValidateIdentifierTests(unittest.TestCase):
    def test_v0_valid(self) -> None:
        result = validate_identifier("Qm" + "1" * 44)

        self.assertTrue(result.valid)
        self.assertEqual(result.version, "v0")
        self.assertIsNone(result.reason)
        self.assertEqual(result.to_dict(), {"valid": True, "version": "v0"})

    def test_surrounding_whitespace_ignored(self) -> None:
        self.assertTrue(validate_identifier("  Qm" + "z" * 44 + "\n").valid)

    def test_v1_valid(self) -> None:
        result = validate_identifier("b" + "a" * 58)

        self.assertTrue(result.valid)
        self.assertEqual(result.version, "v1")

    def test_invalid_values(self) -> None:
        cases = {
            "": "empty",
            "   ": "empty",
            "not-a-hash": "too short",
            "undefined": "Placeholder",
            "No IPFS hash": "Placeholder",
            "Qm" + "0" * 44: "base58",
            "Qm" + "1" * 43: "known format",
            "B" + "A" * 58: "known format",
        }
        for value, reason in cases.items():
            with self.subTest(value=value):
                result = validate_identifier(value)
                self.assertFalse(result.valid)
                self.assertIsNone(result.version)
                self.assertIn(reason, result.reason)

    def test_non_string_is_invalid(self) -> None:
        for value in (None, 42, b"Qm"):
            with self.subTest(value=value):
                self.assertFalse(validate_identifier(value).valid)


if __name__ == "__main__":
    unittest.main()
