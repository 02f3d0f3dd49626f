"""Unit tests for content fingerprinting."""

import hashlib

from citelens.application.services.fingerprint import FINGERPRINT_LENGTH, content_fingerprint


def test_fingerprint_is_sha256_hex_of_utf8_bytes():
    text = "Café au lait — best brewed slowly"

    assert content_fingerprint(text) == hashlib.sha256(text.encode("utf-8")).hexdigest()
    assert len(content_fingerprint(text)) == FINGERPRINT_LENGTH


def test_identical_text_has_identical_fingerprint():
    assert content_fingerprint("same words") == content_fingerprint("same words")


def test_whitespace_differences_change_the_fingerprint():
    assert content_fingerprint("same words") != content_fingerprint("same  words")
    assert content_fingerprint("same words") != content_fingerprint("same words ")
