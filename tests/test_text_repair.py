"""
Tests for text_repair module.

Includes unit tests and property-based tests for mojibake repair and
Unicode normalization.
"""

import copy
import re
import unittest
import unicodedata
from unittest.mock import patch

from hypothesis import given, settings, strategies as st

from voice_history.text_repair import (
    CJK_UNIFIED_IDEOGRAPHS,
    normalize_text,
    repair_object,
    repair_text,
)


def mangle(text: str) -> str:
    return text.encode("utf-8").decode("latin-1")


cjk_text = st.text(
    alphabet=st.characters(min_codepoint=0x4E00, max_codepoint=0x9FFF),
    min_size=1,
    max_size=20,
)
ascii_text = st.text(
    alphabet=st.characters(min_codepoint=0x20, max_codepoint=0x7E),
    max_size=20,
)


class TestRepairText(unittest.TestCase):
    """Tests for repair_text function."""

    def test_repairs_chinese(self):
        """Mis-decoded Chinese is restored."""
        self.assertEqual(repair_text(mangle("发展汉语")), "发展汉语")

    def test_repairs_mixed_ascii_and_chinese(self):
        """ASCII around the Chinese text survives the repair."""
        original = "Model: 你好, world!"
        self.assertEqual(repair_text(mangle(original)), original)

    def test_correct_chinese_unchanged(self):
        """Already correct Chinese text is returned as-is."""
        self.assertEqual(repair_text("发展汉语"), "发展汉语")

    def test_latin_text_unchanged(self):
        """Legitimate accented Latin text is not touched."""
        for text in ["Café crème", "naïve Ñoño", "Tiếng Việt", "Ärger über Öl"]:
            self.assertEqual(repair_text(text), text)

    def test_latin_mojibake_without_cjk_unchanged(self):
        """Mojibake that does not reveal CJK characters is left alone."""
        mangled = mangle("café")
        self.assertEqual(mangled, "cafÃ©")
        self.assertEqual(repair_text(mangled), mangled)

    def test_characters_above_latin1_unchanged(self):
        """Text that cannot be single-byte is returned unchanged."""
        text = "Ã© 发"
        self.assertEqual(repair_text(text), text)

    def test_cjk_already_present_not_counted(self):
        """Only CJK characters that were not there before count as revealed."""
        text = "发" + mangle("é")
        self.assertEqual(repair_text(text), text)

    def test_non_string_returned_as_is(self):
        """Non-string values pass through."""
        self.assertEqual(repair_text(42), 42)
        self.assertIsNone(repair_text(None))

    def test_empty_string(self):
        """Empty string stays empty."""
        self.assertEqual(repair_text(""), "")

    def test_internal_error_returns_original(self):
        """Errors during reinterpretation fall back to the original text."""
        mangled = mangle("发展")
        with patch(
            "voice_history.text_repair._reinterpret_as_utf8",
            side_effect=ValueError("boom"),
        ):
            self.assertEqual(repair_text(mangled), mangled)

    def test_invalid_target_returns_original(self):
        """A target that is not a compiled pattern leaves the text alone."""
        mangled = mangle("发展")
        self.assertEqual(repair_text(mangled, target="not a pattern"), mangled)

    def test_custom_target_script(self):
        """A different target block enables repair for other scripts."""
        hangul = re.compile(r"[가-힣]")
        mangled = mangle("안녕하세요")

        self.assertEqual(repair_text(mangled), mangled)
        self.assertEqual(repair_text(mangled, target=hangul), "안녕하세요")


class TestRepairTextProperties(unittest.TestCase):
    """Property-based tests for repair_text."""

    @given(ascii_text, cjk_text, ascii_text)
    @settings(max_examples=50)
    def test_round_trip_on_corrupted_text(self, prefix, chinese, suffix):
        """Repairing mangled text gives back the original."""
        original = prefix + chinese + suffix
        self.assertEqual(repair_text(mangle(original)), original)

    @given(st.text())
    @settings(max_examples=100)
    def test_result_is_original_or_reveals_cjk(self, text):
        """Text is only changed when the change reveals new CJK characters."""
        result = repair_text(text)
        if result != text:
            revealed = set(CJK_UNIFIED_IDEOGRAPHS.findall(result))
            self.assertTrue(revealed - set(CJK_UNIFIED_IDEOGRAPHS.findall(text)))

    @given(st.text(alphabet=st.characters(blacklist_categories=("Cs",), max_codepoint=0x7F)))
    @settings(max_examples=50)
    def test_ascii_is_unchanged(self, text):
        """Plain ASCII never matches the mojibake pattern."""
        self.assertEqual(repair_text(text), text)

    @given(cjk_text)
    @settings(max_examples=50)
    def test_clean_cjk_is_unchanged(self, text):
        """Correct CJK text is never rewritten."""
        self.assertEqual(repair_text(text), text)


class TestRepairObject(unittest.TestCase):
    """Tests for repair_object function."""

    def test_nested_structures(self):
        """Strings inside nested dicts and lists are repaired."""
        payload = {
            "message": "ok",
            "aiResponse": {"china": mangle("你好"), "pinyin": "nǐ hǎo"},
            "tags": [mangle("汉语"), "plain", {"deep": mangle("学习")}],
        }

        result = repair_object(payload)

        self.assertEqual(result["aiResponse"]["china"], "你好")
        self.assertEqual(result["aiResponse"]["pinyin"], "nǐ hǎo")
        self.assertEqual(result["tags"][0], "汉语")
        self.assertEqual(result["tags"][1], "plain")
        self.assertEqual(result["tags"][2]["deep"], "学习")

    def test_does_not_mutate_input(self):
        """The input structure is left untouched."""
        payload = {"a": [mangle("你好")], "b": {"c": mangle("汉语")}}
        snapshot = copy.deepcopy(payload)

        result = repair_object(payload)

        self.assertEqual(payload, snapshot)
        self.assertIsNot(result, payload)
        self.assertIsNot(result["a"], payload["a"])

    def test_non_string_leaves_untouched(self):
        """Numbers, booleans and None pass through."""
        payload = {"size": 1024, "flag": True, "none": None, "ratio": 0.5}
        self.assertEqual(repair_object(payload), payload)

    def test_tuple(self):
        """Tuples come back as tuples."""
        self.assertEqual(repair_object((mangle("你"), 1)), ("你", 1))

    def test_string_leaf(self):
        """A bare string is repaired."""
        self.assertEqual(repair_object(mangle("汉语")), "汉语")


class TestNormalizeText(unittest.TestCase):
    """Tests for normalize_text function."""

    def test_composes_combining_marks(self):
        """Decomposed characters are composed."""
        self.assertEqual(normalize_text("e\u0301"), "\u00e9")
        self.assertEqual(normalize_text("Vie\u0323\u0302t"), "Vi\u1ec7t")

    def test_already_composed_unchanged(self):
        """NFC text is returned as-is."""
        self.assertEqual(normalize_text("Tiếng Việt"), "Tiếng Việt")

    def test_non_string_returned_as_is(self):
        """Invalid input falls back to the input."""
        self.assertIsNone(normalize_text(None))
        self.assertEqual(normalize_text(5), 5)

    @given(st.text())
    @settings(max_examples=100)
    def test_idempotent(self, text):
        """Normalizing twice equals normalizing once."""
        once = normalize_text(text)
        self.assertEqual(normalize_text(once), once)

    @given(st.text())
    @settings(max_examples=100)
    def test_result_is_nfc(self, text):
        """Output is always in NFC form."""
        self.assertTrue(unicodedata.is_normalized("NFC", normalize_text(text)))
