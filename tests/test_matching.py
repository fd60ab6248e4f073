import unittest

from vault_linker.matching import build_matcher, format_link, is_inside_existing_link, overlaps


class BuildMatcherTests(unittest.TestCase):
    def test_plain_term_uses_word_boundaries(self) -> None:
        matcher = build_matcher("api")
        self.assertEqual([m.group(0) for m in matcher.finditer("API, api.md, myAPI, APIs")], ["API", "api"])

    def test_matching_is_case_insensitive(self) -> None:
        self.assertIsNotNone(build_matcher("sarah chen").search("Met SARAH CHEN today"))

    def test_terms_with_symbols_match_as_a_unit(self) -> None:
        cases = {
            "c++": ("Learning C++ today", "Learning C++x today"),
            "test-driven-development": ("Use Test-Driven-Development.", "Use Test-Driven-Developments."),
            "j. smith": ("Ask J. Smith.", "Ask AJ. Smith."),
            ".net": ("Built on .NET now", "Built on .NETX now"),
        }
        for term, (hit, miss) in cases.items():
            with self.subTest(term=term):
                self.assertIsNotNone(build_matcher(term).search(hit))
                self.assertIsNone(build_matcher(term).search(miss))

    def test_metacharacters_are_escaped(self) -> None:
        for term in ("a+b?", "(draft)", "[v2]", "price $5", "x|y", "back\\slash", "^start", "end$", "{1,2}"):
            with self.subTest(term=term):
                matcher = build_matcher(term)
                self.assertEqual(matcher.search(f"see {term} here").group(0), term)
                self.assertIsNone(matcher.search("nothing relevant"))

    def test_matcher_is_cached(self) -> None:
        self.assertIs(build_matcher("phoenix"), build_matcher("phoenix"))


class ExistingLinkTests(unittest.TestCase):
    def test_inside_wiki_link(self) -> None:
        text = "See [[Sarah Chen Notes]] and Sarah Chen."
        self.assertTrue(is_inside_existing_link(text, 6, 16))
        start = text.rindex("Sarah Chen")
        self.assertFalse(is_inside_existing_link(text, start, start + 10))

    def test_inside_aliased_wiki_link(self) -> None:
        text = "Ping [[People/Sarah Chen|Sarah]] later."
        start = text.index("Sarah]]")
        self.assertTrue(is_inside_existing_link(text, start, start + 5))

    def test_inside_markdown_label(self) -> None:
        text = "[Sarah Chen Profile](https://example.com) and Sarah Chen."
        self.assertTrue(is_inside_existing_link(text, 1, 11))

    def test_inside_markdown_url(self) -> None:
        text = "[site](https://example.com/page) has an Example."
        start = text.index("example")
        self.assertTrue(is_inside_existing_link(text, start, start + 7))
        start = text.index("Example")
        self.assertFalse(is_inside_existing_link(text, start, start + 7))

    def test_plain_text(self) -> None:
        self.assertFalse(is_inside_existing_link("Sarah Chen is here.", 0, 10))


class SpanHelperTests(unittest.TestCase):
    def test_overlaps(self) -> None:
        spans = [(10, 20)]
        self.assertTrue(overlaps(15, 25, spans))
        self.assertTrue(overlaps(5, 11, spans))
        self.assertFalse(overlaps(20, 25, spans))
        self.assertFalse(overlaps(0, 10, spans))
        self.assertFalse(overlaps(0, 10, []))

    def test_format_link(self) -> None:
        self.assertEqual(format_link("Sarah Chen", "Sarah Chen"), "[[Sarah Chen]]")
        self.assertEqual(format_link("Sarah Chen", "sarah chen"), "[[Sarah Chen|sarah chen]]")
        self.assertEqual(format_link("John Smith", "J. Smith"), "[[John Smith|J. Smith]]")


if __name__ == "__main__":
    unittest.main()
